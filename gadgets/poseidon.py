"""
Poseidon hash over the BN254 scalar field
circomlib parameterization: width t = inputs + 1, x^5 S-box, 8 full rounds and
width-dependent partial rounds. Round constants and the Cauchy MDS matrix are
derived with the Grain LFSR procedure from the Poseidon reference scripts.
"""

import logging
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np

from r1cs import ConstraintSystem, LinearCombination
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME as P, FIELD_BITS, GF

logger = logging.getLogger(__name__)

FULL_ROUNDS = 8
PARTIAL_ROUNDS = [56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68]
ALPHA = 5
MAX_INPUTS = len(PARTIAL_ROUNDS)


def _to_bits(value: int, width: int) -> List[int]:
    return [(value >> i) & 1 for i in reversed(range(width))]


class GrainLFSR:
    """80-bit Grain LFSR in self-shrinking mode"""

    STATE_BITS = 80
    WARMUP = 160

    def __init__(self, width: int, full_rounds: int, partial_rounds: int,
                 field_bits: int = FIELD_BITS):
        seed = (_to_bits(1, 2)              # prime field
                + _to_bits(0, 4)            # x^alpha S-box
                + _to_bits(field_bits, 12)
                + _to_bits(width, 12)
                + _to_bits(full_rounds, 10)
                + _to_bits(partial_rounds, 10)
                + [1] * 30)
        self.state = deque(seed, maxlen=self.STATE_BITS)
        for _ in range(self.WARMUP):
            self._clock()

    def _clock(self) -> int:
        s = self.state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.append(bit)
        return bit

    def next_bit(self) -> int:
        # Bits come in pairs; the second is emitted only when the first is set
        while True:
            keep = self._clock()
            bit = self._clock()
            if keep:
                return bit

    def next_int(self, bits: int) -> int:
        value = 0
        for _ in range(bits):
            value = (value << 1) | self.next_bit()
        return value

    def next_field_element(self) -> int:
        """Rejection-sample a canonical field element"""
        while True:
            value = self.next_int(FIELD_BITS)
            if value < P:
                return value


@dataclass(frozen=True)
class PoseidonParameters:
    width: int
    full_rounds: int
    partial_rounds: int
    round_constants: Tuple[int, ...]
    mds: Tuple[Tuple[int, ...], ...]

    @property
    def total_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds

    def is_full_round(self, round_index: int) -> bool:
        half = self.full_rounds // 2
        return round_index < half or round_index >= half + self.partial_rounds


def _cauchy_mds(lfsr: GrainLFSR, width: int) -> Tuple[Tuple[int, ...], ...]:
    while True:
        samples = [lfsr.next_int(FIELD_BITS) % P for _ in range(2 * width)]
        if len(set(samples)) != len(samples):
            continue
        xs = GF(samples[:width])
        ys = GF(samples[width:])
        sums = xs[:, np.newaxis] + ys[np.newaxis, :]
        if np.any(sums == 0):
            continue
        matrix = np.reciprocal(sums)
        return tuple(tuple(int(v) for v in row) for row in matrix)


@lru_cache(maxsize=None)
def poseidon_parameters(n_inputs: int) -> PoseidonParameters:
    """Generate (once) the parameters for an n-input Poseidon instance"""
    if not 1 <= n_inputs <= MAX_INPUTS:
        raise ValueError(
            f"Poseidon supports 1 to {MAX_INPUTS} inputs, got {n_inputs}")

    width = n_inputs + 1
    partial_rounds = PARTIAL_ROUNDS[width - 2]
    lfsr = GrainLFSR(width, FULL_ROUNDS, partial_rounds)
    round_constants = tuple(
        lfsr.next_field_element()
        for _ in range((FULL_ROUNDS + partial_rounds) * width)
    )
    mds = _cauchy_mds(lfsr, width)

    logger.debug(
        f"Generated Poseidon parameters for t={width} ({FULL_ROUNDS}+{partial_rounds} rounds)")
    return PoseidonParameters(width, FULL_ROUNDS, partial_rounds, round_constants, mds)


def poseidon_hash(inputs: Sequence[int]) -> int:
    """Native Poseidon; output is state[0] after the final round"""
    params = poseidon_parameters(len(inputs))
    t = params.width
    rc = params.round_constants
    state = [0] + [v % P for v in inputs]

    for r in range(params.total_rounds):
        state = [(s + rc[r * t + i]) % P for i, s in enumerate(state)]
        if params.is_full_round(r):
            state = [pow(s, ALPHA, P) for s in state]
        else:
            state[0] = pow(state[0], ALPHA, P)
        state = [sum(m * s for m, s in zip(row, state)) % P for row in params.mds]

    return state[0]


def _sbox(cs: ConstraintSystem, x: LinearCombination, label: str) -> LinearCombination:
    x2 = cs.mul(x, x, f"{label}_sq")
    x4 = cs.mul(x2, x2, f"{label}_quad")
    return cs.mul(x4, x, f"{label}_quint")


def poseidon_gadget(cs: ConstraintSystem, inputs: Sequence[Operand],
                    label: str = "poseidon") -> LinearCombination:
    """In-circuit Poseidon mirroring poseidon_hash round for round"""
    params = poseidon_parameters(len(inputs))
    t = params.width
    rc = params.round_constants

    with cs.scope(label):
        state = [LinearCombination()] + [LinearCombination.coerce(x) for x in inputs]
        for r in range(params.total_rounds):
            state = [s + rc[r * t + i] for i, s in enumerate(state)]
            if params.is_full_round(r):
                state = [_sbox(cs, s, f"r{r}_s{i}") for i, s in enumerate(state)]
            else:
                state[0] = _sbox(cs, state[0], f"r{r}_s0")
            state = [
                LinearCombination.sum(m * s for m, s in zip(row, state))
                for row in params.mds
            ]

    return state[0]


# Merkle node hash
def hash2(a: int, b: int) -> int:
    return poseidon_hash([a, b])
