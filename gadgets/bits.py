"""
Bit decomposition and zero tests
"""

from typing import List, Optional

from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME as P, FIELD_BITS, field_inverse


def num_to_bits(cs: ConstraintSystem, operand: Operand, n_bits: int,
                label: str = "bits", violation: Optional[Violation] = None) -> List[LinearCombination]:
    """Little-endian boolean decomposition; fails to recompose if the value needs more than n_bits"""
    if not 1 <= n_bits <= FIELD_BITS:
        raise ValueError(f"Bit width must be in [1, {FIELD_BITS}], got {n_bits}")

    lc = LinearCombination.coerce(operand)
    value = cs.value(lc)
    with cs.scope(label, violation):
        bits = []
        for i in range(n_bits):
            bit = cs.witness((value >> i) & 1, f"b{i}")
            cs.enforce_boolean(bit, f"b{i}_boolean")
            bits.append(bit)
        cs.enforce_equal(
            LinearCombination.sum(bit * (1 << i) for i, bit in enumerate(bits)),
            lc,
            "recompose"
        )
    return bits


def range_check(cs: ConstraintSystem, operand: Operand, n_bits: int,
                label: str = "range") -> List[LinearCombination]:
    """Assert 0 <= operand < 2^n_bits"""
    return num_to_bits(cs, operand, n_bits, label, Violation.RANGE)


def assert_bits_le_constant(cs: ConstraintSystem, bits: List[LinearCombination],
                            constant: int, label: str = "le_constant"):
    """Assert the integer spelled by bits (little-endian) is at most constant"""
    with cs.scope(label):
        prefix = LinearCombination.constant(1)
        less = LinearCombination()
        for i in reversed(range(len(bits))):
            bit = bits[i]
            if (constant >> i) & 1:
                less = less + cs.mul(prefix, 1 - bit, f"lt{i}")
                equal_here = bit
            else:
                equal_here = 1 - bit
            prefix = cs.mul(prefix, equal_here, f"eq{i}")
        cs.enforce_equal(less + prefix, 1, "bound")


def num_to_bits_strict(cs: ConstraintSystem, operand: Operand,
                       label: str = "bits_strict") -> List[LinearCombination]:
    """Full-width decomposition restricted to the canonical representative"""
    with cs.scope(label):
        bits = num_to_bits(cs, operand, FIELD_BITS, "bits")
        assert_bits_le_constant(cs, bits, P - 1, "alias")
    return bits


def is_zero(cs: ConstraintSystem, operand: Operand, label: str = "is_zero") -> LinearCombination:
    """1 if operand == 0 else 0"""
    lc = LinearCombination.coerce(operand)
    value = cs.value(lc)
    with cs.scope(label):
        inverse = cs.witness(field_inverse(value), "inverse")
        out = cs.witness(0 if value else 1, "out")
        cs.enforce(lc, inverse, 1 - out, "out")
        cs.enforce(lc, out, 0, "zero")
    return out


def is_nonzero(cs: ConstraintSystem, operand: Operand, label: str = "is_nonzero") -> LinearCombination:
    return 1 - is_zero(cs, operand, label)


def is_equal(cs: ConstraintSystem, left: Operand, right: Operand,
             label: str = "is_equal") -> LinearCombination:
    return is_zero(cs, LinearCombination.coerce(left) - right, label)


def assert_not_equal(cs: ConstraintSystem, left: Operand, right: Operand,
                     label: str = "not_equal", violation: Optional[Violation] = None):
    """Single constraint: (left - right) has an inverse"""
    diff = LinearCombination.coerce(left) - right
    with cs.scope(label):
        inverse = cs.witness(field_inverse(cs.value(diff)), "inverse")
        cs.enforce(diff, inverse, 1, "invertible", violation)
