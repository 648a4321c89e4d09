"""
Fixed-point reward accrual
reward = floor(amount * (globalAcc - noteAcc) / S), computed in-circuit from a
prover-supplied remainder: quotient * S + remainder == dividend, 0 <= remainder < S
"""

from typing import Tuple

from r1cs import ConstraintSystem, LinearCombination
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME as P, field_inverse

from .bits import range_check
from .constants import REWARD_BITS, REWARD_SCALE


def divide_witness(dividend: int, scale: int = REWARD_SCALE) -> Tuple[int, int]:
    """Prover hint: floor quotient and remainder of the dividend's canonical representative"""
    return divmod(dividend % P, scale)


def accrued_reward(amount: int, global_accumulator: int, note_accumulator: int,
                   scale: int = REWARD_SCALE) -> Tuple[int, int]:
    """Native (reward, remainder) for a note; the difference is taken in the field"""
    return divide_witness(amount * (global_accumulator - note_accumulator), scale)


def fixed_point_divide(cs: ConstraintSystem, dividend: Operand, remainder: Operand,
                       scale: int = REWARD_SCALE, quotient_bits: int = REWARD_BITS,
                       label: str = "divide") -> LinearCombination:
    """Quotient of dividend / scale, sound only because both results are range-checked"""
    dividend = LinearCombination.coerce(dividend)
    remainder = LinearCombination.coerce(remainder)
    remainder_bits = (scale - 1).bit_length()

    with cs.scope(label):
        quotient = cs.witness(
            (cs.value(dividend) - cs.value(remainder)) * field_inverse(scale), "quotient")
        cs.enforce_equal(quotient * scale + remainder, dividend, "division")
        range_check(cs, remainder, remainder_bits, "remainder")
        range_check(cs, (scale - 1) - remainder, remainder_bits, "remainder_below_scale")
        range_check(cs, quotient, quotient_bits, "quotient")
    return quotient


def reward_gadget(cs: ConstraintSystem, amount: Operand, global_accumulator: Operand,
                  note_accumulator: Operand, remainder: Operand, scale: int = REWARD_SCALE,
                  label: str = "reward") -> Tuple[LinearCombination, LinearCombination]:
    """Returns (reward, amount + reward); caller guarantees note_accumulator <= global_accumulator"""
    amount = LinearCombination.coerce(amount)
    with cs.scope(label):
        delta = LinearCombination.coerce(global_accumulator) - note_accumulator
        dividend = cs.mul(amount, delta, "dividend")
        reward = fixed_point_divide(cs, dividend, remainder, scale, label="divide")
    return reward, amount + reward
