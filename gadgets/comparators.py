"""
Full-range field comparators
Both operands are decomposed into canonical 254-bit vectors and scanned from the
most significant bit, so the ordering is correct for every pair of field elements
"""

from typing import List

from r1cs import ConstraintSystem, LinearCombination
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME as P

from .bits import num_to_bits_strict


def compare_bits(cs: ConstraintSystem, a_bits: List[LinearCombination],
                 b_bits: List[LinearCombination]) -> LinearCombination:
    """1 if a < b for equal-length little-endian bit vectors"""
    if len(a_bits) != len(b_bits):
        raise ValueError(
            f"Bit vectors differ in length: {len(a_bits)} vs {len(b_bits)}")

    prefix = LinearCombination.constant(1)  # all higher bits equal so far
    result = LinearCombination()
    for i in reversed(range(len(a_bits))):
        a_i, b_i = a_bits[i], b_bits[i]
        both = cs.mul(a_i, b_i, f"and{i}")
        less_here = b_i - both                   # (1 - a_i) * b_i
        equal_here = 1 - a_i - b_i + both * 2    # a_i xnor b_i
        # At most one position is the first difference, so OR is a sum
        result = result + cs.mul(prefix, less_here, f"lt{i}")
        if i:
            prefix = cs.mul(prefix, equal_here, f"eq{i}")
    return result


def less_than(cs: ConstraintSystem, a: Operand, b: Operand, label: str = "lt") -> LinearCombination:
    with cs.scope(label):
        a_bits = num_to_bits_strict(cs, a, "a")
        b_bits = num_to_bits_strict(cs, b, "b")
        return compare_bits(cs, a_bits, b_bits)


def greater_than(cs: ConstraintSystem, a: Operand, b: Operand, label: str = "gt") -> LinearCombination:
    return less_than(cs, b, a, label)


def less_equal(cs: ConstraintSystem, a: Operand, b: Operand, label: str = "le") -> LinearCombination:
    return 1 - less_than(cs, b, a, label)


def greater_equal(cs: ConstraintSystem, a: Operand, b: Operand, label: str = "ge") -> LinearCombination:
    return 1 - less_than(cs, a, b, label)


def field_less_than(a: int, b: int) -> bool:
    """Native ordering of canonical representatives"""
    return a % P < b % P
