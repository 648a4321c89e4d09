"""
One-hot selector validator
Binds an item to at most one enabled target slot without revealing which
"""

from typing import List, Optional, Sequence

from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.constraint_system import Operand


def one_hot(choice: Optional[int], n: int) -> List[int]:
    """Native selector bits for choice (None selects nothing)"""
    if choice is not None and not 0 <= choice < n:
        raise ValueError(f"Selector choice {choice} outside {n} slots")
    return [1 if i == choice else 0 for i in range(n)]


def allocate_selector(cs: ConstraintSystem, choice: Optional[int], n: int,
                      label: str = "selector") -> List[LinearCombination]:
    with cs.scope(label):
        return [cs.witness(bit, f"bit{i}") for i, bit in enumerate(one_hot(choice, n))]


def select(cs: ConstraintSystem, bits: Sequence[LinearCombination], values: Sequence[Operand],
           label: str = "select") -> LinearCombination:
    """Sum of bits[i] * values[i]"""
    if len(bits) != len(values):
        raise ValueError(f"{len(bits)} selector bits for {len(values)} values")
    with cs.scope(label):
        return LinearCombination.sum(
            cs.mul(bit, value, f"term{i}") for i, (bit, value) in enumerate(zip(bits, values))
        )


def one_hot_select(cs: ConstraintSystem, bits: Sequence[LinearCombination], enabled: Sequence[Operand],
                   values: Sequence[Operand], expected_sum: Operand, expected_dot: Operand,
                   label: str = "selector"):
    """
    Constrain: every bit boolean, bit implies enabled, sum(bits) == expected_sum,
    sum(bits * values) == expected_dot.
    """
    if not len(bits) == len(enabled) == len(values):
        raise ValueError(
            f"Selector arrays differ in length: {len(bits)}, {len(enabled)}, {len(values)}")

    with cs.scope(label, Violation.SELECTOR_BINDING):
        for i, bit in enumerate(bits):
            cs.enforce_boolean(bit, f"bit{i}_boolean")
            cs.enforce(bit, 1 - LinearCombination.coerce(enabled[i]), 0, f"bit{i}_enabled")
        cs.enforce_equal(LinearCombination.sum(bits), expected_sum, "count")
        cs.enforce_equal(select(cs, bits, values, "dot"), expected_dot, "value")
