"""
Indexed Merkle tree primitives
Leaves {value, nextIndex, nextValue} form a sorted linked list; nextValue = 0 marks
the largest element. Non-membership of x is shown by a low element bracketing x.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.constraint_system import Operand

from .bits import is_zero
from .comparators import less_than
from .merkle import index_to_bits, merkle_root
from .poseidon import poseidon_gadget, poseidon_hash


def indexed_leaf_hash(value: int, next_index: int, next_value: int) -> int:
    return poseidon_hash([value, next_index, next_value])


# Genesis leaf (0, 0, 0) and every unused slot share this hash
EMPTY_LEAF_HASH = indexed_leaf_hash(0, 0, 0)


@dataclass
class LowElementWires:
    value: LinearCombination
    next_index: LinearCombination
    next_value: LinearCombination
    index: LinearCombination
    path: List[LinearCombination]


def allocate_low_element(cs: ConstraintSystem, value: int, next_index: int, next_value: int,
                         index: int, path: Sequence[int], label: str = "low") -> LowElementWires:
    with cs.scope(label):
        return LowElementWires(
            value=cs.witness(value, "value"),
            next_index=cs.witness(next_index, "next_index"),
            next_value=cs.witness(next_value, "next_value"),
            index=cs.witness(index, "index"),
            path=[cs.witness(sibling, f"path{i}") for i, sibling in enumerate(path)]
        )


def leaf_hash_gadget(cs: ConstraintSystem, value: Operand, next_index: Operand,
                     next_value: Operand, label: str = "leaf") -> LinearCombination:
    return poseidon_gadget(cs, [value, next_index, next_value], label)


def assert_low_element_brackets(cs: ConstraintSystem, low_value: Operand, target: Operand,
                                low_next_value: Operand, label: str = "ordering"):
    """low.value < target AND (target < low.nextValue OR low.nextValue == 0)"""
    with cs.scope(label, Violation.ORDERING):
        below = less_than(cs, low_value, target, "low_below_target")
        cs.enforce_equal(below, 1, "low_value_lt_target")
        above = less_than(cs, target, low_next_value, "target_below_next")
        is_last = is_zero(cs, low_next_value, "next_is_sentinel")
        cs.enforce(1 - above, 1 - is_last, 0, "target_lt_next_or_sentinel")


def update_leaf(cs: ConstraintSystem, old_leaf: Operand, new_leaf: Operand, path: Sequence[Operand],
                index_bits: Sequence[LinearCombination],
                label: str = "update") -> Tuple[LinearCombination, LinearCombination]:
    """Roots before and after replacing one leaf, both from the same sibling path"""
    with cs.scope(label):
        old_root = merkle_root(cs, old_leaf, path, index_bits, "old")
        new_root = merkle_root(cs, new_leaf, path, index_bits, "new")
    return old_root, new_root


def assert_non_membership(cs: ConstraintSystem, root: Operand, target: Operand,
                          low: LowElementWires, depth: int, label: str = "non_membership"):
    with cs.scope(label):
        assert_low_element_brackets(cs, low.value, target, low.next_value)
        leaf = leaf_hash_gadget(cs, low.value, low.next_index, low.next_value, "low_leaf")
        bits = index_to_bits(cs, low.index, depth, "low_index")
        computed = merkle_root(cs, leaf, low.path, bits, "low_path")
        cs.enforce_equal(computed, root, "low_leaf_in_tree", Violation.MEMBERSHIP)


def insert_leaf(cs: ConstraintSystem, root_before: Operand, value: Operand, new_index: Operand,
                low: LowElementWires, new_path: Sequence[Operand], depth: int,
                label: str = "insert") -> LinearCombination:
    """
    One insertion step: check ordering, repoint the low element at the new leaf
    (giving the intermediate root), then append the new leaf into the empty slot
    at new_index. Returns the root after insertion.
    """
    with cs.scope(label):
        assert_low_element_brackets(cs, low.value, value, low.next_value)

        low_bits = index_to_bits(cs, low.index, depth, "low_index")
        low_old = leaf_hash_gadget(cs, low.value, low.next_index, low.next_value, "low_old")
        low_new = leaf_hash_gadget(cs, low.value, new_index, value, "low_new")
        checked_before, intermediate = update_leaf(cs, low_old, low_new, low.path, low_bits, "low_update")
        cs.enforce_equal(checked_before, root_before, "low_leaf_in_tree", Violation.MEMBERSHIP)

        new_bits = index_to_bits(cs, new_index, depth, "new_index")
        new_leaf = leaf_hash_gadget(cs, value, low.next_index, low.next_value, "new_leaf")
        checked_empty, root_after = update_leaf(
            cs, EMPTY_LEAF_HASH, new_leaf, new_path, new_bits, "append")
        cs.enforce_equal(checked_empty, intermediate, "slot_empty", Violation.MEMBERSHIP)

    return root_after
