"""
Fixed-depth Merkle inclusion proof
"""

from typing import List, Sequence

from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.constraint_system import Operand

from .bits import range_check
from .poseidon import hash2, poseidon_gadget


def index_to_bits(cs: ConstraintSystem, index: Operand, depth: int,
                  label: str = "index") -> List[LinearCombination]:
    """Path directions, least significant level first; index must be below 2^depth"""
    return range_check(cs, index, depth, label)


def merkle_root(cs: ConstraintSystem, leaf: Operand, path: Sequence[Operand],
                index_bits: Sequence[LinearCombination], label: str = "merkle") -> LinearCombination:
    """Root implied by leaf, siblings and direction bits (bit set = node is a right child)"""
    if len(path) != len(index_bits):
        raise ValueError(
            f"Path has {len(path)} siblings but {len(index_bits)} direction bits")

    with cs.scope(label):
        node = LinearCombination.coerce(leaf)
        for level, (sibling, bit) in enumerate(zip(path, index_bits)):
            sibling = LinearCombination.coerce(sibling)
            left = node + cs.mul(bit, sibling - node, f"l{level}_select")
            right = node + sibling - left
            node = poseidon_gadget(cs, [left, right], f"l{level}_hash")
    return node


def assert_membership(cs: ConstraintSystem, root: Operand, leaf: Operand, path: Sequence[Operand],
                      index_bits: Sequence[LinearCombination], label: str = "membership"):
    computed = merkle_root(cs, leaf, path, index_bits, label)
    cs.enforce_equal(computed, root, f"{label}_root", Violation.MEMBERSHIP)


def compute_root(leaf: int, path: Sequence[int], index: int) -> int:
    """Native counterpart of merkle_root"""
    node = leaf
    for level, sibling in enumerate(path):
        if (index >> level) & 1:
            node = hash2(sibling, node)
        else:
            node = hash2(node, sibling)
    return node
