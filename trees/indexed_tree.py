"""
Indexed Merkle tree (nullifier set)
Sorted linked list of leaves embedded in a fixed-depth Merkle tree, with witness
builders for insertion, non-membership and membership proofs
"""

import bisect
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from gadgets.indexed_tree import EMPTY_LEAF_HASH, indexed_leaf_hash
from r1cs.field import BN254_SCALAR_PRIME

from .merkle_tree import MerkleTree, TreeFullError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedLeaf:
    value: int
    next_index: int
    next_value: int

    def hash(self) -> int:
        return indexed_leaf_hash(self.value, self.next_index, self.next_value)


@dataclass
class InsertionWitness:
    """Everything one insertion step needs, plus the roots it passes through"""
    value: int
    new_index: int
    low_index: int
    low_leaf: IndexedLeaf
    low_path: List[int]
    new_path: List[int]
    root_before: int
    intermediate_root: int
    root_after: int


@dataclass
class BatchInsertion:
    old_root: int
    new_root: int
    start_index: int
    steps: List[InsertionWitness]

    @property
    def values(self) -> List[int]:
        return [step.value for step in self.steps]


@dataclass
class NonMembershipWitness:
    value: int
    low_index: int
    low_leaf: IndexedLeaf
    low_path: List[int]
    root: int


class IndexedMerkleTree:
    """Nullifier set; index 0 holds the genesis leaf (0, 0, 0)"""

    def __init__(self, depth: int):
        self.tree = MerkleTree(depth, zero_leaf=EMPTY_LEAF_HASH)
        self.leaves: List[IndexedLeaf] = []
        self._sorted: List[Tuple[int, int]] = []  # (value, index)
        self._append(IndexedLeaf(0, 0, 0))

    @property
    def depth(self) -> int:
        return self.tree.depth

    @property
    def root(self) -> int:
        return self.tree.root

    @property
    def next_index(self) -> int:
        return self.tree.next_index

    def __len__(self) -> int:
        """Number of inserted values, excluding genesis"""
        return len(self.leaves) - 1

    def __contains__(self, value: int) -> bool:
        if value == 0:
            return False
        position = bisect.bisect_left(self._sorted, (value, -1))
        return position < len(self._sorted) and self._sorted[position][0] == value

    def _append(self, leaf: IndexedLeaf) -> int:
        index = self.tree.append(leaf.hash())
        self.leaves.append(leaf)
        bisect.insort(self._sorted, (leaf.value, index))
        return index

    def _check_value(self, value: int):
        if not 0 < value < BN254_SCALAR_PRIME:
            raise ValueError(f"Value must be a nonzero field element, got {value}")

    def low_index(self, value: int) -> int:
        """Index of the largest stored value strictly below value"""
        position = bisect.bisect_left(self._sorted, (value, -1))
        return self._sorted[position - 1][1]

    def insert(self, value: int) -> InsertionWitness:
        """Splice value into the list: repoint the low leaf, then append the new leaf"""
        self._check_value(value)
        if value in self:
            raise ValueError(f"Value {value} already present")
        if self.tree.next_index >= self.tree.capacity:
            raise TreeFullError(f"Indexed tree of depth {self.depth} is full")

        root_before = self.root
        low_index = self.low_index(value)
        low_leaf = self.leaves[low_index]
        low_path = self.tree.path(low_index)
        new_index = self.tree.next_index

        updated_low = IndexedLeaf(low_leaf.value, new_index, value)
        self.leaves[low_index] = updated_low
        self.tree.update(low_index, updated_low.hash())
        intermediate_root = self.root

        new_path = self.tree.path(new_index)
        self._append(IndexedLeaf(value, low_leaf.next_index, low_leaf.next_value))

        return InsertionWitness(
            value=value,
            new_index=new_index,
            low_index=low_index,
            low_leaf=low_leaf,
            low_path=low_path,
            new_path=new_path,
            root_before=root_before,
            intermediate_root=intermediate_root,
            root_after=self.root
        )

    def _check_batch(self, values: Sequence[int]):
        seen = set()
        for value in values:
            self._check_value(value)
            if value in self or value in seen:
                raise ValueError(f"Value {value} already present")
            seen.add(value)
        if self.tree.next_index + len(values) > self.tree.capacity:
            raise TreeFullError(
                f"Indexed tree of depth {self.depth} has no room for {len(values)} more values")

    def insert_batch(self, values: Sequence[int]) -> BatchInsertion:
        """Insert every value or none of them"""
        self._check_batch(values)
        old_root = self.root
        start_index = self.next_index
        steps = [self.insert(value) for value in values]
        logger.debug(
            f"Inserted {len(steps)} values at {start_index}, root {old_root:#x} -> {self.root:#x}")
        return BatchInsertion(old_root, self.root, start_index, steps)

    def non_membership_witness(self, value: int) -> NonMembershipWitness:
        self._check_value(value)
        if value in self:
            raise ValueError(f"Value {value} is present; no non-membership witness exists")
        low_index = self.low_index(value)
        return NonMembershipWitness(
            value=value,
            low_index=low_index,
            low_leaf=self.leaves[low_index],
            low_path=self.tree.path(low_index),
            root=self.root
        )

    def membership_witness(self, value: int) -> Tuple[int, IndexedLeaf, List[int]]:
        """(index, leaf, path) for a stored value"""
        if value not in self:
            raise ValueError(f"Value {value} not present")
        position = bisect.bisect_left(self._sorted, (value, -1))
        index = self._sorted[position][1]
        return index, self.leaves[index], self.tree.path(index)

    def verify_membership(self, value: int) -> bool:
        if value not in self:
            return False
        index, leaf, path = self.membership_witness(value)
        return self.tree.verify_path(index, leaf.hash(), path)
