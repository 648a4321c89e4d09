"""
Append-only commitment tree
Fixed-depth Poseidon Merkle tree storing only non-empty nodes
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from gadgets.merkle import compute_root
from gadgets.poseidon import hash2
from r1cs.field import BN254_SCALAR_PRIME

logger = logging.getLogger(__name__)

MAX_DEPTH = 32


class TreeFullError(Exception):
    """No empty leaf slot remains"""
    pass


@dataclass
class MerkleTree:
    """Fixed-depth Merkle tree filled left to right"""
    depth: int
    zero_leaf: int = 0
    empty_nodes: List[int] = field(default_factory=list)
    nodes: Dict[Tuple[int, int], int] = field(default_factory=dict)  # (level, index) -> hash
    next_index: int = 0

    def __post_init__(self):
        if not 1 <= self.depth <= MAX_DEPTH:
            raise ValueError(f"Depth must be in [1, {MAX_DEPTH}], got {self.depth}")
        self.empty_nodes = self._compute_empty_nodes()

    def _compute_empty_nodes(self) -> List[int]:
        """Root of an empty subtree at each level, leaves first"""
        empty = [self.zero_leaf]
        for _ in range(self.depth):
            empty.append(hash2(empty[-1], empty[-1]))
        return empty

    @property
    def capacity(self) -> int:
        return 1 << self.depth

    @property
    def root(self) -> int:
        return self._node(self.depth, 0)

    def _node(self, level: int, index: int) -> int:
        return self.nodes.get((level, index), self.empty_nodes[level])

    def _check_index(self, index: int):
        if index < 0 or index >= self.capacity:
            raise ValueError(f"Index {index} out of bounds for depth {self.depth}")

    def update(self, index: int, value: int):
        """Overwrite a leaf and recompute its ancestors"""
        self._check_index(index)
        if value < 0 or value >= BN254_SCALAR_PRIME:
            raise ValueError(f"Value {value} outside field bounds")

        self.nodes[(0, index)] = value
        for level in range(self.depth):
            index //= 2
            left = self._node(level, 2 * index)
            right = self._node(level, 2 * index + 1)
            self.nodes[(level + 1, index)] = hash2(left, right)

    def append(self, value: int) -> int:
        if self.next_index >= self.capacity:
            raise TreeFullError(f"Tree of depth {self.depth} is full")
        index = self.next_index
        self.update(index, value)
        self.next_index += 1
        return index

    def extend(self, values: Sequence[int]) -> List[int]:
        return [self.append(value) for value in values]

    def leaf(self, index: int) -> int:
        self._check_index(index)
        return self._node(0, index)

    def path(self, index: int) -> List[int]:
        """Sibling hashes from the leaf level up"""
        self._check_index(index)
        return [self._node(level, (index >> level) ^ 1) for level in range(self.depth)]

    def verify_path(self, index: int, leaf: int, path: Sequence[int]) -> bool:
        if index < 0 or index >= self.capacity or len(path) != self.depth:
            return False
        return compute_root(leaf, path, index) == self.root
