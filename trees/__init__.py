"""
Native trees used to build circuit witnesses
"""

from .merkle_tree import MerkleTree, TreeFullError
from .indexed_tree import (
    IndexedMerkleTree,
    IndexedLeaf,
    InsertionWitness,
    BatchInsertion,
    NonMembershipWitness,
)

__all__ = [
    'MerkleTree',
    'TreeFullError',
    'IndexedMerkleTree',
    'IndexedLeaf',
    'InsertionWitness',
    'BatchInsertion',
    'NonMembershipWitness',
]
