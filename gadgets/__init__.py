"""
Constraint gadgets for the shielded pool circuits
Each gadget has a native counterpart used for witness generation and tests
"""

from .poseidon import poseidon_hash, poseidon_gadget, poseidon_parameters, PoseidonParameters
from .bits import (
    num_to_bits,
    num_to_bits_strict,
    range_check,
    is_zero,
    is_nonzero,
    is_equal,
    assert_not_equal,
)
from .comparators import less_than, less_equal, greater_than, greater_equal, field_less_than
from .merkle import merkle_root, assert_membership, index_to_bits, compute_root
from .indexed_tree import (
    EMPTY_LEAF_HASH,
    LowElementWires,
    indexed_leaf_hash,
    allocate_low_element,
    leaf_hash_gadget,
    assert_low_element_brackets,
    assert_non_membership,
    update_leaf,
    insert_leaf,
)
from .keys import SpendingKey, DerivedKeys, KeyWires, derive_keys, derive_keys_gadget
from .notes import (
    Note,
    NoteWires,
    note_commitment,
    note_nullifier,
    allocate_note,
    assert_version,
    commitment_gadget,
    nullifier_gadget,
    assert_distinct,
    assert_chained,
)
from .selector import one_hot, allocate_selector, select, one_hot_select
from .rewards import divide_witness, accrued_reward, fixed_point_divide, reward_gadget

__all__ = [
    'poseidon_hash', 'poseidon_gadget', 'poseidon_parameters', 'PoseidonParameters',
    'num_to_bits', 'num_to_bits_strict', 'range_check', 'is_zero', 'is_nonzero',
    'is_equal', 'assert_not_equal',
    'less_than', 'less_equal', 'greater_than', 'greater_equal', 'field_less_than',
    'merkle_root', 'assert_membership', 'index_to_bits', 'compute_root',
    'EMPTY_LEAF_HASH', 'LowElementWires', 'indexed_leaf_hash', 'allocate_low_element',
    'leaf_hash_gadget', 'assert_low_element_brackets', 'assert_non_membership',
    'update_leaf', 'insert_leaf',
    'SpendingKey', 'DerivedKeys', 'KeyWires', 'derive_keys', 'derive_keys_gadget',
    'Note', 'NoteWires', 'note_commitment', 'note_nullifier', 'allocate_note',
    'assert_version', 'commitment_gadget', 'nullifier_gadget', 'assert_distinct',
    'assert_chained',
    'one_hot', 'allocate_selector', 'select', 'one_hot_select',
    'divide_witness', 'accrued_reward', 'fixed_point_divide', 'reward_gadget',
]
