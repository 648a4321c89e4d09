"""
Shielded pool circuits
Transaction, nullifier batch-insertion and nullifier non-membership circuits
"""

from .base import Circuit, CircuitConfig, CircuitKind
from .params import TransactParams, asset_id_from_mint, public_amount_to_field, field_to_signed
from .transaction import (
    TransactionCircuit,
    TransactionWitness,
    InputNote,
    OutputNote,
    RosterSlot,
    RewardLine,
    PublicLine,
)
from .nullifier_batch import NullifierBatchInsertCircuit, NullifierBatchWitness
from .nullifier_non_membership import NullifierNonMembershipCircuit, NonMembershipBatchWitness
from .variants import VARIANTS, build_circuit, get_variant

__all__ = [
    # Base
    'Circuit',
    'CircuitConfig',
    'CircuitKind',

    # Transaction
    'TransactParams',
    'asset_id_from_mint',
    'public_amount_to_field',
    'field_to_signed',
    'TransactionCircuit',
    'TransactionWitness',
    'InputNote',
    'OutputNote',
    'RosterSlot',
    'RewardLine',
    'PublicLine',

    # Nullifier tree
    'NullifierBatchInsertCircuit',
    'NullifierBatchWitness',
    'NullifierNonMembershipCircuit',
    'NonMembershipBatchWitness',

    # Variants
    'VARIANTS',
    'build_circuit',
    'get_variant',
]
