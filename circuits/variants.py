"""
Named circuit variants
Each shape is its own circuit with its own verifying key; these are constants,
not configuration.
"""

from typing import Dict

from gadgets.constants import COMMITMENT_TREE_DEPTH, MAX_NULLIFIER_BATCH_SIZE, NULLIFIER_TREE_DEPTH

from .base import Circuit, CircuitConfig, CircuitKind
from .nullifier_batch import NullifierBatchInsertCircuit
from .nullifier_non_membership import NullifierNonMembershipCircuit
from .transaction import TransactionCircuit

TRANSACTION_2X2 = CircuitConfig("transaction_2x2", CircuitKind.TRANSACTION, COMMITMENT_TREE_DEPTH,
                                n_inputs=2, n_outputs=2)
TRANSACTION_4X4 = CircuitConfig("transaction_4x4", CircuitKind.TRANSACTION, COMMITMENT_TREE_DEPTH,
                                n_inputs=4, n_outputs=4)
TRANSACTION_16X2 = CircuitConfig("transaction_16x2", CircuitKind.TRANSACTION, COMMITMENT_TREE_DEPTH,
                                 n_inputs=16, n_outputs=2)
NULLIFIER_BATCH_INSERT = CircuitConfig("nullifier_batch_insert", CircuitKind.NULLIFIER_BATCH_INSERT,
                                       NULLIFIER_TREE_DEPTH, batch_size=MAX_NULLIFIER_BATCH_SIZE)
NULLIFIER_NON_MEMBERSHIP = CircuitConfig("nullifier_non_membership", CircuitKind.NULLIFIER_NON_MEMBERSHIP,
                                         NULLIFIER_TREE_DEPTH, batch_size=4)

VARIANTS: Dict[str, CircuitConfig] = {
    config.name: config
    for config in (TRANSACTION_2X2, TRANSACTION_4X4, TRANSACTION_16X2,
                   NULLIFIER_BATCH_INSERT, NULLIFIER_NON_MEMBERSHIP)
}

_CIRCUITS = {
    CircuitKind.TRANSACTION: TransactionCircuit,
    CircuitKind.NULLIFIER_BATCH_INSERT: NullifierBatchInsertCircuit,
    CircuitKind.NULLIFIER_NON_MEMBERSHIP: NullifierNonMembershipCircuit,
}


def get_variant(name: str) -> CircuitConfig:
    if name not in VARIANTS:
        raise ValueError(f"Unknown circuit variant {name!r}; known: {', '.join(VARIANTS)}")
    return VARIANTS[name]


def build_circuit(config: CircuitConfig) -> Circuit:
    return _CIRCUITS[config.kind](config)
