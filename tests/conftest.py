"""
Shared fixtures: small tree depths and shapes keep synthesis fast
"""

import pytest

from circuits import CircuitConfig, CircuitKind, asset_id_from_mint
from circuits.scenarios import DEMO_MINT
from gadgets.keys import SpendingKey
from r1cs import ConstraintSystem
from trees import IndexedMerkleTree

TEST_DEPTH = 4


@pytest.fixture
def cs():
    return ConstraintSystem("test")


@pytest.fixture
def tx_config():
    return CircuitConfig("transaction_test", CircuitKind.TRANSACTION, TEST_DEPTH,
                         n_inputs=2, n_outputs=2, n_reward_lines=2, n_public_lines=1, n_roster_slots=2)


@pytest.fixture
def batch_config():
    return CircuitConfig("batch_test", CircuitKind.NULLIFIER_BATCH_INSERT, TEST_DEPTH, batch_size=3)


@pytest.fixture
def non_membership_config():
    return CircuitConfig("non_membership_test", CircuitKind.NULLIFIER_NON_MEMBERSHIP, TEST_DEPTH, batch_size=1)


@pytest.fixture
def asset_id():
    return asset_id_from_mint(DEMO_MINT)


@pytest.fixture
def spending_key():
    return SpendingKey(ask=123456789, nsk=987654321)


@pytest.fixture
def nullifier_tree():
    """{10, 50, 90} linked in order, 90 carrying the sentinel"""
    tree = IndexedMerkleTree(TEST_DEPTH)
    tree.insert_batch([50, 10, 90])
    return tree
