"""
Witness builders
Assemble consistent witnesses from native trees and notes, for the CLI demo,
benchmarks and tests.
"""

import logging
import secrets
from typing import List, Optional, Sequence, Tuple

from gadgets.constants import REWARD_SCALE
from gadgets.keys import SpendingKey
from gadgets.notes import Note
from gadgets.rewards import accrued_reward
from r1cs.field import BN254_SCALAR_PRIME
from trees.indexed_tree import IndexedMerkleTree
from trees.merkle_tree import MerkleTree

from .base import CircuitConfig, CircuitKind
from .nullifier_batch import NullifierBatchWitness
from .nullifier_non_membership import NonMembershipBatchWitness
from .params import TransactParams, asset_id_from_mint
from .transaction import InputNote, OutputNote, PublicLine, RewardLine, RosterSlot, TransactionWitness

logger = logging.getLogger(__name__)

DEMO_MINT = bytes(range(1, 33))


def _random_field() -> int:
    return secrets.randbelow(BN254_SCALAR_PRIME)


def _require(config: CircuitConfig, kind: CircuitKind):
    if config.kind != kind:
        raise ValueError(f"{config.name} is not a {kind.value} circuit")


# ============================================================================
# TRANSACTION
# ============================================================================


def transaction_witness(config: CircuitConfig, asset_id: int, spends: Sequence[Tuple[int, int]],
                        outputs: Sequence[int], public_amount: int = 0,
                        global_accumulator: int = REWARD_SCALE,
                        owner: Optional[SpendingKey] = None,
                        recipient: Optional[SpendingKey] = None) -> TransactionWitness:
    """
    Single-asset transaction: spends are (amount, note accumulator) pairs, outputs
    are amounts, public_amount > 0 deposits and < 0 withdraws. Slots left over are
    padded with dummy notes; every dummy output still chains to its paired nullifier.
    """
    _require(config, CircuitKind.TRANSACTION)
    if len(spends) > config.n_inputs or len(outputs) > config.n_outputs:
        raise ValueError(f"{config.name} holds {config.n_inputs} inputs and {config.n_outputs} outputs")
    if min(config.n_roster_slots, config.n_reward_lines) < 1:
        raise ValueError(f"{config.name} has no roster slot or reward line for {asset_id:#x}")
    if public_amount and config.n_public_lines < 1:
        raise ValueError(f"{config.name} has no public line")

    owner = owner or SpendingKey.generate()
    recipient = recipient or SpendingKey.generate()
    owner_pk = owner.public_key
    nk = owner.nullifier_key

    spent = [Note(asset_id, amount, owner_pk, _random_field(), accumulator, _random_field())
             for amount, accumulator in spends]
    spent += [Note.dummy(owner_pk) for _ in range(config.n_inputs - len(spends))]

    tree = MerkleTree(config.tree_depth)
    indices = [tree.append(note.commitment()) if not note.is_dummy else 0 for note in spent]
    inputs = [InputNote(note, owner, index, tree.path(index)) for note, index in zip(spent, indices)]
    nullifiers = [note.nullifier(nk) for note in spent]

    value_in = sum(note.amount + accrued_reward(note.amount, global_accumulator, note.reward_accumulator)[0]
                   for note in spent)
    if sum(outputs) != value_in + public_amount:
        raise ValueError(f"Outputs total {sum(outputs)}, expected {value_in + public_amount}")

    created = []
    for j in range(config.n_outputs):
        tag = nullifiers[j] if j < len(nullifiers) else _random_field()
        if j < len(outputs) and outputs[j]:
            created.append(Note(asset_id, outputs[j], recipient.public_key, _random_field(),
                                global_accumulator, tag))
        else:
            created.append(Note.dummy(recipient.public_key, uniqueness_tag=tag))

    roster = [RosterSlot(asset_id, True)] + [RosterSlot() for _ in range(config.n_roster_slots - 1)]
    reward_lines = ([RewardLine(asset_id, global_accumulator)]
                    + [RewardLine() for _ in range(config.n_reward_lines - 1)])
    public_lines = [PublicLine() for _ in range(config.n_public_lines)]
    params = TransactParams.empty(config.n_public_lines, config.n_outputs)
    if public_amount:
        public_lines[0] = PublicLine(asset_id, public_amount, True)
        params.asset_ids[0] = asset_id
        params.ext_amounts[0] = public_amount

    logger.debug(f"Built {config.name} witness: {len(spends)} spends, {len(outputs)} outputs, "
                 f"public amount {public_amount}")
    return TransactionWitness(
        commitment_root=tree.root,
        params_hash=params.params_hash(),
        roster=roster,
        reward_lines=reward_lines,
        public_lines=public_lines,
        inputs=inputs,
        outputs=[OutputNote(note) for note in created]
    )


def merge_witness(config: CircuitConfig, amounts: Sequence[int] = (100, 50)) -> TransactionWitness:
    """Join equal-accumulator notes of one asset into a single output"""
    asset_id = asset_id_from_mint(DEMO_MINT)
    return transaction_witness(config, asset_id, [(amount, REWARD_SCALE) for amount in amounts],
                               [sum(amounts)])


# ============================================================================
# NULLIFIER TREE
# ============================================================================


def batch_insert_witness(config: CircuitConfig, values: Sequence[int],
                         tree: Optional[IndexedMerkleTree] = None
                         ) -> Tuple[NullifierBatchWitness, IndexedMerkleTree]:
    """Insert values into tree (a fresh one by default) and capture the batch witness"""
    _require(config, CircuitKind.NULLIFIER_BATCH_INSERT)
    if tree is None:
        tree = IndexedMerkleTree(config.tree_depth)
    batch = tree.insert_batch(values)
    return NullifierBatchWitness.from_batch(batch), tree


def non_membership_witness(config: CircuitConfig, tree: IndexedMerkleTree,
                           values: Sequence[int]) -> NonMembershipBatchWitness:
    _require(config, CircuitKind.NULLIFIER_NON_MEMBERSHIP)
    proofs = [tree.non_membership_witness(value) for value in values]
    return NonMembershipBatchWitness(tree.root, proofs)


def random_nullifiers(count: int) -> List[int]:
    return [_random_field() or 1 for _ in range(count)]
