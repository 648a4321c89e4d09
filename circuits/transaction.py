"""
Transaction circuit
Spends input notes and creates output notes across several assets at once while
hiding which assets are involved: values route through a private roster of asset
slots via one-hot selectors, accrue yield from public reward accumulators, and
must balance independently in every slot.

Public inputs, in order:
    commitment_root, params_hash,
    public_asset_id[n_public_lines], public_amount[n_public_lines],
    nullifier[n_inputs], commitment[n_outputs],
    reward_accumulator[n_reward_lines], reward_asset_id[n_reward_lines]
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from gadgets.bits import is_equal, is_nonzero, range_check
from gadgets.comparators import less_equal
from gadgets.constants import ACCUMULATOR_BITS, AMOUNT_BITS, PARAMS_HASH_BITS
from gadgets.keys import SpendingKey, derive_keys_gadget
from gadgets.merkle import index_to_bits, merkle_root
from gadgets.notes import (
    Note,
    allocate_note,
    assert_chained,
    assert_distinct,
    assert_version,
    commitment_gadget,
    nullifier_gadget,
)
from gadgets.rewards import accrued_reward, reward_gadget
from gadgets.selector import allocate_selector, one_hot_select, select
from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.field import FIELD_BITS, to_field

from .base import Circuit, CircuitKind

logger = logging.getLogger(__name__)


# ============================================================================
# WITNESS
# ============================================================================


@dataclass
class RosterSlot:
    """Private routing slot; disabled slots carry asset id 0"""
    asset_id: int = 0
    enabled: bool = False


@dataclass
class RewardLine:
    """Public reward-registry snapshot entry"""
    asset_id: int = 0
    global_accumulator: int = 0


@dataclass
class PublicLine:
    """Boundary crossing: positive amount deposits, negative withdraws"""
    asset_id: int = 0
    amount: int = 0
    enabled: bool = False


@dataclass
class InputNote:
    note: Note
    spending_key: SpendingKey
    leaf_index: int = 0
    path: List[int] = field(default_factory=list)
    slot: Optional[int] = None
    reward_remainder: Optional[int] = None


@dataclass
class OutputNote:
    note: Note
    slot: Optional[int] = None


@dataclass
class TransactionWitness:
    """
    Full prover input. Routing choices (slot, reward_routes, public_routes) and
    reward remainders are hints; when left as None they are derived from asset ids.
    """
    commitment_root: int
    params_hash: int
    roster: List[RosterSlot]
    reward_lines: List[RewardLine]
    public_lines: List[PublicLine]
    inputs: List[InputNote]
    outputs: List[OutputNote]
    reward_routes: Optional[List[Optional[int]]] = None
    public_routes: Optional[List[Optional[int]]] = None
    public_nullifiers: Optional[List[int]] = None
    public_commitments: Optional[List[int]] = None

    def nullifiers(self) -> List[int]:
        if self.public_nullifiers is not None:
            return list(self.public_nullifiers)
        return [inp.note.nullifier(inp.spending_key.nullifier_key) for inp in self.inputs]

    def commitments(self) -> List[int]:
        if self.public_commitments is not None:
            return list(self.public_commitments)
        return [out.note.commitment() for out in self.outputs]

    def roster_slot_for(self, asset_id: int) -> Optional[int]:
        for index, slot in enumerate(self.roster):
            if slot.enabled and slot.asset_id == asset_id:
                return index
        return None

    def reward_line_for(self, slot_index: int) -> Optional[int]:
        if self.reward_routes is not None:
            return self.reward_routes[slot_index]
        slot = self.roster[slot_index]
        if not slot.enabled:
            return None
        for index, line in enumerate(self.reward_lines):
            if line.asset_id == slot.asset_id:
                return index
        return None

    def public_line_slot(self, line_index: int) -> Optional[int]:
        if self.public_routes is not None:
            return self.public_routes[line_index]
        line = self.public_lines[line_index]
        return self.roster_slot_for(line.asset_id) if line.enabled else None

    def note_slot(self, note: Note, explicit: Optional[int]) -> Optional[int]:
        if explicit is not None:
            return explicit
        return None if note.is_dummy else self.roster_slot_for(note.asset_id)

    def slot_accumulator(self, slot_index: Optional[int]) -> int:
        if slot_index is None:
            return 0
        line = self.reward_line_for(slot_index)
        return 0 if line is None else self.reward_lines[line].global_accumulator

    def public_inputs(self) -> List[int]:
        """Public input vector in verification-key order"""
        return (
            [self.commitment_root, self.params_hash]
            + [line.asset_id for line in self.public_lines]
            + [to_field(line.amount) for line in self.public_lines]
            + self.nullifiers()
            + self.commitments()
            + [line.global_accumulator for line in self.reward_lines]
            + [line.asset_id for line in self.reward_lines]
        )


# ============================================================================
# CIRCUIT
# ============================================================================


@dataclass
class _Publics:
    root: LinearCombination
    params_hash: LinearCombination
    public_asset_ids: List[LinearCombination]
    public_amounts: List[LinearCombination]
    nullifiers: List[LinearCombination]
    commitments: List[LinearCombination]
    reward_accumulators: List[LinearCombination]
    reward_asset_ids: List[LinearCombination]


class TransactionCircuit(Circuit):
    """Multi-asset private transfer with hidden routing and yield accrual"""

    kind = CircuitKind.TRANSACTION

    def validate_witness(self, witness: TransactionWitness):
        cfg = self.config
        expected = {
            'roster': cfg.n_roster_slots,
            'reward_lines': cfg.n_reward_lines,
            'public_lines': cfg.n_public_lines,
            'inputs': cfg.n_inputs,
            'outputs': cfg.n_outputs,
        }
        for name, count in expected.items():
            actual = len(getattr(witness, name))
            if actual != count:
                raise ValueError(f"{self.name}: expected {count} {name}, got {actual}")
        for i, inp in enumerate(witness.inputs):
            if len(inp.path) != cfg.tree_depth:
                raise ValueError(
                    f"{self.name}: input {i} path has {len(inp.path)} siblings, expected {cfg.tree_depth}")
        for name, count in (('reward_routes', cfg.n_roster_slots),
                            ('public_routes', cfg.n_public_lines),
                            ('public_nullifiers', cfg.n_inputs),
                            ('public_commitments', cfg.n_outputs)):
            values = getattr(witness, name)
            if values is not None and len(values) != count:
                raise ValueError(f"{self.name}: expected {count} {name}, got {len(values)}")

    def synthesize(self, cs: ConstraintSystem, witness: TransactionWitness):
        publics = self._allocate_publics(cs, witness)
        self._bind_ranges(cs, publics)

        roster_enabled, roster_assets = self._roster(cs, witness)
        roster_accumulators = self._select_reward_lines(cs, witness, publics, roster_enabled, roster_assets)
        public_bits = self._route_public_lines(cs, witness, publics, roster_enabled, roster_assets)

        input_bits, input_values = [], []
        for i, inp in enumerate(witness.inputs):
            with cs.scope(f"input{i}"):
                bits, value, nullifier = self._spend(
                    cs, witness, inp, publics, roster_enabled, roster_assets, roster_accumulators)
                cs.enforce_equal(nullifier, publics.nullifiers[i], "nullifier_public", Violation.NULLIFIER)
            input_bits.append(bits)
            input_values.append(value)

        assert_distinct(cs, publics.nullifiers, "nullifier_uniqueness")

        output_bits, output_amounts = [], []
        for j, out in enumerate(witness.outputs):
            with cs.scope(f"output{j}"):
                paired = publics.nullifiers[j] if j < len(witness.inputs) else None
                bits, amount = self._create(
                    cs, witness, out, publics.commitments[j], paired,
                    roster_enabled, roster_assets, roster_accumulators)
            output_bits.append(bits)
            output_amounts.append(amount)

        with cs.scope("conservation", Violation.CONSERVATION):
            for s in range(self.config.n_roster_slots):
                inflow = LinearCombination.sum(
                    [cs.mul(bits[s], value, f"slot{s}_in{i}")
                     for i, (bits, value) in enumerate(zip(input_bits, input_values))]
                    + [cs.mul(bits[s], amount, f"slot{s}_public{l}")
                       for l, (bits, amount) in enumerate(zip(public_bits, publics.public_amounts))]
                )
                outflow = LinearCombination.sum(
                    cs.mul(bits[s], amount, f"slot{s}_out{j}")
                    for j, (bits, amount) in enumerate(zip(output_bits, output_amounts))
                )
                cs.enforce_equal(inflow, outflow, f"slot{s}_balance")

    def _allocate_publics(self, cs: ConstraintSystem, witness: TransactionWitness) -> _Publics:
        with cs.scope("public"):
            return _Publics(
                root=cs.public_input(witness.commitment_root, "commitment_root"),
                params_hash=cs.public_input(witness.params_hash, "params_hash"),
                public_asset_ids=[cs.public_input(line.asset_id, f"public_asset_id{l}")
                                  for l, line in enumerate(witness.public_lines)],
                public_amounts=[cs.public_input(to_field(line.amount), f"public_amount{l}")
                                for l, line in enumerate(witness.public_lines)],
                nullifiers=[cs.public_input(value, f"nullifier{i}")
                            for i, value in enumerate(witness.nullifiers())],
                commitments=[cs.public_input(value, f"commitment{j}")
                             for j, value in enumerate(witness.commitments())],
                reward_accumulators=[cs.public_input(line.global_accumulator, f"reward_accumulator{k}")
                                     for k, line in enumerate(witness.reward_lines)],
                reward_asset_ids=[cs.public_input(line.asset_id, f"reward_asset_id{k}")
                                  for k, line in enumerate(witness.reward_lines)]
            )

    def _bind_ranges(self, cs: ConstraintSystem, publics: _Publics):
        # Public amounts are left unbound: withdrawals sit near the top of the field
        with cs.scope("range_binding", Violation.RANGE):
            range_check(cs, publics.params_hash, PARAMS_HASH_BITS, "params_hash")
            hashed = (
                [(f"public_asset_id{l}", v) for l, v in enumerate(publics.public_asset_ids)]
                + [(f"nullifier{i}", v) for i, v in enumerate(publics.nullifiers)]
                + [(f"commitment{j}", v) for j, v in enumerate(publics.commitments)]
                + [(f"reward_asset_id{k}", v) for k, v in enumerate(publics.reward_asset_ids)]
            )
            # Num2Bits(254) binding; every canonical element passes, so this excludes nothing
            for label, value in hashed:
                range_check(cs, value, FIELD_BITS, label)
            for k, value in enumerate(publics.reward_accumulators):
                range_check(cs, value, ACCUMULATOR_BITS, f"reward_accumulator{k}")

    def _roster(self, cs: ConstraintSystem, witness: TransactionWitness):
        with cs.scope("roster"):
            enabled = [cs.witness(int(slot.enabled), f"enabled{s}") for s, slot in enumerate(witness.roster)]
            assets = [cs.witness(slot.asset_id, f"asset_id{s}") for s, slot in enumerate(witness.roster)]

            with cs.scope("canonical", Violation.CANONICAL):
                for s in range(len(enabled)):
                    cs.enforce_boolean(enabled[s], f"enabled{s}_boolean")
                    cs.enforce(1 - enabled[s], assets[s], 0, f"disabled{s}_zero_asset")

            with cs.scope("uniqueness", Violation.UNIQUENESS):
                for a in range(len(enabled)):
                    for b in range(a + 1, len(enabled)):
                        both = cs.mul(enabled[a], enabled[b], f"both{a}_{b}")
                        same = is_equal(cs, assets[a], assets[b], f"same{a}_{b}")
                        cs.enforce(both, same, 0, f"distinct{a}_{b}")
        return enabled, assets

    def _select_reward_lines(self, cs: ConstraintSystem, witness: TransactionWitness, publics: _Publics,
                             roster_enabled, roster_assets) -> List[LinearCombination]:
        accumulators = []
        every_line = [1] * self.config.n_reward_lines
        with cs.scope("reward_selection"):
            for s in range(self.config.n_roster_slots):
                bits = allocate_selector(cs, witness.reward_line_for(s), self.config.n_reward_lines, f"slot{s}_bits")
                one_hot_select(cs, bits, every_line, publics.reward_asset_ids,
                               roster_enabled[s], roster_assets[s], f"slot{s}")
                accumulators.append(select(cs, bits, publics.reward_accumulators, f"slot{s}_accumulator"))
        return accumulators

    def _route_public_lines(self, cs: ConstraintSystem, witness: TransactionWitness, publics: _Publics,
                            roster_enabled, roster_assets) -> List[List[LinearCombination]]:
        routes = []
        with cs.scope("public_lines"):
            for l, line in enumerate(witness.public_lines):
                enabled = cs.witness(int(line.enabled), f"enabled{l}")
                with cs.scope("canonical", Violation.CANONICAL):
                    cs.enforce_boolean(enabled, f"enabled{l}_boolean")
                    cs.enforce(1 - enabled, publics.public_asset_ids[l], 0, f"disabled{l}_zero_asset")
                    cs.enforce(1 - enabled, publics.public_amounts[l], 0, f"disabled{l}_zero_amount")
                bits = allocate_selector(cs, witness.public_line_slot(l), self.config.n_roster_slots, f"line{l}_bits")
                one_hot_select(cs, bits, roster_enabled, roster_assets,
                               enabled, publics.public_asset_ids[l], f"line{l}")
                routes.append(bits)
        return routes

    def _route_note(self, cs: ConstraintSystem, witness: TransactionWitness, note, choice: Optional[int],
                    enabled, asset_id, roster_enabled, roster_assets, roster_accumulators):
        bits = allocate_selector(cs, witness.note_slot(note, choice), self.config.n_roster_slots, "route_bits")
        one_hot_select(cs, bits, roster_enabled, roster_assets, enabled,
                       cs.mul(enabled, asset_id, "routed_asset"), "route")
        return bits, select(cs, bits, roster_accumulators, "slot_accumulator")

    def _spend(self, cs: ConstraintSystem, witness: TransactionWitness, inp: InputNote, publics: _Publics,
               roster_enabled, roster_assets, roster_accumulators):
        keys = derive_keys_gadget(
            cs, cs.witness(inp.spending_key.ask, "ask"), cs.witness(inp.spending_key.nsk, "nsk"))
        note = allocate_note(cs, inp.note, owner_public_key=keys.pk)
        assert_version(cs, note)
        range_check(cs, note.amount, AMOUNT_BITS, "amount")
        enabled = is_nonzero(cs, note.amount, "enabled")

        commitment = commitment_gadget(cs, note)
        nullifier = nullifier_gadget(cs, keys.nk, note.uniqueness_tag, commitment)

        bits = index_to_bits(cs, cs.witness(inp.leaf_index, "leaf_index"), self.config.tree_depth, "leaf_index")
        path = [cs.witness(sibling, f"path{i}") for i, sibling in enumerate(inp.path)]
        root = merkle_root(cs, commitment, path, bits, "merkle")
        cs.enforce(enabled, root - publics.root, 0, "merkle_root", Violation.MEMBERSHIP)

        route, slot_accumulator = self._route_note(
            cs, witness, inp.note, inp.slot, enabled, note.asset_id,
            roster_enabled, roster_assets, roster_accumulators)

        with cs.scope("accumulator_bound", Violation.ACCUMULATOR_BOUND):
            not_ahead = less_equal(cs, note.reward_accumulator, slot_accumulator, "snapshot_le_global")
            cs.enforce(enabled, 1 - not_ahead, 0, "snapshot_not_ahead")

        remainder = inp.reward_remainder
        if remainder is None:
            global_acc = witness.slot_accumulator(witness.note_slot(inp.note, inp.slot))
            _, remainder = accrued_reward(inp.note.amount, global_acc, inp.note.reward_accumulator)
        _, value = reward_gadget(cs, note.amount, slot_accumulator, note.reward_accumulator,
                                 cs.witness(remainder, "reward_remainder"))
        return route, value, nullifier

    def _create(self, cs: ConstraintSystem, witness: TransactionWitness, out: OutputNote,
                public_commitment: LinearCombination, paired_nullifier: Optional[LinearCombination],
                roster_enabled, roster_assets, roster_accumulators):
        note = allocate_note(cs, out.note)
        assert_version(cs, note)
        range_check(cs, note.amount, AMOUNT_BITS, "amount")
        enabled = is_nonzero(cs, note.amount, "enabled")

        commitment = commitment_gadget(cs, note)
        cs.enforce_equal(commitment, public_commitment, "commitment_public", Violation.COMMITMENT)
        if paired_nullifier is not None:
            assert_chained(cs, enabled, note.uniqueness_tag, paired_nullifier)

        route, slot_accumulator = self._route_note(
            cs, witness, out.note, out.slot, enabled, note.asset_id,
            roster_enabled, roster_assets, roster_accumulators)
        cs.enforce(enabled, note.reward_accumulator - slot_accumulator, 0,
                   "snapshot_equals_global", Violation.ACCUMULATOR_BOUND)
        return route, note.amount
