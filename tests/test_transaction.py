"""
Transaction circuit: end-to-end scenarios and one failure per invariant
"""

from dataclasses import replace

import pytest

from circuits import (
    VARIANTS,
    CircuitConfig,
    CircuitKind,
    PublicLine,
    RosterSlot,
    TransactionCircuit,
    build_circuit,
)
from circuits.scenarios import merge_witness, transaction_witness
from gadgets.constants import REWARD_SCALE
from r1cs import BN254_SCALAR_PRIME as P, UnsatisfiableWitnessError, Violation

NOTE_ACC = REWARD_SCALE
GLOBAL_ACC = REWARD_SCALE + 5 * 10 ** 16


def _violations(config, witness):
    with pytest.raises(UnsatisfiableWitnessError) as info:
        TransactionCircuit(config).check(witness)
    return info.value.violations


def _structure(cs):
    return [(c.label, c.violation, c.a.terms, c.b.terms, c.c.terms) for c in cs.constraints]


class TestScenarios:

    def test_merge_two_notes_into_one(self, tx_config):
        witness = merge_witness(tx_config)
        assert [inp.note.amount for inp in witness.inputs] == [100, 50]
        assert witness.outputs[0].note.amount == 150
        assert witness.outputs[1].note.is_dummy

        cs = TransactionCircuit(tx_config).check(witness)
        assert cs.num_public == tx_config.num_public_inputs
        assert cs.public_values() == witness.public_inputs()

    def test_two_same_asset_slots_violate_uniqueness(self, tx_config, asset_id):
        witness = merge_witness(tx_config)
        witness.roster[1] = RosterSlot(asset_id, True)
        witness.inputs[1].slot = 1
        assert Violation.UNIQUENESS in _violations(tx_config, witness)

    def test_empty_transaction_balances(self, asset_id):
        config = CircuitConfig("transaction_0x0", CircuitKind.TRANSACTION, 4, n_inputs=0, n_outputs=0,
                               n_reward_lines=2, n_public_lines=1, n_roster_slots=2)
        witness = transaction_witness(config, asset_id, [], [])
        TransactionCircuit(config).check(witness)

        witness.roster = [RosterSlot(), RosterSlot()]
        TransactionCircuit(config).check(witness)

    def test_all_dummy_notes(self, tx_config, asset_id):
        witness = transaction_witness(tx_config, asset_id, [], [])
        assert all(inp.note.is_dummy for inp in witness.inputs)
        TransactionCircuit(tx_config).check(witness)

    def test_yield_is_added_to_spent_value(self, tx_config, asset_id):
        witness = transaction_witness(tx_config, asset_id, [(100, NOTE_ACC)], [105],
                                      global_accumulator=GLOBAL_ACC)
        TransactionCircuit(tx_config).check(witness)

        witness.outputs[0].note.amount = 104
        assert Violation.CONSERVATION in _violations(tx_config, witness)

    def test_deposit(self, tx_config, asset_id):
        witness = transaction_witness(tx_config, asset_id, [], [40], public_amount=40)
        cs = TransactionCircuit(tx_config).check(witness)
        assert cs.public_values()[3] == 40

    def test_withdrawal(self, tx_config, asset_id):
        witness = transaction_witness(tx_config, asset_id, [(100, NOTE_ACC)], [60], public_amount=-40,
                                      global_accumulator=NOTE_ACC)
        cs = TransactionCircuit(tx_config).check(witness)
        assert cs.public_values()[2] == asset_id
        assert cs.public_values()[3] == P - 40

    def test_balance_mismatch_is_rejected_natively(self, tx_config, asset_id):
        with pytest.raises(ValueError):
            transaction_witness(tx_config, asset_id, [(100, NOTE_ACC)], [101], global_accumulator=NOTE_ACC)


class TestViolations:

    def test_conservation(self, tx_config):
        witness = merge_witness(tx_config)
        witness.outputs[0].note.amount = 151
        assert _violations(tx_config, witness) == {Violation.CONSERVATION}

    def test_accumulator_ahead_of_registry(self, tx_config):
        witness = merge_witness(tx_config)
        witness.inputs[0].note.reward_accumulator = 2 * REWARD_SCALE
        assert Violation.ACCUMULATOR_BOUND in _violations(tx_config, witness)

    def test_output_snapshot_must_equal_registry(self, tx_config):
        witness = merge_witness(tx_config)
        witness.outputs[0].note.reward_accumulator = 0
        assert _violations(tx_config, witness) == {Violation.ACCUMULATOR_BOUND}

    def test_spent_note_not_in_tree(self, tx_config):
        witness = merge_witness(tx_config)
        witness.commitment_root += 1
        assert _violations(tx_config, witness) == {Violation.MEMBERSHIP}

    def test_wrong_public_nullifier(self, tx_config):
        witness = merge_witness(tx_config)
        nullifiers = witness.nullifiers()
        witness.public_nullifiers = [nullifiers[0], nullifiers[1] + 1]
        assert _violations(tx_config, witness) == {Violation.NULLIFIER}

    def test_duplicate_nullifiers(self, tx_config):
        witness = merge_witness(tx_config)
        nullifiers = witness.nullifiers()
        witness.public_nullifiers = [nullifiers[0], nullifiers[0]]
        assert Violation.UNIQUENESS in _violations(tx_config, witness)

    def test_wrong_public_commitment(self, tx_config):
        witness = merge_witness(tx_config)
        commitments = witness.commitments()
        witness.public_commitments = [commitments[0] + 1, commitments[1]]
        assert _violations(tx_config, witness) == {Violation.COMMITMENT}

    def test_unchained_output(self, tx_config):
        witness = merge_witness(tx_config)
        witness.outputs[0].note.uniqueness_tag += 1
        assert _violations(tx_config, witness) == {Violation.CHAINING}

    def test_note_version(self, tx_config):
        witness = merge_witness(tx_config)
        witness.outputs[0].note.version = 2
        assert Violation.VERSION in _violations(tx_config, witness)

    def test_amount_range(self, tx_config):
        witness = merge_witness(tx_config)
        witness.outputs[0].note.amount = 2 ** 64 + 150
        assert Violation.RANGE in _violations(tx_config, witness)

    def test_params_hash_range(self, tx_config):
        witness = merge_witness(tx_config)
        witness.params_hash = 1 << 253
        assert _violations(tx_config, witness) == {Violation.RANGE}

    def test_disabled_slot_carries_asset(self, tx_config):
        witness = merge_witness(tx_config)
        witness.roster[1] = RosterSlot(asset_id=5, enabled=False)
        assert Violation.CANONICAL in _violations(tx_config, witness)

    def test_disabled_public_line_carries_amount(self, tx_config, asset_id):
        witness = merge_witness(tx_config)
        witness.public_lines[0] = PublicLine(asset_id, 10, enabled=False)
        assert Violation.CANONICAL in _violations(tx_config, witness)

    def test_note_routed_to_wrong_asset_slot(self, tx_config):
        witness = merge_witness(tx_config)
        witness.inputs[0].slot = 1
        assert Violation.SELECTOR_BINDING in _violations(tx_config, witness)

    def test_reward_line_for_other_asset(self, tx_config):
        witness = merge_witness(tx_config)
        witness.reward_routes = [1, None]
        assert Violation.SELECTOR_BINDING in _violations(tx_config, witness)


class TestStructure:

    def test_constraints_independent_of_witness(self, tx_config, asset_id):
        circuit = TransactionCircuit(tx_config)
        merge = circuit.build(merge_witness(tx_config))
        empty = circuit.build(transaction_witness(tx_config, asset_id, [], []))
        deposit = circuit.build(transaction_witness(tx_config, asset_id, [], [40], public_amount=40))
        assert _structure(merge) == _structure(empty) == _structure(deposit)
        assert merge.num_wires == empty.num_wires == deposit.num_wires

    def test_witness_shape_checked(self, tx_config):
        witness = merge_witness(tx_config)
        witness.inputs = witness.inputs[:1]
        with pytest.raises(ValueError):
            TransactionCircuit(tx_config).build(witness)

    def test_path_length_checked(self, tx_config):
        witness = merge_witness(tx_config)
        with pytest.raises(ValueError):
            TransactionCircuit(tx_config.with_depth(5)).build(witness)

    def test_public_input_counts_of_protocol_variants(self):
        assert VARIANTS['transaction_2x2'].num_public_inputs == 2 + 2 * 2 + 2 + 2 + 2 * 8
        assert VARIANTS['transaction_4x4'].num_public_inputs == 2 + 2 * 2 + 4 + 4 + 2 * 8
        assert VARIANTS['transaction_16x2'].num_public_inputs == 2 + 2 * 2 + 16 + 2 + 2 * 8
        assert all(config.tree_depth == 26 for config in VARIANTS.values())

    def test_build_circuit_dispatch(self, tx_config):
        assert isinstance(build_circuit(tx_config), TransactionCircuit)
        with pytest.raises(ValueError):
            TransactionCircuit(replace(tx_config, kind=CircuitKind.NULLIFIER_BATCH_INSERT, batch_size=1))
