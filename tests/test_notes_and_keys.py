"""
Key derivation chain, note commitment/nullifier and the note-level checks
"""

import pytest

from gadgets.constants import NOTE_VERSION
from gadgets.keys import SpendingKey, derive_keys, derive_keys_gadget
from gadgets.notes import (
    Note,
    allocate_note,
    assert_chained,
    assert_distinct,
    assert_version,
    commitment_gadget,
    note_commitment,
    nullifier_gadget,
)
from gadgets.poseidon import poseidon_hash
from r1cs import ConstraintSystem, UnsatisfiableWitnessError, Violation


@pytest.fixture
def note(spending_key, asset_id):
    return Note(asset_id, 100, spending_key.public_key, blinding=777, reward_accumulator=10 ** 18,
                uniqueness_tag=31337)


class TestKeys:

    def test_chain(self, spending_key):
        keys = derive_keys(spending_key.ask, spending_key.nsk)
        assert keys.ak == poseidon_hash([spending_key.ask])
        assert keys.nk == poseidon_hash([spending_key.nsk])
        assert keys.ivk == poseidon_hash([keys.ak, keys.nk])
        assert keys.pk == poseidon_hash([keys.ivk])
        assert spending_key.public_key == keys.pk
        assert spending_key.nullifier_key == keys.nk

    def test_gadget_matches_native(self, cs, spending_key):
        wires = derive_keys_gadget(cs, cs.witness(spending_key.ask, "ask"), cs.witness(spending_key.nsk, "nsk"))
        keys = spending_key.derive()
        assert [cs.value(w) for w in (wires.ak, wires.nk, wires.ivk, wires.pk)] == \
            [keys.ak, keys.nk, keys.ivk, keys.pk]
        assert cs.is_satisfied()

    def test_generated_keys_differ(self):
        assert SpendingKey.generate() != SpendingKey.generate()


class TestNotes:

    def test_commitment_covers_every_field(self, note):
        base = note.commitment()
        assert base == note_commitment(NOTE_VERSION, note.asset_id, note.amount, note.owner_public_key,
                                       note.blinding, note.reward_accumulator, note.uniqueness_tag)
        for name in ('asset_id', 'amount', 'owner_public_key', 'blinding', 'reward_accumulator',
                     'uniqueness_tag', 'version'):
            changed = Note(**{**note.__dict__, name: getattr(note, name) + 1})
            assert changed.commitment() != base

    def test_gadgets_match_native(self, cs, note, spending_key):
        wires = allocate_note(cs, note)
        commitment = commitment_gadget(cs, wires)
        nk = cs.witness(spending_key.nullifier_key, "nk")
        nullifier = nullifier_gadget(cs, nk, wires.uniqueness_tag, commitment)
        assert cs.value(commitment) == note.commitment()
        assert cs.value(nullifier) == note.nullifier(spending_key.nullifier_key)
        assert cs.is_satisfied()

    def test_input_note_owner_is_derived_key(self, cs, note, spending_key):
        keys = derive_keys_gadget(cs, cs.witness(spending_key.ask, "ask"), cs.witness(spending_key.nsk, "nsk"))
        wires = allocate_note(cs, note, owner_public_key=keys.pk)
        assert wires.owner_public_key is keys.pk
        assert cs.value(commitment_gadget(cs, wires)) == note.commitment()

    def test_dummy_note(self):
        dummy = Note.dummy(owner_public_key=5, uniqueness_tag=9)
        assert dummy.is_dummy
        assert dummy.amount == 0 and dummy.asset_id == 0
        assert dummy.uniqueness_tag == 9
        assert dummy.version == NOTE_VERSION

    def test_version_check(self, cs, note):
        wires = allocate_note(cs, Note(**{**note.__dict__, 'version': 2}))
        assert_version(cs, wires)
        with pytest.raises(UnsatisfiableWitnessError) as info:
            cs.assert_satisfied()
        assert info.value.violation == Violation.VERSION

    def test_distinct(self, cs):
        values = [cs.witness(v, f"v{i}") for i, v in enumerate([4, 5, 6])]
        assert_distinct(cs, values)
        assert cs.is_satisfied()
        clash = [cs.witness(v, f"w{i}") for i, v in enumerate([4, 5, 4])]
        assert_distinct(cs, clash, "clash")
        failures = cs.unsatisfied()
        assert len(failures) == 1
        assert failures[0].violation == Violation.UNIQUENESS
        assert failures[0].label.startswith("clash/pair0_2")

    @pytest.mark.parametrize("enabled,tag,expected", [(1, 10, True), (1, 11, False), (0, 11, True)])
    def test_chaining(self, cs, enabled, tag, expected):
        assert_chained(cs, cs.witness(enabled, "enabled"), cs.witness(tag, "tag"), cs.witness(10, "nullifier"))
        assert cs.is_satisfied() == expected
        if not expected:
            assert cs.unsatisfied()[0].violation == Violation.CHAINING
