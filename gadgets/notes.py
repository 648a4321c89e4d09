"""
Note commitment and nullifier derivation

commitment = H(domain, version, assetId, amount, ownerPublicKey, blinding,
               rewardAccumulatorSnapshot, uniquenessTag)
nullifier  = H(nk, uniquenessTag, commitment)
"""

import secrets
from dataclasses import dataclass
from typing import Optional, Sequence

from r1cs import ConstraintSystem, LinearCombination, Violation
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME

from .bits import assert_not_equal
from .constants import NOTE_COMMITMENT_DOMAIN, NOTE_VERSION
from .poseidon import poseidon_gadget, poseidon_hash


def note_commitment(version: int, asset_id: int, amount: int, owner_public_key: int,
                    blinding: int, reward_accumulator: int, uniqueness_tag: int) -> int:
    return poseidon_hash([
        NOTE_COMMITMENT_DOMAIN,
        version,
        asset_id,
        amount,
        owner_public_key,
        blinding,
        reward_accumulator,
        uniqueness_tag
    ])


def note_nullifier(nullifier_key: int, uniqueness_tag: int, commitment: int) -> int:
    return poseidon_hash([nullifier_key, uniqueness_tag, commitment])


@dataclass
class Note:
    """Private value record"""
    asset_id: int
    amount: int
    owner_public_key: int
    blinding: int
    reward_accumulator: int
    uniqueness_tag: int
    version: int = NOTE_VERSION

    @classmethod
    def dummy(cls, owner_public_key: int = 0, uniqueness_tag: Optional[int] = None) -> "Note":
        """Zero-amount padding note"""
        return cls(
            asset_id=0,
            amount=0,
            owner_public_key=owner_public_key,
            blinding=secrets.randbelow(BN254_SCALAR_PRIME),
            reward_accumulator=0,
            uniqueness_tag=secrets.randbelow(BN254_SCALAR_PRIME) if uniqueness_tag is None else uniqueness_tag
        )

    @property
    def is_dummy(self) -> bool:
        return self.amount == 0

    def commitment(self) -> int:
        return note_commitment(self.version, self.asset_id, self.amount, self.owner_public_key,
                               self.blinding, self.reward_accumulator, self.uniqueness_tag)

    def nullifier(self, nullifier_key: int) -> int:
        return note_nullifier(nullifier_key, self.uniqueness_tag, self.commitment())


@dataclass
class NoteWires:
    version: LinearCombination
    asset_id: LinearCombination
    amount: LinearCombination
    owner_public_key: LinearCombination
    blinding: LinearCombination
    reward_accumulator: LinearCombination
    uniqueness_tag: LinearCombination


def allocate_note(cs: ConstraintSystem, note: Note, owner_public_key: Optional[Operand] = None,
                  label: str = "note") -> NoteWires:
    """Allocate note fields; an input note passes its derived public key instead of a free wire"""
    with cs.scope(label):
        if owner_public_key is None:
            owner = cs.witness(note.owner_public_key, "owner_public_key")
        else:
            owner = LinearCombination.coerce(owner_public_key)
        return NoteWires(
            version=cs.witness(note.version, "version"),
            asset_id=cs.witness(note.asset_id, "asset_id"),
            amount=cs.witness(note.amount, "amount"),
            owner_public_key=owner,
            blinding=cs.witness(note.blinding, "blinding"),
            reward_accumulator=cs.witness(note.reward_accumulator, "reward_accumulator"),
            uniqueness_tag=cs.witness(note.uniqueness_tag, "uniqueness_tag")
        )


def assert_version(cs: ConstraintSystem, note: NoteWires, label: str = "version"):
    cs.enforce_equal(note.version, NOTE_VERSION, label, Violation.VERSION)


def commitment_gadget(cs: ConstraintSystem, note: NoteWires, label: str = "commitment") -> LinearCombination:
    return poseidon_gadget(cs, [
        NOTE_COMMITMENT_DOMAIN,
        note.version,
        note.asset_id,
        note.amount,
        note.owner_public_key,
        note.blinding,
        note.reward_accumulator,
        note.uniqueness_tag
    ], label)


def nullifier_gadget(cs: ConstraintSystem, nullifier_key: Operand, uniqueness_tag: Operand,
                     commitment: Operand, label: str = "nullifier") -> LinearCombination:
    return poseidon_gadget(cs, [nullifier_key, uniqueness_tag, commitment], label)


def assert_distinct(cs: ConstraintSystem, values: Sequence[Operand], label: str = "distinct"):
    """Pairwise inequality; quadratic in len(values)"""
    with cs.scope(label, Violation.UNIQUENESS):
        for a in range(len(values)):
            for b in range(a + 1, len(values)):
                assert_not_equal(cs, values[a], values[b], f"pair{a}_{b}")


def assert_chained(cs: ConstraintSystem, enabled: Operand, uniqueness_tag: Operand,
                   nullifier: Operand, label: str = "chaining"):
    """An enabled output's tag must equal its paired input's nullifier"""
    cs.enforce(enabled, LinearCombination.coerce(uniqueness_tag) - nullifier, 0, label, Violation.CHAINING)
