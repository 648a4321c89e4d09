"""
Key derivation chain
ak = H(ask), nk = H(nsk), ivk = H(ak, nk), pk = H(ivk)
"""

import secrets
from dataclasses import dataclass

from r1cs import ConstraintSystem, LinearCombination
from r1cs.constraint_system import Operand
from r1cs.field import BN254_SCALAR_PRIME

from .poseidon import poseidon_gadget, poseidon_hash


@dataclass(frozen=True)
class DerivedKeys:
    ak: int
    nk: int
    ivk: int
    pk: int


@dataclass(frozen=True)
class SpendingKey:
    """Owner secrets: spend-authorization secret and nullifier secret"""
    ask: int
    nsk: int

    @classmethod
    def generate(cls) -> "SpendingKey":
        return cls(secrets.randbelow(BN254_SCALAR_PRIME), secrets.randbelow(BN254_SCALAR_PRIME))

    def derive(self) -> DerivedKeys:
        return derive_keys(self.ask, self.nsk)

    @property
    def public_key(self) -> int:
        return self.derive().pk

    @property
    def nullifier_key(self) -> int:
        return self.derive().nk


def derive_keys(ask: int, nsk: int) -> DerivedKeys:
    ak = poseidon_hash([ask])
    nk = poseidon_hash([nsk])
    ivk = poseidon_hash([ak, nk])
    return DerivedKeys(ak=ak, nk=nk, ivk=ivk, pk=poseidon_hash([ivk]))


@dataclass
class KeyWires:
    ak: LinearCombination
    nk: LinearCombination
    ivk: LinearCombination
    pk: LinearCombination


def derive_keys_gadget(cs: ConstraintSystem, ask: Operand, nsk: Operand,
                       label: str = "keys") -> KeyWires:
    with cs.scope(label):
        ak = poseidon_gadget(cs, [ask], "ak")
        nk = poseidon_gadget(cs, [nsk], "nk")
        ivk = poseidon_gadget(cs, [ak, nk], "ivk")
        pk = poseidon_gadget(cs, [ivk], "pk")
    return KeyWires(ak=ak, nk=nk, ivk=ivk, pk=pk)
