"""
Nullifier non-membership circuit
Proves a batch of nullifiers is absent from an epoch-frozen nullifier tree root.

Public inputs, in order: nullifier_root, nullifier[batch_size]
"""

from dataclasses import dataclass
from typing import List

from gadgets.indexed_tree import allocate_low_element, assert_non_membership
from r1cs import ConstraintSystem
from trees.indexed_tree import NonMembershipWitness

from .base import Circuit, CircuitKind


@dataclass
class NonMembershipBatchWitness:
    root: int
    proofs: List[NonMembershipWitness]

    @property
    def nullifiers(self) -> List[int]:
        return [proof.value for proof in self.proofs]

    def public_inputs(self) -> List[int]:
        return [self.root] + self.nullifiers


class NullifierNonMembershipCircuit(Circuit):

    kind = CircuitKind.NULLIFIER_NON_MEMBERSHIP

    def validate_witness(self, witness: NonMembershipBatchWitness):
        cfg = self.config
        if len(witness.proofs) != cfg.batch_size:
            raise ValueError(f"{self.name}: expected {cfg.batch_size} nullifiers, got {len(witness.proofs)}")
        for k, proof in enumerate(witness.proofs):
            if len(proof.low_path) != cfg.tree_depth:
                raise ValueError(f"{self.name}: proof {k} path must have {cfg.tree_depth} siblings")

    def synthesize(self, cs: ConstraintSystem, witness: NonMembershipBatchWitness):
        with cs.scope("public"):
            root = cs.public_input(witness.root, "nullifier_root")
            nullifiers = [cs.public_input(value, f"nullifier{k}") for k, value in enumerate(witness.nullifiers)]

        for k, proof in enumerate(witness.proofs):
            with cs.scope(f"absent{k}"):
                low = allocate_low_element(
                    cs, proof.low_leaf.value, proof.low_leaf.next_index, proof.low_leaf.next_value,
                    proof.low_index, proof.low_path)
                assert_non_membership(cs, root, nullifiers[k], low, self.config.tree_depth, "check")
