"""
Nullifier batch-insertion circuit
Chains single insertions into the indexed nullifier tree; only the batch's
endpoints and nullifiers are public, every intermediate root stays private.

Public inputs, in order: old_root, new_root, start_index, nullifier[batch_size]
"""

import logging
from dataclasses import dataclass
from typing import List

from gadgets.bits import range_check
from gadgets.indexed_tree import allocate_low_element, insert_leaf
from r1cs import ConstraintSystem, Violation
from r1cs.field import FIELD_BITS
from trees.indexed_tree import BatchInsertion, InsertionWitness

from .base import Circuit, CircuitKind

logger = logging.getLogger(__name__)


@dataclass
class NullifierBatchWitness:
    old_root: int
    new_root: int
    start_index: int
    steps: List[InsertionWitness]

    @classmethod
    def from_batch(cls, batch: BatchInsertion) -> "NullifierBatchWitness":
        return cls(batch.old_root, batch.new_root, batch.start_index, list(batch.steps))

    @property
    def nullifiers(self) -> List[int]:
        return [step.value for step in self.steps]

    def public_inputs(self) -> List[int]:
        return [self.old_root, self.new_root, self.start_index] + self.nullifiers


class NullifierBatchInsertCircuit(Circuit):
    """rootBefore -> ordering -> low update (intermediate root) -> append (rootAfter), N times"""

    kind = CircuitKind.NULLIFIER_BATCH_INSERT

    def validate_witness(self, witness: NullifierBatchWitness):
        cfg = self.config
        if len(witness.steps) != cfg.batch_size:
            raise ValueError(f"{self.name}: expected {cfg.batch_size} insertions, got {len(witness.steps)}")
        for k, step in enumerate(witness.steps):
            if len(step.low_path) != cfg.tree_depth or len(step.new_path) != cfg.tree_depth:
                raise ValueError(f"{self.name}: insertion {k} paths must have {cfg.tree_depth} siblings")

    def synthesize(self, cs: ConstraintSystem, witness: NullifierBatchWitness):
        depth = self.config.tree_depth

        with cs.scope("public"):
            old_root = cs.public_input(witness.old_root, "old_root")
            new_root = cs.public_input(witness.new_root, "new_root")
            start_index = cs.public_input(witness.start_index, "start_index")
            nullifiers = [cs.public_input(value, f"nullifier{k}") for k, value in enumerate(witness.nullifiers)]

        with cs.scope("range_binding", Violation.RANGE):
            range_check(cs, start_index, depth, "start_index")
            for k, nullifier in enumerate(nullifiers):
                range_check(cs, nullifier, FIELD_BITS, f"nullifier{k}")

        current_root = old_root
        for k, step in enumerate(witness.steps):
            with cs.scope(f"insert{k}"):
                low = allocate_low_element(
                    cs, step.low_leaf.value, step.low_leaf.next_index, step.low_leaf.next_value,
                    step.low_index, step.low_path)
                new_path = [cs.witness(sibling, f"new_path{i}") for i, sibling in enumerate(step.new_path)]
                current_root = insert_leaf(
                    cs, current_root, nullifiers[k], start_index + k, low, new_path, depth, "step")

        cs.enforce_equal(current_root, new_root, "final_root", Violation.MEMBERSHIP)
