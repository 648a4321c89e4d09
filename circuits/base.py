"""
Circuit base class and shape configuration
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List

from gadgets.constants import MAX_NULLIFIER_BATCH_SIZE, N_PUBLIC_LINES, N_REWARD_LINES, N_ROSTER_SLOTS
from r1cs import ConstraintSystem, UnsatisfiableWitnessError

logger = logging.getLogger(__name__)


class CircuitKind(Enum):
    """Independently verified circuit families"""
    TRANSACTION = "transaction"
    NULLIFIER_BATCH_INSERT = "nullifier_batch_insert"
    NULLIFIER_NON_MEMBERSHIP = "nullifier_non_membership"


@dataclass(frozen=True)
class CircuitConfig:
    """Compile-time shape of one circuit variant"""
    name: str
    kind: CircuitKind
    tree_depth: int
    n_inputs: int = 0
    n_outputs: int = 0
    n_reward_lines: int = N_REWARD_LINES
    n_public_lines: int = N_PUBLIC_LINES
    n_roster_slots: int = N_ROSTER_SLOTS
    batch_size: int = 0

    def __post_init__(self):
        if self.tree_depth < 1:
            raise ValueError(f"Tree depth must be positive, got {self.tree_depth}")
        if self.kind == CircuitKind.TRANSACTION:
            if min(self.n_inputs, self.n_outputs, self.n_reward_lines,
                   self.n_public_lines, self.n_roster_slots) < 0:
                raise ValueError("Transaction dimensions must be non-negative")
        elif not 1 <= self.batch_size <= MAX_NULLIFIER_BATCH_SIZE:
            raise ValueError(
                f"Batch size must be in [1, {MAX_NULLIFIER_BATCH_SIZE}], got {self.batch_size}")

    def get_filename(self) -> str:
        """Get standardized filename"""
        if self.kind == CircuitKind.TRANSACTION:
            return (f"{self.kind.value}_{self.n_inputs}x{self.n_outputs}_d{self.tree_depth}"
                    f"_r{self.n_reward_lines}_p{self.n_public_lines}_s{self.n_roster_slots}")
        return f"{self.kind.value}_{self.batch_size}_d{self.tree_depth}"

    def with_depth(self, tree_depth: int) -> "CircuitConfig":
        return replace(self, tree_depth=tree_depth)

    @property
    def num_public_inputs(self) -> int:
        if self.kind == CircuitKind.TRANSACTION:
            return (2 + 2 * self.n_public_lines + self.n_inputs + self.n_outputs
                    + 2 * self.n_reward_lines)
        if self.kind == CircuitKind.NULLIFIER_BATCH_INSERT:
            return 3 + self.batch_size
        return 1 + self.batch_size


class Circuit(ABC):
    """Fixed-shape circuit; public inputs are allocated first, in a stable order"""

    kind: CircuitKind

    def __init__(self, config: CircuitConfig):
        if config.kind != self.kind:
            raise ValueError(f"{type(self).__name__} cannot build a {config.kind.value} circuit")
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def validate_witness(self, witness: Any):
        """Raise ValueError if the witness does not match the circuit shape"""

    @abstractmethod
    def synthesize(self, cs: ConstraintSystem, witness: Any):
        """Allocate wires and constraints; structure must not depend on witness values"""

    def build(self, witness: Any) -> ConstraintSystem:
        self.validate_witness(witness)
        cs = ConstraintSystem(self.name)
        self.synthesize(cs, witness)
        if cs.num_public != self.config.num_public_inputs:
            raise RuntimeError(
                f"{self.name} allocated {cs.num_public} public inputs, expected {self.config.num_public_inputs}")
        logger.info(
            f"Synthesized {self.name}: {cs.num_constraints} constraints, {cs.num_wires} wires, {cs.num_public} public inputs")
        return cs

    def check(self, witness: Any) -> ConstraintSystem:
        """Build and raise UnsatisfiableWitnessError if the witness is invalid"""
        cs = self.build(witness)
        cs.assert_satisfied()
        return cs

    def is_satisfied(self, witness: Any) -> bool:
        try:
            self.check(witness)
        except UnsatisfiableWitnessError:
            return False
        return True

    def public_inputs(self, witness: Any) -> List[int]:
        return self.build(witness).public_values()
