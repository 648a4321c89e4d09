"""
Rank-1 Constraint System
Linear combinations over the BN254 scalar field, labeled a*b=c constraints,
witness assignment and satisfaction checking with per-predicate diagnostics
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from .field import BN254_SCALAR_PRIME as P

logger = logging.getLogger(__name__)

# Wire 0 always carries the constant 1
ONE = 0


class Violation(Enum):
    """Reasons a witness can fail to satisfy a constraint"""
    ORDERING = "ordering"
    RANGE = "range"
    CONSERVATION = "conservation"
    UNIQUENESS = "uniqueness"
    VERSION = "version"
    ACCUMULATOR_BOUND = "accumulator_bound"
    CHAINING = "chaining"
    SELECTOR_BINDING = "selector_binding"
    MEMBERSHIP = "membership"
    COMMITMENT = "commitment"
    NULLIFIER = "nullifier"
    CANONICAL = "canonical"
    INTERNAL = "internal"


# ============================================================================
# EXCEPTIONS
# ============================================================================


class ConstraintSystemError(Exception):
    """Base exception for constraint system operations"""
    pass


class UnsatisfiableWitnessError(ConstraintSystemError):
    """The witness violates at least one constraint, so no proof exists"""

    def __init__(self, circuit: str, failures: List["Constraint"]):
        self.circuit = circuit
        self.failures = failures
        first = failures[0]
        self.violation = first.violation
        self.predicate = first.label
        message = f"cannot construct proof for {circuit}: {first.violation.value} violated at {first.label}"
        if len(failures) > 1:
            message += f" (+{len(failures) - 1} more)"
        super().__init__(message)

    def __reduce__(self):
        return (self.__class__, (self.circuit, self.failures))

    @property
    def violations(self) -> Set[Violation]:
        return {failure.violation for failure in self.failures}


# ============================================================================
# LINEAR COMBINATIONS
# ============================================================================

Operand = Union["LinearCombination", int]


class LinearCombination:
    """Sparse map wire -> coefficient, evaluated against a witness assignment"""

    __slots__ = ("terms",)

    def __init__(self, terms: Optional[Dict[int, int]] = None):
        self.terms: Dict[int, int] = terms if terms is not None else {}

    @classmethod
    def constant(cls, value: int) -> "LinearCombination":
        value %= P
        return cls({ONE: value} if value else {})

    @classmethod
    def wire(cls, index: int) -> "LinearCombination":
        return cls({index: 1})

    @staticmethod
    def coerce(operand: Operand) -> "LinearCombination":
        if isinstance(operand, LinearCombination):
            return operand
        if isinstance(operand, int):
            return LinearCombination.constant(operand)
        raise TypeError(
            f"Cannot use {type(operand).__name__} in a linear combination")

    @staticmethod
    def sum(operands: Iterable[Operand]) -> "LinearCombination":
        """Add many operands without copying the accumulator each step"""
        terms: Dict[int, int] = {}
        for operand in operands:
            for wire, coeff in LinearCombination.coerce(operand).terms.items():
                total = (terms.get(wire, 0) + coeff) % P
                if total:
                    terms[wire] = total
                else:
                    terms.pop(wire, None)
        return LinearCombination(terms)

    def is_constant(self) -> bool:
        return all(wire == ONE for wire in self.terms)

    def constant_term(self) -> int:
        return self.terms.get(ONE, 0)

    def __add__(self, other: Operand) -> "LinearCombination":
        return LinearCombination.sum((self, other))

    __radd__ = __add__

    def __neg__(self) -> "LinearCombination":
        return LinearCombination({wire: P - coeff for wire, coeff in self.terms.items()})

    def __sub__(self, other: Operand) -> "LinearCombination":
        return LinearCombination.sum((self, -LinearCombination.coerce(other)))

    def __rsub__(self, other: Operand) -> "LinearCombination":
        return LinearCombination.sum((other, -self))

    def __mul__(self, scalar: Operand) -> "LinearCombination":
        if isinstance(scalar, LinearCombination):
            if scalar.is_constant():
                scalar = scalar.constant_term()
            elif self.is_constant():
                return scalar * self.constant_term()
            else:
                raise TypeError(
                    "Product of two variables requires ConstraintSystem.mul")
        if not isinstance(scalar, int):
            return NotImplemented
        scalar %= P
        if not scalar:
            return LinearCombination()
        return LinearCombination({wire: coeff * scalar % P for wire, coeff in self.terms.items()})

    __rmul__ = __mul__

    def __len__(self) -> int:
        return len(self.terms)

    def __repr__(self) -> str:
        parts = [f"{coeff}*w{wire}" for wire, coeff in sorted(self.terms.items())]
        return f"LinearCombination({' + '.join(parts) or '0'})"


@dataclass
class Constraint:
    """a * b = c, tagged with where it came from and what it protects"""
    a: LinearCombination
    b: LinearCombination
    c: LinearCombination
    label: str
    violation: Violation


# ============================================================================
# CONSTRAINT SYSTEM
# ============================================================================


class ConstraintSystem:
    """Witness assignment together with the constraints binding it"""

    def __init__(self, name: str = "circuit"):
        self.name = name
        self.values: List[int] = [1]
        self.labels: List[str] = ["one"]
        self.public_wires: List[int] = []
        self.constraints: List[Constraint] = []
        self._scopes: List[Tuple[str, Optional[Violation]]] = []

    @contextmanager
    def scope(self, name: str, violation: Optional[Violation] = None) -> Iterator["ConstraintSystem"]:
        """Prefix labels with name; constraints inside default to violation"""
        self._scopes.append((name, violation))
        try:
            yield self
        finally:
            self._scopes.pop()

    def _qualify(self, label: str) -> str:
        return "/".join([name for name, _ in self._scopes] + [label])

    def _resolve_violation(self, violation: Optional[Violation]) -> Violation:
        if violation is not None:
            return violation
        for _, scoped in reversed(self._scopes):
            if scoped is not None:
                return scoped
        return Violation.INTERNAL

    def _allocate(self, value: int, label: str) -> int:
        self.values.append(value % P)
        self.labels.append(self._qualify(label))
        return len(self.values) - 1

    def public_input(self, value: int, label: str) -> LinearCombination:
        wire = self._allocate(value, label)
        self.public_wires.append(wire)
        return LinearCombination.wire(wire)

    def witness(self, value: int, label: str) -> LinearCombination:
        return LinearCombination.wire(self._allocate(value, label))

    def value(self, operand: Operand) -> int:
        """Evaluate an operand under the current assignment"""
        values = self.values
        lc = LinearCombination.coerce(operand)
        return sum(coeff * values[wire] for wire, coeff in lc.terms.items()) % P

    def enforce(self, a: Operand, b: Operand, c: Operand, label: str,
                violation: Optional[Violation] = None):
        self.constraints.append(Constraint(
            LinearCombination.coerce(a),
            LinearCombination.coerce(b),
            LinearCombination.coerce(c),
            self._qualify(label),
            self._resolve_violation(violation)
        ))

    def enforce_equal(self, left: Operand, right: Operand, label: str,
                      violation: Optional[Violation] = None):
        self.enforce(LinearCombination.coerce(left) - right, 1, 0, label, violation)

    def enforce_zero(self, operand: Operand, label: str, violation: Optional[Violation] = None):
        self.enforce(operand, 1, 0, label, violation)

    def enforce_boolean(self, operand: Operand, label: str, violation: Optional[Violation] = None):
        lc = LinearCombination.coerce(operand)
        self.enforce(lc, lc - 1, 0, label, violation)

    def mul(self, a: Operand, b: Operand, label: str,
            violation: Optional[Violation] = None) -> LinearCombination:
        """Product of two operands; allocates a wire unless one side is constant"""
        a = LinearCombination.coerce(a)
        b = LinearCombination.coerce(b)
        if a.is_constant():
            return b * a.constant_term()
        if b.is_constant():
            return a * b.constant_term()
        product = self.witness(self.value(a) * self.value(b), label)
        self.enforce(a, b, product, label, violation)
        return product

    def holds(self, constraint: Constraint) -> bool:
        return (self.value(constraint.a) * self.value(constraint.b) - self.value(constraint.c)) % P == 0

    def unsatisfied(self) -> List[Constraint]:
        return [constraint for constraint in self.constraints if not self.holds(constraint)]

    def is_satisfied(self) -> bool:
        return all(self.holds(constraint) for constraint in self.constraints)

    def assert_satisfied(self):
        """Raise UnsatisfiableWitnessError naming the first violated predicate"""
        failures = self.unsatisfied()
        if failures:
            error = UnsatisfiableWitnessError(self.name, failures)
            logger.warning(str(error))
            raise error
        logger.debug(
            f"{self.name}: all {self.num_constraints} constraints satisfied")

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    @property
    def num_wires(self) -> int:
        return len(self.values)

    @property
    def num_public(self) -> int:
        return len(self.public_wires)

    def public_values(self) -> List[int]:
        """Public inputs in allocation order"""
        return [self.values[wire] for wire in self.public_wires]

    def wire_order(self) -> List[int]:
        """Export order: the constant one, public inputs, then private wires"""
        public = set(self.public_wires)
        private = [wire for wire in range(1, len(self.values)) if wire not in public]
        return [ONE] + self.public_wires + private

    def summary(self) -> Dict[str, Any]:
        by_violation: Dict[str, int] = {}
        for constraint in self.constraints:
            key = constraint.violation.value
            by_violation[key] = by_violation.get(key, 0) + 1
        return {
            'name': self.name,
            'constraints': self.num_constraints,
            'wires': self.num_wires,
            'public_inputs': self.num_public,
            'constraints_by_violation': by_violation
        }
