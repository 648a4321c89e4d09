"""
Rank-1 constraint system over the BN254 scalar field
"""

from .field import (
    BN254_SCALAR_PRIME,
    FIELD_BITS,
    GF,
    to_field,
    to_signed,
    field_inverse,
)
from .constraint_system import (
    ONE,
    Violation,
    LinearCombination,
    Constraint,
    ConstraintSystem,

    # Exceptions
    ConstraintSystemError,
    UnsatisfiableWitnessError,
)
from .binfile import encode_r1cs, encode_wtns, write_r1cs, write_wtns, read_r1cs_header, read_wtns

__all__ = [
    'BN254_SCALAR_PRIME',
    'FIELD_BITS',
    'GF',
    'to_field',
    'to_signed',
    'field_inverse',
    'ONE',
    'Violation',
    'LinearCombination',
    'Constraint',
    'ConstraintSystem',
    'ConstraintSystemError',
    'UnsatisfiableWitnessError',
    'encode_r1cs',
    'encode_wtns',
    'write_r1cs',
    'write_wtns',
    'read_r1cs_header',
    'read_wtns',
]
