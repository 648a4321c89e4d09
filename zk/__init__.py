"""
Zero-Knowledge Proof Module for the shielded pool
Witness export and Groth16 proving through snarkjs
"""

from r1cs import UnsatisfiableWitnessError

from .proof_system import (
    # Core classes
    ProofSystem,
    ProofArtifact,

    # Exceptions
    ZKError,
    ProofGenerationError,
    ProverUnavailableError,
    CircuitExportError,
)

__version__ = "1.0.0"

__all__ = [
    # Classes
    'ProofSystem',
    'ProofArtifact',

    # Exceptions
    'ZKError',
    'ProofGenerationError',
    'ProverUnavailableError',
    'CircuitExportError',
    'UnsatisfiableWitnessError',
]
