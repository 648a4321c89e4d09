"""
Proof system facade
Synthesizes witnesses in a worker pool and hands them to snarkjs Groth16; the
zkey and verification key are externally produced per circuit variant.
"""

import asyncio
import hashlib
import json
import logging
import shutil
import subprocess
import tempfile
import time
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from circuits import Circuit, CircuitConfig, build_circuit
from config import ProverConfig
from r1cs import ConstraintSystem, encode_wtns, write_r1cs, write_wtns

logger = logging.getLogger(__name__)

CircuitLike = Union[Circuit, CircuitConfig]


# ============================================================================
# EXCEPTIONS
# ============================================================================


class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class ProofGenerationError(ZKError):
    """Proof generation failed"""
    pass


class ProverUnavailableError(ProofGenerationError):
    """snarkjs or the proving key is missing"""
    pass


class CircuitExportError(ZKError):
    """Writing .r1cs / .wtns failed"""
    pass


# ============================================================================
# ARTIFACTS
# ============================================================================


@dataclass
class ProofArtifact:
    """Container for proof and metadata"""
    proof: Dict[str, Any]
    public_signals: List[str]
    circuit_name: str
    generation_time: float
    verification_key_hash: str
    timestamp: float = field(default_factory=time.time)
    expires_at: float = field(default_factory=lambda: time.time() + 3600)

    def is_expired(self) -> bool:
        return time.time() > self.expires_at

    @property
    def public_inputs(self) -> List[int]:
        return [int(signal) for signal in self.public_signals]


def _as_circuit(circuit: CircuitLike) -> Circuit:
    return circuit if isinstance(circuit, Circuit) else build_circuit(circuit)


def _synthesize_witness(config: CircuitConfig, witness: Any) -> Tuple[bytes, List[int]]:
    """Worker entry point: build, check and serialize the witness"""
    cs = build_circuit(config).check(witness)
    return encode_wtns(cs), cs.public_values()


# ============================================================================
# PROOF SYSTEM
# ============================================================================


class ProofSystem:
    """Witness synthesis and export, optional Groth16 proving via snarkjs"""

    def __init__(self, config: Optional[ProverConfig] = None):
        self.config = config or ProverConfig()
        self._executor: Optional[Executor] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    def _get_executor(self) -> Optional[Executor]:
        # None selects the event loop's default thread pool
        if self.config.parallel_workers == 0:
            return None
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self.config.parallel_workers)
        return self._executor

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent_proofs)
        return self._semaphore

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown()
            self._executor = None

    # ------------------------------------------------------------------
    # Synthesis and export
    # ------------------------------------------------------------------

    def synthesize(self, circuit: CircuitLike, witness: Any) -> ConstraintSystem:
        """Build the constraint system; raises UnsatisfiableWitnessError on a bad witness"""
        return _as_circuit(circuit).check(witness)

    def export(self, circuit: CircuitLike, witness: Any, directory: Optional[Path] = None) -> Dict[str, Path]:
        circuit = _as_circuit(circuit)
        directory = Path(directory or self.config.build_dir)
        cs = self.synthesize(circuit, witness)
        stem = circuit.config.get_filename()
        try:
            directory.mkdir(parents=True, exist_ok=True)
            paths = {
                'r1cs': write_r1cs(cs, directory / f"{stem}.r1cs"),
                'wtns': write_wtns(cs, directory / f"{stem}.wtns"),
            }
        except OSError as e:
            raise CircuitExportError(f"Could not export {circuit.name} to {directory}: {e}") from e
        logger.info(f"Exported {circuit.name} ({cs.num_constraints} constraints) to {directory}")
        return paths

    # ------------------------------------------------------------------
    # Proving
    # ------------------------------------------------------------------

    def zkey_path(self, circuit: CircuitLike) -> Path:
        return self.config.zkey_dir / f"{_as_circuit(circuit).name}.zkey"

    def vkey_path(self, circuit_name: str) -> Path:
        return self.config.zkey_dir / f"{circuit_name}_vkey.json"

    def _require_prover(self, circuit: Circuit) -> Path:
        if shutil.which(self.config.snarkjs_command) is None:
            raise ProverUnavailableError(f"{self.config.snarkjs_command} not found on PATH")
        zkey = self.zkey_path(circuit)
        if not zkey.exists():
            raise ProverUnavailableError(f"No proving key for {circuit.name} at {zkey}")
        vkey = self.vkey_path(circuit.name)
        if not vkey.exists():
            raise ProverUnavailableError(f"No verification key for {circuit.name} at {vkey}")
        return zkey

    async def prove(self, circuit: CircuitLike, witness: Any) -> ProofArtifact:
        circuit = _as_circuit(circuit)
        zkey = self._require_prover(circuit)
        loop = asyncio.get_running_loop()

        async with self._get_semaphore():
            start_time = time.time()
            wtns, public_values = await loop.run_in_executor(
                self._get_executor(), _synthesize_witness, circuit.config, witness)
            proof, public_signals = await loop.run_in_executor(
                None, self._run_prover, circuit.name, zkey, wtns)
            generation_time = time.time() - start_time

        expected = [str(value) for value in public_values]
        if public_signals != expected:
            raise ProofGenerationError(
                f"Prover returned {len(public_signals)} public signals for {circuit.name} "
                f"that do not match the {len(expected)} synthesized public inputs")

        logger.info(f"Generated proof for {circuit.name} in {generation_time:.2f}s")
        return ProofArtifact(
            proof=proof,
            public_signals=public_signals,
            circuit_name=circuit.name,
            generation_time=generation_time,
            verification_key_hash=self._hash_vkey(circuit.name),
            expires_at=time.time() + self.config.proof_lifetime
        )

    async def prove_many(self, jobs: Sequence[Tuple[CircuitLike, Any]]) -> List[ProofArtifact]:
        """Prove independent (circuit, witness) pairs concurrently"""
        return list(await asyncio.gather(*(self.prove(circuit, witness) for circuit, witness in jobs)))

    def _run_prover(self, circuit_name: str, zkey: Path, wtns: bytes) -> Tuple[Dict[str, Any], List[str]]:
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            wtns_file = temp_path / "witness.wtns"
            wtns_file.write_bytes(wtns)
            proof_file = temp_path / "proof.json"
            public_file = temp_path / "public.json"

            cmd = [
                self.config.snarkjs_command, 'groth16', 'prove',
                str(zkey),
                str(wtns_file),
                str(proof_file),
                str(public_file)
            ]
            try:
                result = subprocess.run(cmd, capture_output=True, text=True,
                                        timeout=self.config.proof_timeout)
            except subprocess.TimeoutExpired as e:
                raise ProofGenerationError(
                    f"Proof generation for {circuit_name} timed out after {self.config.proof_timeout}s") from e
            if result.returncode != 0:
                raise ProofGenerationError(f"Proof generation failed: {result.stderr}")

            return json.loads(proof_file.read_text()), json.loads(public_file.read_text())

    def _hash_vkey(self, circuit_name: str) -> str:
        """Get hash of verification key"""
        vkey_file = self.vkey_path(circuit_name)
        if not vkey_file.exists():
            return ""
        return hashlib.sha256(vkey_file.read_bytes()).hexdigest()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify(self, artifact: ProofArtifact) -> bool:
        if artifact.is_expired():
            logger.warning(f"Proof expired at {artifact.expires_at}")
            return False

        vkey_file = self.vkey_path(artifact.circuit_name)
        if not vkey_file.exists():
            logger.warning(f"No verification key for {artifact.circuit_name} at {vkey_file}")
            return False
        if artifact.verification_key_hash != self._hash_vkey(artifact.circuit_name):
            logger.warning(f"Verification key for {artifact.circuit_name} changed since proving")
            return False

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._run_verifier, vkey_file, artifact)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Verification failed: {e}")
            return False

    def _run_verifier(self, vkey_file: Path, artifact: ProofArtifact) -> bool:
        start_time = time.time()
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            proof_file = temp_path / "proof.json"
            proof_file.write_text(json.dumps(artifact.proof))
            public_file = temp_path / "public.json"
            public_file.write_text(json.dumps(artifact.public_signals))

            cmd = [
                self.config.snarkjs_command, 'groth16', 'verify',
                str(vkey_file),
                str(public_file),
                str(proof_file)
            ]
            result = subprocess.run(cmd, capture_output=True, text=True,
                                    timeout=self.config.proof_timeout)

        is_valid = result.returncode == 0 and "OK!" in result.stdout
        logger.info(f"Verified {artifact.circuit_name} proof in {time.time() - start_time:.3f}s: "
                    f"{'valid' if is_valid else 'invalid'}")
        return is_valid
