#!/usr/bin/env python3
"""
Benchmark suite for the shielded pool circuits
Measures native hashing and tree maintenance, then witness synthesis and
constraint counts for every circuit variant across several tree depths.
"""

import json
import logging
import os
import statistics
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import psutil

sys.path.insert(0, str(Path(__file__).parent.parent))

from circuits import VARIANTS, build_circuit  # noqa: E402
from gadgets.poseidon import poseidon_gadget, poseidon_hash  # noqa: E402
from main import CircuitOrchestrator  # noqa: E402
from config import SystemConfig  # noqa: E402
from r1cs import ConstraintSystem, encode_r1cs, encode_wtns  # noqa: E402
from trees import IndexedMerkleTree, MerkleTree  # noqa: E402
from circuits.scenarios import random_nullifiers  # noqa: E402

LOG_DIR = Path(__file__).parent / 'logs'
LOG_DIR.mkdir(exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOG_DIR / 'benchmark.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

DEPTHS = [8, 16, 26]


class BenchmarkSuite:
    """Synthesis cost per variant and per tree depth"""

    def __init__(self):
        self.results = {
            'primitives': {},
            'trees': {},
            'circuits': {},
            'system_info': self._get_system_info()
        }

    def _get_system_info(self) -> Dict[str, Any]:
        """Collect system information for reproducibility"""
        return {
            'cpu_count': psutil.cpu_count(logical=False),
            'cpu_count_logical': psutil.cpu_count(logical=True),
            'cpu_freq': psutil.cpu_freq().max if psutil.cpu_freq() else 'N/A',
            'ram_total_gb': psutil.virtual_memory().total / (1024**3),
            'python_version': sys.version.split()[0],
            'platform': sys.platform
        }

    def measure_time_and_memory(self, func: Callable, *args, **kwargs) -> Tuple[Any, float, float]:
        """Measure execution time and memory usage"""
        process = psutil.Process(os.getpid())
        mem_before = process.memory_info().rss / 1024 / 1024  # MB

        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed_time = time.time() - start_time

        mem_after = process.memory_info().rss / 1024 / 1024  # MB
        return result, elapsed_time, mem_after - mem_before

    def run_multiple_trials(self, func: Callable, trials: int = 10) -> Dict[str, float]:
        """Run multiple trials and compute statistics"""
        times = []
        memories = []

        for _ in range(trials):
            _, elapsed, mem_delta = self.measure_time_and_memory(func)
            times.append(elapsed)
            memories.append(mem_delta)

        return {
            'mean_time': statistics.mean(times),
            'median_time': statistics.median(times),
            'std_time': statistics.stdev(times) if len(times) > 1 else 0,
            'min_time': min(times),
            'max_time': max(times),
            'mean_memory_mb': statistics.mean(memories),
            'trials': trials
        }

    def _log_stats(self, stats: Dict[str, float]):
        logger.info(f"   Mean: {stats['mean_time']*1000:.2f}ms (±{stats['std_time']*1000:.2f}ms)")

    def benchmark_primitives(self):
        logger.info("=" * 80)
        logger.info("BENCHMARKING POSEIDON")
        logger.info("=" * 80)

        for arity in (2, 3, 8):
            inputs = list(range(1, arity + 1))

            logger.info(f"\n[native] Poseidon arity {arity}")
            stats = self.run_multiple_trials(lambda: poseidon_hash(inputs), trials=100)
            self.results['primitives'][f'poseidon{arity}_native'] = stats
            self._log_stats(stats)

            def synthesize():
                cs = ConstraintSystem(f"poseidon{arity}")
                wires = [cs.witness(value, f"in{i}") for i, value in enumerate(inputs)]
                poseidon_gadget(cs, wires)
                return cs

            logger.info(f"[gadget] Poseidon arity {arity}")
            stats = self.run_multiple_trials(synthesize, trials=20)
            stats['constraints'] = synthesize().num_constraints
            self.results['primitives'][f'poseidon{arity}_gadget'] = stats
            self._log_stats(stats)

    def benchmark_trees(self):
        logger.info("\n" + "=" * 80)
        logger.info("BENCHMARKING TREES")
        logger.info("=" * 80)

        for depth in DEPTHS:
            tree = MerkleTree(depth)
            counter = iter(range(1, 10 ** 9))
            logger.info(f"\n[commitment tree] append at depth {depth}")
            stats = self.run_multiple_trials(lambda: tree.append(next(counter)), trials=50)
            self.results['trees'][f'commitment_append_d{depth}'] = stats
            self._log_stats(stats)

            indexed = IndexedMerkleTree(depth)
            values = iter(random_nullifiers(50))
            logger.info(f"[nullifier tree] insert at depth {depth}")
            stats = self.run_multiple_trials(lambda: indexed.insert(next(values)), trials=50)
            self.results['trees'][f'nullifier_insert_d{depth}'] = stats
            self._log_stats(stats)

    def benchmark_circuits(self):
        logger.info("\n" + "=" * 80)
        logger.info("BENCHMARKING CIRCUIT SYNTHESIS")
        logger.info("=" * 80)

        rows: List[Dict[str, Any]] = []
        for depth in DEPTHS:
            orchestrator = CircuitOrchestrator(SystemConfig(), depth)
            for name in VARIANTS:
                shape = orchestrator.shape(name)
                witness = orchestrator.demo_witness(shape)
                circuit = build_circuit(shape)

                logger.info(f"\n[{name}] depth {depth}")
                cs, synth_time, mem_delta = self.measure_time_and_memory(circuit.check, witness)
                _, encode_time, _ = self.measure_time_and_memory(
                    lambda: (encode_r1cs(cs), encode_wtns(cs)))
                logger.info(f"   {cs.num_constraints} constraints, synthesis {synth_time:.2f}s, "
                            f"export {encode_time:.2f}s")

                rows.append({
                    'variant': name,
                    'depth': depth,
                    'batch_size': shape.batch_size,
                    'constraints': cs.num_constraints,
                    'wires': cs.num_wires,
                    'public_inputs': cs.num_public,
                    'synthesis_time': synth_time,
                    'export_time': encode_time,
                    'memory_delta_mb': mem_delta
                })

        self.results['circuits']['scaling'] = rows

    def run_all_benchmarks(self):
        """Run complete benchmark suite"""
        logger.info(f"\nSystem: {self.results['system_info']['cpu_count']} CPU cores, "
                    f"{self.results['system_info']['ram_total_gb']:.1f} GB RAM")

        total_start = time.time()
        self.benchmark_primitives()
        self.benchmark_trees()
        self.benchmark_circuits()
        total_time = time.time() - total_start

        logger.info("\n" + "=" * 80)
        logger.info(f"BENCHMARKING COMPLETE - Total time: {total_time:.2f}s")
        logger.info("=" * 80)

        self.save_results()
        self.print_summary()

    def save_results(self):
        """Save benchmark results to JSON"""
        results_dir = Path(__file__).parent / 'results'
        results_dir.mkdir(exist_ok=True)

        results_file = results_dir / 'benchmark_results.json'
        with open(results_file, 'w') as f:
            json.dump(self.results, f, indent=2)

        logger.info(f"\n Results saved to: {results_file}")

    def print_summary(self):
        logger.info("\n" + "=" * 80)
        logger.info("CONSTRAINT COUNTS")
        logger.info("=" * 80)

        primitives = self.results['primitives']
        for arity in (2, 3, 8):
            gadget = primitives[f'poseidon{arity}_gadget']
            logger.info(f"   Poseidon({arity}): {gadget['constraints']} constraints, "
                        f"native {primitives[f'poseidon{arity}_native']['mean_time']*1000:.3f} ms")

        for row in self.results['circuits']['scaling']:
            logger.info(f"   {row['variant']:28s} d={row['depth']:<3d} {row['constraints']:>9d} constraints "
                        f"{row['synthesis_time']:>7.2f}s")


def main():
    BenchmarkSuite().run_all_benchmarks()


if __name__ == "__main__":
    main()
