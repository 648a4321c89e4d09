import argparse
import asyncio
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Tuple

from circuits import VARIANTS, CircuitConfig, CircuitKind, build_circuit, get_variant
from circuits.scenarios import batch_insert_witness, merge_witness, non_membership_witness, random_nullifiers
from config.config import SystemConfig, load_config
from r1cs import UnsatisfiableWitnessError
from trees import IndexedMerkleTree
from utils.utils import PerformanceMonitor, create_performance_report, format_duration, save_results, setup_logging
from zk import ProofSystem, ZKError

logger = logging.getLogger(__name__)

DEMO_DEPTH = 8
DEMO_BATCH_SIZE = 4


class CircuitOrchestrator:
    """Builds demo witnesses per variant and drives synthesis, export and proving"""

    def __init__(self, config: SystemConfig, depth: int = DEMO_DEPTH):
        self.config = config
        self.depth = depth
        self.proof_system = ProofSystem(config.prover)
        self.performance_monitor = PerformanceMonitor()
        self.results: Dict[str, Any] = {
            'circuits': {},
            'scenarios': {},
            'performance_metrics': {}
        }

        logger.info(f"Initialized circuit orchestrator at tree depth {depth}")

    def shape(self, name: str) -> CircuitConfig:
        """Variant shape at the demo depth; batch circuits are shrunk for speed"""
        config = get_variant(name).with_depth(self.depth)
        if config.kind != CircuitKind.TRANSACTION:
            config = replace(config, batch_size=min(config.batch_size, DEMO_BATCH_SIZE))
        return config

    def demo_witness(self, config: CircuitConfig) -> Any:
        if config.kind == CircuitKind.TRANSACTION:
            return merge_witness(config)
        if config.kind == CircuitKind.NULLIFIER_BATCH_INSERT:
            witness, _ = batch_insert_witness(config, random_nullifiers(config.batch_size))
            return witness
        tree = IndexedMerkleTree(config.tree_depth)
        tree.insert_batch(random_nullifiers(config.batch_size))
        return non_membership_witness(config, tree, random_nullifiers(config.batch_size))

    def run_scenario(self, name: str) -> Tuple[CircuitConfig, Any]:
        config = self.shape(name)
        witness = self.demo_witness(config)
        with self.performance_monitor.start_operation(f"synthesize_{name}"):
            try:
                cs = self.proof_system.synthesize(config, witness)
                satisfied = True
            except UnsatisfiableWitnessError as e:
                logger.error(f"{name}: {e}")
                cs, satisfied = build_circuit(config).build(witness), False

        self.results['circuits'][name] = cs.summary()
        self.results['scenarios'][name] = {
            'satisfied': satisfied,
            'public_inputs': cs.public_values()
        }
        return config, witness

    def summarize(self):
        self.results['performance_metrics'] = self.performance_monitor.get_summary()


def run_info(config: SystemConfig, depth: int) -> bool:
    orchestrator = CircuitOrchestrator(config, depth)
    print("=" * 80)
    print(f"CIRCUIT VARIANTS (tree depth {depth})")
    print("=" * 80)
    for name in VARIANTS:
        shape = orchestrator.shape(name)
        cs = build_circuit(shape).build(orchestrator.demo_witness(shape))
        print(f"  {name:28s} {cs.num_constraints:>9d} constraints {cs.num_wires:>9d} wires "
              f"{cs.num_public:>4d} public inputs")
        print(f"  {'':28s} protocol shape: {get_variant(name).num_public_inputs} public inputs "
              f"at depth {get_variant(name).tree_depth}")
    return True


def run_demo(config: SystemConfig, depth: int) -> bool:
    print("=" * 80)
    print("SHIELDED POOL CIRCUITS - DEMONSTRATION")
    print("   Multi-asset transaction + nullifier batch insertion + non-membership")
    print("=" * 80)

    orchestrator = CircuitOrchestrator(config, depth)
    start = time.time()
    for name in ('transaction_2x2', 'nullifier_batch_insert', 'nullifier_non_membership'):
        orchestrator.run_scenario(name)
        outcome = orchestrator.results['scenarios'][name]
        stats = orchestrator.results['circuits'][name]
        status = "SATISFIED" if outcome['satisfied'] else "UNSATISFIED"
        print(f"\n{name}: {status}")
        print(f"  Constraints: {stats['constraints']}, wires: {stats['wires']}")
        for i, value in enumerate(outcome['public_inputs'][:6]):
            print(f"  public[{i}] = {value:#066x}")
        if len(outcome['public_inputs']) > 6:
            print(f"  ... {len(outcome['public_inputs']) - 6} more")

    orchestrator.summarize()
    print(f"\nCompleted in {format_duration(time.time() - start)}")

    report_path = config.results_dir / "demo_report.json"
    save_results(orchestrator.results, report_path)
    perf_path = config.results_dir / "performance_report.txt"
    perf_path.write_text(create_performance_report(orchestrator.performance_monitor))
    print(f"Full results saved to: {report_path}")
    print(f"Performance report: {perf_path}")

    return all(outcome['satisfied'] for outcome in orchestrator.results['scenarios'].values())


def run_export(config: SystemConfig, depth: int, variant: str, directory: Path) -> bool:
    orchestrator = CircuitOrchestrator(config, depth)
    shape = orchestrator.shape(variant)
    paths = orchestrator.proof_system.export(shape, orchestrator.demo_witness(shape), directory)
    for kind, path in paths.items():
        print(f"  {kind}: {path}")
    return True


async def run_prove(config: SystemConfig, variant: str) -> bool:
    # Proving keys exist only for protocol-depth shapes
    shape = get_variant(variant)
    orchestrator = CircuitOrchestrator(config, shape.tree_depth)
    witness = orchestrator.demo_witness(shape)
    proof_system = orchestrator.proof_system
    try:
        artifact = await proof_system.prove(shape, witness)
        valid = await proof_system.verify(artifact)
    finally:
        proof_system.shutdown()
    print(f"{variant}: proof generated in {format_duration(artifact.generation_time)}, "
          f"{'valid' if valid else 'INVALID'}")
    return valid


def main():
    parser = argparse.ArgumentParser(description='Shielded pool constraint circuits')
    parser.add_argument('--config', type=str, default='config.yaml', help='Config file path')
    parser.add_argument('--log-level', type=str, default=None, help='Override configured log level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', help='List circuit variants and their sizes')
    info.add_argument('--depth', type=int, default=DEMO_DEPTH, help='Tree depth for sizing')

    demo = subparsers.add_parser('demo', help='Run end-to-end witness scenarios')
    demo.add_argument('--depth', type=int, default=DEMO_DEPTH, help='Tree depth')

    export = subparsers.add_parser('export', help='Write .r1cs / .wtns for a demo witness')
    export.add_argument('--variant', choices=list(VARIANTS), default=None)
    export.add_argument('--depth', type=int, default=DEMO_DEPTH, help='Tree depth')
    export.add_argument('--out', type=Path, default=None, help='Output directory')

    prove = subparsers.add_parser('prove', help='Prove and verify a demo witness with snarkjs')
    prove.add_argument('--variant', choices=list(VARIANTS), default=None)

    args = parser.parse_args()

    config = load_config(Path(args.config))
    setup_logging(args.log_level or config.log_level,
                  config.log_dir / f"shielded_pool_{time.strftime('%Y%m%d_%H%M%S')}.log")

    try:
        if args.command == 'info':
            success = run_info(config, args.depth)
        elif args.command == 'demo':
            success = run_demo(config, args.depth)
        elif args.command == 'export':
            success = run_export(config, args.depth, args.variant or config.default_variant,
                                 args.out or config.prover.build_dir)
        else:
            success = asyncio.run(run_prove(config, args.variant or config.default_variant))
    except (ZKError, UnsatisfiableWitnessError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        success = False

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
