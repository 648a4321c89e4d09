import logging
import multiprocessing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class ProverConfig:
    snarkjs_command: str = "snarkjs"
    zkey_dir: Path = field(default_factory=lambda: Path("circuits/setup"))
    build_dir: Path = field(default_factory=lambda: Path("circuits/build"))
    proof_timeout: int = 600
    parallel_workers: int = field(default_factory=multiprocessing.cpu_count)
    max_concurrent_proofs: int = 4
    proof_lifetime: int = 3600

    def __post_init__(self):
        self.zkey_dir = Path(self.zkey_dir)
        self.build_dir = Path(self.build_dir)
        if self.parallel_workers < 0:
            raise ValueError(f"parallel_workers must be >= 0, got {self.parallel_workers}")
        if self.max_concurrent_proofs < 1:
            raise ValueError(f"max_concurrent_proofs must be >= 1, got {self.max_concurrent_proofs}")


@dataclass
class SystemConfig:
    prover: ProverConfig = field(default_factory=ProverConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_debug_mode: bool = False
    default_variant: str = "transaction_2x2"

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)
        if self.enable_debug_mode:
            self.log_level = "DEBUG"


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            prover_data = config_data.get('prover', {})
            defaults = ProverConfig()
            prover = ProverConfig(
                snarkjs_command=prover_data.get('snarkjs_command', defaults.snarkjs_command),
                zkey_dir=Path(prover_data.get('zkey_dir', defaults.zkey_dir)),
                build_dir=Path(prover_data.get('build_dir', defaults.build_dir)),
                proof_timeout=prover_data.get('proof_timeout', defaults.proof_timeout),
                parallel_workers=prover_data.get('parallel_workers', defaults.parallel_workers),
                max_concurrent_proofs=prover_data.get('max_concurrent_proofs', defaults.max_concurrent_proofs),
                proof_lifetime=prover_data.get('proof_lifetime', defaults.proof_lifetime)
            )

            return SystemConfig(
                prover=prover,
                log_dir=Path(config_data.get('log_dir', 'logs')),
                results_dir=Path(config_data.get('results_dir', 'results')),
                log_level=config_data.get('log_level', 'INFO'),
                enable_debug_mode=config_data.get('enable_debug_mode', False),
                default_variant=config_data.get('default_variant', 'transaction_2x2')
            )
        except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Could not load config file {config_path}: {e}")
            logger.warning("Using default configuration")

    return SystemConfig()


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_data = {
        'prover': {
            'snarkjs_command': config.prover.snarkjs_command,
            'zkey_dir': str(config.prover.zkey_dir),
            'build_dir': str(config.prover.build_dir),
            'proof_timeout': config.prover.proof_timeout,
            'parallel_workers': config.prover.parallel_workers,
            'max_concurrent_proofs': config.prover.max_concurrent_proofs,
            'proof_lifetime': config.prover.proof_lifetime
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'enable_debug_mode': config.enable_debug_mode,
        'default_variant': config.default_variant
    }

    try:
        with open(config_path, 'w') as f:
            yaml.dump(config_data, f, default_flow_style=False)
    except OSError as e:
        logger.warning(f"Could not save config file {config_path}: {e}")
