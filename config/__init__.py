"""Configuration management for the shielded pool prover."""

from .config import SystemConfig, ProverConfig, load_config, save_config

__all__ = ['SystemConfig', 'ProverConfig', 'load_config', 'save_config']
