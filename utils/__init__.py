"""Utilities for the shielded pool circuits."""

from .utils import (
    setup_logging,
    save_results,
    convert_to_serializable,
    PerformanceMetrics,
    PerformanceMonitor,
    OperationContext,
    create_performance_report,
    create_results_summary,
    get_system_info,
    check_command_exists,
    format_duration
)

__all__ = [
    'setup_logging',
    'save_results',
    'convert_to_serializable',
    'PerformanceMetrics',
    'PerformanceMonitor',
    'OperationContext',
    'create_performance_report',
    'create_results_summary',
    'get_system_info',
    'check_command_exists',
    'format_duration'
]
