"""
Utilities for the shielded pool circuits
Logging setup, performance monitoring and result serialization
"""

import json
import logging
import platform
import shutil
import time
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import psutil

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


@dataclass
class PerformanceMetrics:
    operation: str
    duration_seconds: float
    cpu_percent: float
    memory_mb: float
    timestamp: float
    additional_data: Dict[str, Any] = field(default_factory=dict)


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Log to a timestamped file under logs/ and to stderr"""
    if log_file is None:
        log_file = Path("logs") / f"shielded_pool_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.info(f"Logging initialized. Log file: {log_file}")
    return logger


class PerformanceMonitor:
    """Collects timing, CPU and RSS samples per named operation"""

    def __init__(self):
        self.metrics: List[PerformanceMetrics] = []
        self.process = psutil.Process()

    def start_operation(self, operation_name: str, **additional_data) -> 'OperationContext':
        return OperationContext(self, operation_name, additional_data)

    def record_metric(self, metric: PerformanceMetrics):
        self.metrics.append(metric)

    def get_summary(self) -> Dict[str, Any]:
        if not self.metrics:
            return {
                'total_operations': 0,
                'total_duration': 0.0,
                'operations': {}
            }

        operation_groups = defaultdict(list)
        for metric in self.metrics:
            operation_groups[metric.operation].append(metric)

        summary = {
            'total_operations': len(self.metrics),
            'operations': {}
        }

        for op_name, metrics in operation_groups.items():
            durations = np.array([m.duration_seconds for m in metrics])
            cpu_usages = [m.cpu_percent for m in metrics if m.cpu_percent > 0]
            memory_usages = [m.memory_mb for m in metrics if m.memory_mb > 0]
            total = float(durations.sum())

            summary['operations'][op_name] = {
                'count': len(metrics),
                'total_duration': total,
                'avg_duration': float(np.mean(durations)),
                'median_duration': float(np.median(durations)),
                'min_duration': float(durations.min()),
                'max_duration': float(durations.max()),
                'std_duration': float(np.std(durations)) if len(durations) > 1 else 0.0,
                'avg_cpu_percent': float(np.mean(cpu_usages)) if cpu_usages else 0.0,
                'avg_memory_mb': float(np.mean(memory_usages)) if memory_usages else 0.0,
                'peak_memory_mb': max(memory_usages) if memory_usages else 0.0,
                'throughput_ops_per_sec': len(metrics) / total if total > 0 else 0.0
            }

        summary['total_duration'] = sum(
            op_data['total_duration']
            for op_data in summary['operations'].values()
        )
        return summary

    def save_metrics(self, filepath: Path):
        filepath.parent.mkdir(parents=True, exist_ok=True)

        metrics_data = {
            'metrics': [asdict(m) for m in self.metrics],
            'summary': self.get_summary(),
            'system_info': get_system_info(),
            'timestamp': datetime.now().isoformat()
        }

        with open(filepath, 'w') as f:
            json.dump(metrics_data, f, indent=2, default=str)

    def reset(self):
        self.metrics.clear()


class OperationContext:
    """Context manager recording one PerformanceMetrics sample on exit"""

    def __init__(self, monitor: PerformanceMonitor, operation_name: str,
                 additional_data: Optional[Dict[str, Any]] = None):
        self.monitor = monitor
        self.operation_name = operation_name
        self.additional_data = dict(additional_data or {})
        self.start_time = 0.0
        self.start_memory = 0.0

    def __enter__(self):
        self.start_time = time.time()
        # First cpu_percent call only primes the counter
        self.monitor.process.cpu_percent()
        self.start_memory = self.monitor.process.memory_info().rss / 1024 / 1024
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        cpu_percent = self.monitor.process.cpu_percent()
        end_memory = self.monitor.process.memory_info().rss / 1024 / 1024

        self.monitor.record_metric(PerformanceMetrics(
            operation=self.operation_name,
            duration_seconds=duration,
            cpu_percent=cpu_percent,
            memory_mb=max(self.start_memory, end_memory),
            timestamp=self.start_time,
            additional_data={**self.additional_data, 'exception': exc_type is not None}
        ))


def get_system_info() -> Dict[str, Any]:
    vm = psutil.virtual_memory()
    info = {
        'platform': platform.platform(),
        'processor': platform.processor(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'system': platform.system(),
        'cpu_count_physical': psutil.cpu_count(logical=False),
        'cpu_count_logical': psutil.cpu_count(logical=True),
        'total_memory_gb': round(vm.total / 1024 / 1024 / 1024, 2),
        'available_memory_gb': round(vm.available / 1024 / 1024 / 1024, 2),
        'memory_percent_used': vm.percent,
        'snarkjs_available': check_command_exists('snarkjs'),
        'timestamp': datetime.now().isoformat()
    }
    if hasattr(psutil, 'getloadavg'):
        info['load_average'] = psutil.getloadavg()
    return info


def check_command_exists(command: str) -> bool:
    return shutil.which(command) is not None


def convert_to_serializable(obj: Any) -> Any:
    """JSON-friendly view; field elements become decimal strings as snarkjs expects"""
    if hasattr(obj, '__dataclass_fields__'):
        return convert_to_serializable(asdict(obj))
    elif isinstance(obj, dict):
        return {str(k): convert_to_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_to_serializable(item) for item in obj]
    elif isinstance(obj, bool):
        return obj
    elif isinstance(obj, int):
        return str(obj) if obj.bit_length() > 53 else obj
    elif isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, bytes):
        return obj.hex()
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    return obj


def save_results(results: Dict[str, Any], filepath: Path):
    """Save results as JSON with metadata, plus a text summary beside it"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    enhanced_results = {
        'metadata': {
            'generated_at': datetime.now().isoformat(),
            'system_info': get_system_info(),
            'file_path': str(filepath)
        },
        'data': convert_to_serializable(results)
    }

    with open(filepath, 'w') as f:
        json.dump(enhanced_results, f, indent=2, default=str)

    summary_path = filepath.parent / f"{filepath.stem}_summary.txt"
    with open(summary_path, 'w') as f:
        f.write(create_results_summary(results))

    logger.info(f"Results saved to {filepath}")
    logger.info(f"Summary saved to {summary_path}")


def create_results_summary(results: Dict[str, Any]) -> str:
    summary = []
    summary.append("=" * 80)
    summary.append("SHIELDED POOL CIRCUITS - RESULTS SUMMARY")
    summary.append("=" * 80)
    summary.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    summary.append("")

    if 'circuits' in results:
        summary.append("CIRCUITS:")
        for name, stats in results['circuits'].items():
            summary.append(
                f"  {name}: {stats.get('constraints', '?')} constraints, "
                f"{stats.get('wires', '?')} wires, {stats.get('public_inputs', '?')} public inputs")
        summary.append("")

    if 'scenarios' in results:
        summary.append("SCENARIOS:")
        for name, outcome in results['scenarios'].items():
            status = "SATISFIED" if outcome.get('satisfied') else "UNSATISFIED"
            summary.append(f"  {name}: {status}")
        summary.append("")

    summary.append("=" * 80)
    return "\n".join(summary)


def create_performance_report(metrics: PerformanceMonitor) -> str:
    summary = metrics.get_summary()

    report = []
    report.append("=" * 80)
    report.append("SHIELDED POOL CIRCUITS - PERFORMANCE REPORT")
    report.append("=" * 80)
    report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    report.append(f"Total Operations: {summary.get('total_operations', 0)}")
    report.append(f"Total Duration: {format_duration(summary.get('total_duration', 0.0))}")
    report.append("")

    if summary['operations']:
        report.append("OPERATION BREAKDOWN:")
        report.append("-" * 60)

        for op_name, op_data in summary['operations'].items():
            report.append(f"\n{op_name.upper()}:")
            report.append(f"  Executions: {op_data['count']}")
            report.append(f"  Total Time: {format_duration(op_data['total_duration'])}")
            report.append(f"  Average / Median: {format_duration(op_data['avg_duration'])} / "
                          f"{format_duration(op_data['median_duration'])}")
            report.append(f"  Min/Max Time: {format_duration(op_data['min_duration'])} / "
                          f"{format_duration(op_data['max_duration'])}")
            report.append(f"  Std Deviation: {op_data['std_duration']:.4f}s")
            if op_data['avg_cpu_percent'] > 0:
                report.append(f"  Average CPU: {op_data['avg_cpu_percent']:.1f}%")
            if op_data['peak_memory_mb'] > 0:
                report.append(f"  Peak Memory: {op_data['peak_memory_mb']:.1f} MB")
    else:
        report.append("No performance data available.")

    report.append("")
    report.append("=" * 80)
    return "\n".join(report)


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    return f"{hours}h {minutes}m {secs:.1f}s"
