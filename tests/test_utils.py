"""
Performance monitoring and result serialization
"""

import json

import numpy as np
import pytest

from r1cs import BN254_SCALAR_PRIME, Violation
from utils import (
    PerformanceMonitor,
    convert_to_serializable,
    create_performance_report,
    format_duration,
    save_results,
)


class TestPerformanceMonitor:

    def test_summary_groups_operations(self):
        monitor = PerformanceMonitor()
        for _ in range(3):
            with monitor.start_operation("synthesize", variant="transaction_2x2"):
                sum(range(1000))
        with monitor.start_operation("export"):
            pass

        summary = monitor.get_summary()
        assert summary['total_operations'] == 4
        assert summary['operations']['synthesize']['count'] == 3
        assert summary['operations']['export']['count'] == 1
        assert monitor.metrics[0].additional_data == {'variant': "transaction_2x2", 'exception': False}

    def test_exception_recorded_and_propagated(self):
        monitor = PerformanceMonitor()
        with pytest.raises(ValueError):
            with monitor.start_operation("failing"):
                raise ValueError("bad witness")
        assert monitor.metrics[0].additional_data['exception'] is True

    def test_empty_summary_and_reset(self):
        monitor = PerformanceMonitor()
        with monitor.start_operation("noop"):
            pass
        monitor.reset()
        assert monitor.get_summary() == {'total_operations': 0, 'total_duration': 0.0, 'operations': {}}
        assert "No performance data available." in create_performance_report(monitor)

    def test_save_metrics(self, tmp_path):
        monitor = PerformanceMonitor()
        with monitor.start_operation("noop"):
            pass
        path = tmp_path / "metrics" / "metrics.json"
        monitor.save_metrics(path)
        data = json.loads(path.read_text())
        assert data['summary']['total_operations'] == 1
        assert 'system_info' in data


class TestSerialization:

    def test_field_elements_become_strings(self):
        converted = convert_to_serializable({'root': BN254_SCALAR_PRIME - 1, 'count': 3})
        assert converted == {'root': str(BN254_SCALAR_PRIME - 1), 'count': 3}

    def test_misc_types(self, tmp_path):
        assert convert_to_serializable(Violation.RANGE) == Violation.RANGE.value
        assert convert_to_serializable(b"\x01\x02") == "0102"
        assert convert_to_serializable(np.int64(5)) == 5
        assert convert_to_serializable(tmp_path) == str(tmp_path)
        assert convert_to_serializable((True, [1])) == [True, [1]]

    def test_save_results(self, tmp_path):
        results = {
            'circuits': {'transaction_2x2': {'constraints': 10, 'wires': 12, 'public_inputs': 3}},
            'scenarios': {'transaction_2x2': {'satisfied': True, 'public_inputs': [2 ** 200]}}
        }
        path = tmp_path / "demo_report.json"
        save_results(results, path)

        data = json.loads(path.read_text())
        assert data['data']['scenarios']['transaction_2x2']['public_inputs'] == [str(2 ** 200)]
        summary = (tmp_path / "demo_report_summary.txt").read_text()
        assert "transaction_2x2: SATISFIED" in summary
        assert "10 constraints" in summary


@pytest.mark.parametrize("seconds,expected", [
    (0.5, "500.0ms"),
    (2.5, "2.50s"),
    (90, "1m 30.0s"),
    (3723, "1h 2m 3.0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
