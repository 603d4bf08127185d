"""
Unit tests for windowed gas price statistics and fee levels.

Everything runs against a fixed reference time, no clocks involved.
"""

import os
import sys
import unittest

_project_root = os.path.normpath(os.path.join(os.path.dirname(__file__), os.pardir))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gaspulse.aggregator import WindowedStatsEngine, compute_stats, fee_level, window_stats  # noqa: E402
from gaspulse.config import DEFAULT_WINDOWS  # noqa: E402
from gaspulse.history import ObservableHistory  # noqa: E402
from gaspulse.models import Reading, WindowStats  # noqa: E402

NOW = 1_700_000_000_000
HOUR_MS = 3_600_000


def _reading(gas: float, age_ms: int, blob: float = 0.0) -> Reading:
    """Reading captured `age_ms` before NOW."""
    return Reading(gas_price_gwei=gas, blob_base_fee_gwei=blob, block_number=1, timestamp_ms=NOW - age_ms)


class TestWindowStats(unittest.TestCase):

    def test_empty_window_is_zero(self):
        stats = window_stats([], NOW, HOUR_MS)
        self.assertEqual(stats, WindowStats(0.0, 0.0, 0.0))

    def test_single_reading(self):
        stats = window_stats([_reading(3.0, 0)], NOW, HOUR_MS)
        self.assertEqual((stats.high, stats.low, stats.avg), (3.0, 3.0, 3.0))

    def test_high_low_avg(self):
        readings = [_reading(1.0, 300), _reading(4.0, 200), _reading(7.0, 100)]
        stats = window_stats(readings, NOW, HOUR_MS)
        self.assertEqual(stats.high, 7.0)
        self.assertEqual(stats.low, 1.0)
        self.assertAlmostEqual(stats.avg, 4.0)

    def test_boundary_is_inclusive(self):
        on_edge = _reading(5.0, HOUR_MS)
        past_edge = _reading(9.0, HOUR_MS + 1)
        stats = window_stats([past_edge, on_edge], NOW, HOUR_MS)
        self.assertEqual((stats.high, stats.low, stats.avg), (5.0, 5.0, 5.0))

    def test_only_gas_price_is_aggregated(self):
        """Blob fees ride along in history but never enter the stats."""
        readings = [_reading(1.0, 0, blob=1000.0), _reading(3.0, 0, blob=5000.0)]
        stats = window_stats(readings, NOW, HOUR_MS)
        self.assertEqual(stats.high, 3.0)
        self.assertAlmostEqual(stats.avg, 2.0)


class TestComputeStats(unittest.TestCase):

    def test_three_windows(self):
        readings = [
            _reading(10.0, 20 * HOUR_MS),  # 24h only
            _reading(6.0, 3 * HOUR_MS),    # 6h and 24h
            _reading(2.0, 10 * 60_000),    # all windows
        ]
        stats = compute_stats(readings, NOW, DEFAULT_WINDOWS)

        self.assertEqual(stats.h1, WindowStats(2.0, 2.0, 2.0))
        self.assertEqual((stats.h6.high, stats.h6.low), (6.0, 2.0))
        self.assertAlmostEqual(stats.h6.avg, 4.0)
        self.assertEqual((stats.h24.high, stats.h24.low), (10.0, 2.0))
        self.assertAlmostEqual(stats.h24.avg, 6.0)
        self.assertEqual(stats.computed_at_ms, NOW)

    def test_everything_too_old(self):
        stats = compute_stats([_reading(1.0, 25 * HOUR_MS)], NOW)
        for name in ("h1", "h6", "h24"):
            self.assertEqual(stats.get(name), WindowStats.empty())

    def test_custom_windows(self):
        stats = compute_stats([_reading(1.0, 5_000)], NOW, {"m1": 60_000})
        self.assertEqual(list(stats.windows), ["m1"])
        self.assertEqual(stats.get("m1").avg, 1.0)


class TestWindowedStatsEngine(unittest.TestCase):

    def test_recomputes_on_history_change(self):
        history = ObservableHistory()
        engine = WindowedStatsEngine(clock=lambda: NOW)
        history.subscribe(engine.on_history_change)

        history.append(_reading(2.0, 0))
        self.assertEqual(engine.latest.h1.high, 2.0)

        history.append(_reading(4.0, 0))
        self.assertEqual(engine.latest.h1.high, 4.0)
        self.assertAlmostEqual(engine.latest.h1.avg, 3.0)
        self.assertEqual(engine.recompute_count, 2)

    def test_initial_stats_are_zero(self):
        engine = WindowedStatsEngine(clock=lambda: NOW)
        self.assertEqual(engine.latest.h24, WindowStats.empty())


class TestFeeLevel(unittest.TestCase):

    def test_thresholds(self):
        self.assertEqual(fee_level(0.0), "low")
        self.assertEqual(fee_level(0.0499), "low")
        self.assertEqual(fee_level(0.05), "medium")
        self.assertEqual(fee_level(0.1999), "medium")
        self.assertEqual(fee_level(0.2), "high")
        self.assertEqual(fee_level(12.0), "high")

    def test_no_price(self):
        self.assertIsNone(fee_level(None))


if __name__ == "__main__":
    unittest.main()
