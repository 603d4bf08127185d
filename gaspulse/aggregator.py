"""
Windowed Statistics

High/low/average of the legacy gas price over trailing windows of the
history buffer. Blob fees are kept in history but not windowed.

Algorithm, per window:
1. Keep readings with now - timestamp <= window (inclusive)
2. high = max, low = min, avg = arithmetic mean of gas_price_gwei
3. Empty window -> 0/0/0
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from .config import DEFAULT_WINDOWS, FeeThresholds
from .models import Reading, StatsSnapshot, WindowStats, now_ms

logger = logging.getLogger(__name__)


def window_stats(readings: Iterable[Reading], now: int, window_ms: int) -> WindowStats:
    """Statistics for a single trailing window."""
    values = [r.gas_price_gwei for r in readings if now - r.timestamp_ms <= window_ms]
    if not values:
        return WindowStats.empty()
    return WindowStats(
        high=max(values),
        low=min(values),
        avg=sum(values) / len(values),
    )


def compute_stats(
    readings: Iterable[Reading],
    now: int,
    windows: Optional[Dict[str, int]] = None,
) -> StatsSnapshot:
    """
    Compute statistics for every window.

    Args:
        readings: History buffer (or any iterable of readings)
        now: Reference time in milliseconds
        windows: Window name -> length in ms. Default: h1, h6, h24

    Returns:
        StatsSnapshot keyed by window name
    """
    windows = windows or DEFAULT_WINDOWS
    readings = list(readings)
    return StatsSnapshot(
        windows={name: window_stats(readings, now, ms) for name, ms in windows.items()},
        computed_at_ms=now,
    )


class WindowedStatsEngine:
    """
    History subscriber that recomputes all windows on every change.

    No incremental update; the buffer is small and bounded.
    """

    def __init__(
        self,
        windows: Optional[Dict[str, int]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.windows = dict(windows or DEFAULT_WINDOWS)
        self.clock = clock
        self.latest = compute_stats([], self.clock(), self.windows)
        self.recompute_count = 0

    def on_history_change(self, buffer: Iterable[Reading]):
        """Listener hook for ObservableHistory."""
        self.latest = compute_stats(buffer, self.clock(), self.windows)
        self.recompute_count += 1
        logger.debug(f"Stats recomputed: {self.latest.to_dict()}")


def fee_level(gas_price_gwei: Optional[float]) -> Optional[str]:
    """
    Classify a gas price for display.

    Returns:
        'low' (< 0.05 gwei), 'medium' (< 0.2 gwei), 'high', or None if no price
    """
    if gas_price_gwei is None:
        return None
    if gas_price_gwei < FeeThresholds.LOW_GWEI:
        return "low"
    if gas_price_gwei < FeeThresholds.MEDIUM_GWEI:
        return "medium"
    return "high"
