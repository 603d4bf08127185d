"""
GasPulse: Gas Price & Blob Fee Tracker

Polls an Ethereum-compatible JSON-RPC endpoint (Base mainnet by default) with:
- Legacy gas price and blob base fee in gwei, plus block height
- Bounded rolling history (200 readings) cached on disk
- 1h / 6h / 24h high, low and average gas price
- Normalized trend path for a line chart

Usage:
    from gaspulse import GasPulse

    pulse = GasPulse()
    pulse.start()

    gas = pulse.get_gas_price()
    stats = pulse.get_stats()      # stats.h1.high, stats.h24.avg, ...
    state = pulse.get_state()      # everything the dashboard renders

    pulse.refresh_now()            # manual refresh, timer untouched
    pulse.stop()
"""

import logging
import threading
from typing import Callable, List, Optional, Tuple

from .aggregator import WindowedStatsEngine, compute_stats, fee_level
from .cache import JSONFileStore, KeyValueStore, MemoryStore, ReadingCache
from .config import GasPulseConfig
from .errors import (
    FetchFailure,
    GasPulseError,
    NetworkFailure,
    ProtocolFailure,
    StorageFailure,
)
from .history import HistoryBuffer, ObservableHistory
from .models import CachedState, DashboardState, Reading, StatsSnapshot, WindowStats, now_ms
from .poller import RepeatingTimer
from .rpc import GasRPCClient, ReadingSource
from .trend import TrendRenderer, render_path
from .units import to_gwei

logger = logging.getLogger(__name__)

__version__ = "1.0.0"
__all__ = [
    "GasPulse",
    "GasPulseConfig",
    "Reading",
    "DashboardState",
    "StatsSnapshot",
    "WindowStats",
    "HistoryBuffer",
    "GasRPCClient",
    "ReadingSource",
    "ReadingCache",
    "JSONFileStore",
    "MemoryStore",
    "compute_stats",
    "render_path",
    "to_gwei",
    "fee_level",
    "GasPulseError",
    "FetchFailure",
    "NetworkFailure",
    "ProtocolFailure",
    "StorageFailure",
]

# Default drawing surface (width, height) in pixels
DEFAULT_SURFACE = (600.0, 192.0)

PLACEHOLDER = "—"


class GasPulse:
    """
    Session controller for the gas tracker.

    Owns all session state. Readings flow source -> history; the stats
    engine and trend renderer follow the history through subscriptions,
    and the cache is written after every successful fetch. A failed fetch
    changes nothing.
    """

    def __init__(
        self,
        config: Optional[GasPulseConfig] = None,
        source: Optional[ReadingSource] = None,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], int] = now_ms,
        surface_size: Optional[Callable[[], Tuple[float, float]]] = None,
        on_draw: Optional[Callable[[List[Tuple[float, float]]], None]] = None,
    ):
        """
        Initialize GasPulse.

        Args:
            config: Session settings. Default: GasPulseConfig()
            source: Reading source. Default: GasRPCClient on config.rpc_url
            store: Cache store. Default: JSONFileStore at config.cache_path
            clock: Millisecond clock (tests inject a fixed one)
            surface_size: Callable returning the chart (width, height)
            on_draw: Callback receiving every rendered trend path
        """
        self.config = config or GasPulseConfig()
        self.clock = clock

        self._source = source or GasRPCClient(
            self.config.rpc_url,
            timeout_sec=self.config.request_timeout_sec,
            clock=clock,
        )
        self._cache = ReadingCache(
            store if store is not None else JSONFileStore(self.config.cache_path),
            layout=self.config.cache_layout,
            capacity=self.config.history_capacity,
        )

        # History and its subscribers
        self._history = ObservableHistory(self.config.history_capacity)
        self._stats = WindowedStatsEngine(self.config.windows, clock)
        self._trend = TrendRenderer(surface_size or (lambda: DEFAULT_SURFACE), on_draw)
        self._history.subscribe(self._stats.on_history_change)
        self._history.subscribe(self._trend.on_history_change)

        # Current display state
        self.gas_price_gwei: Optional[float] = None
        self.blob_base_fee_gwei: Optional[float] = None
        self.block_number: Optional[int] = None
        self.last_updated_ms: Optional[int] = None
        self.cached = False
        self.age_seconds: Optional[int] = None

        # One lock for all state; one guard so fetches never overlap
        self._lock = threading.RLock()
        self._fetch_guard = threading.Lock()
        # Bumped on stop so in-flight fetches from the old session are discarded
        self._generation = 0

        self._poll_timer: Optional[RepeatingTimer] = None
        self._tick_timer: Optional[RepeatingTimer] = None
        self._cache_loaded = False

        # Status
        self.running = False
        self.fetch_count = 0
        self.failure_count = 0
        self.dropped_ticks = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> bool:
        """
        Restore the cache, then start the poll and display timers.

        The first fetch is issued immediately on the poll timer thread.
        """
        if self.running:
            return True

        self.load_cache()

        with self._lock:
            self.running = True
            generation = self._generation

        self._poll_timer = RepeatingTimer(
            self.config.poll_interval_sec,
            self._on_poll_tick,
            name="gaspulse-poll",
            fire_immediately=True,
        )
        self._tick_timer = RepeatingTimer(
            self.config.tick_interval_sec,
            self._on_display_tick,
            name="gaspulse-tick",
        )
        self._poll_timer.start()
        self._tick_timer.start()

        logger.info(
            f"GasPulse started (rpc={self.config.rpc_url}, "
            f"every {self.config.poll_interval_sec:g}s, session {generation})"
        )
        return True

    def stop(self):
        """Stop both timers and abandon any in-flight fetch."""
        with self._lock:
            self.running = False
            self._generation += 1

        for timer in (self._poll_timer, self._tick_timer):
            if timer:
                timer.cancel()
        self._poll_timer = None
        self._tick_timer = None

        try:
            self._source.close()
        except Exception as e:
            logger.debug(f"Error closing source: {e}")

        logger.info("GasPulse stopped")

    def load_cache(self) -> bool:
        """
        Populate state from the cache. Runs at most once per instance,
        and never after a fetch has succeeded.

        Returns:
            True if cached readings were restored
        """
        with self._lock:
            if self._cache_loaded or self.fetch_count:
                self._cache_loaded = True
                return False
            self._cache_loaded = True

        state = self._cache.load()
        if state is None:
            return False

        with self._lock:
            if self.fetch_count:
                return False
            self._history.replace(state.readings)
            self._show(state.latest)
            self.cached = True
            self._update_age()
        return True

    # =========================================================================
    # Fetching
    # =========================================================================

    def refresh_now(self) -> bool:
        """
        Fetch immediately, outside the timer cadence.

        Does not reset the poll timer. If a fetch is already in flight this
        call is dropped.

        Returns:
            True if a new reading was applied
        """
        if not self._fetch_guard.acquire(blocking=False):
            logger.debug("Refresh dropped, fetch already in flight")
            return False
        try:
            return self._fetch_and_apply(self._generation)
        finally:
            self._fetch_guard.release()

    def _on_poll_tick(self):
        """Poll timer callback: start one fetch unless one is still running."""
        if not self._fetch_guard.acquire(blocking=False):
            with self._lock:
                self.dropped_ticks += 1
            logger.debug("Poll tick dropped, previous fetch still in flight")
            return

        worker = threading.Thread(
            target=self._fetch_worker,
            args=(self._generation,),
            name="gaspulse-fetch",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError:
            self._fetch_guard.release()
            raise

    def _fetch_worker(self, generation: int):
        try:
            self._fetch_and_apply(generation)
        except Exception as e:
            logger.exception(f"Unexpected error while fetching: {e}")
        finally:
            self._fetch_guard.release()

    def _fetch_and_apply(self, generation: int) -> bool:
        # Restored history must be in place before the first reading lands
        self.load_cache()

        try:
            reading = self._source.fetch_reading()
        except FetchFailure as e:
            with self._lock:
                self.failure_count += 1
            logger.warning(f"Fetch failed, keeping previous values: {e}")
            return False

        return self._apply_reading(reading, generation)

    def _apply_reading(self, reading: Reading, generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding reading for block {reading.block_number} from stopped session")
                return False

            self._show(reading)
            self.cached = False
            self.fetch_count += 1
            buffer = self._history.append(reading)
            self._update_age()

        # Fetches never overlap, so saves land in history order
        try:
            self._cache.save(CachedState(readings=buffer.readings))
        except StorageFailure as e:
            logger.warning(f"Cache write failed: {e}")

        return True

    def _show(self, reading: Reading):
        self.gas_price_gwei = reading.gas_price_gwei
        self.blob_base_fee_gwei = reading.blob_base_fee_gwei
        self.block_number = reading.block_number
        self.last_updated_ms = reading.timestamp_ms

    # =========================================================================
    # Display tick
    # =========================================================================

    def _on_display_tick(self):
        """Display timer callback: refresh age, redraw the trend."""
        with self._lock:
            self._update_age()
        self._trend.redraw()

    def _update_age(self):
        if self.last_updated_ms is None:
            self.age_seconds = None
        else:
            self.age_seconds = max(0, (self.clock() - self.last_updated_ms) // 1000)

    # =========================================================================
    # Rendering surface
    # =========================================================================

    def get_gas_price(self) -> Optional[float]:
        """Get current legacy gas price in gwei."""
        return self.gas_price_gwei

    def get_blob_fee(self) -> Optional[float]:
        """Get current blob base fee in gwei."""
        return self.blob_base_fee_gwei

    def get_block_number(self) -> Optional[int]:
        return self.block_number

    def get_last_updated(self) -> Optional[int]:
        """Capture time (ms) of the value on display."""
        return self.last_updated_ms

    def is_cached(self) -> bool:
        """True while showing restored values and no fetch has succeeded yet."""
        return self.cached

    def get_age(self) -> Optional[int]:
        """Seconds since the value on display was captured, as of the last tick."""
        return self.age_seconds

    def get_fee_level(self) -> Optional[str]:
        return fee_level(self.gas_price_gwei)

    def get_history(self) -> HistoryBuffer:
        return self._history.buffer

    def get_stats(self) -> StatsSnapshot:
        """Latest 1h/6h/24h statistics."""
        return self._stats.latest

    def get_trend(self) -> List[Tuple[float, float]]:
        """Most recently rendered trend path."""
        return list(self._trend.path)

    def get_state(self) -> DashboardState:
        """Consistent snapshot of every rendered field."""
        with self._lock:
            return DashboardState(
                gas_price_gwei=self.gas_price_gwei,
                blob_base_fee_gwei=self.blob_base_fee_gwei,
                block_number=self.block_number,
                last_updated_ms=self.last_updated_ms,
                cached=self.cached,
                age_seconds=self.age_seconds,
                fee_level=fee_level(self.gas_price_gwei),
                stats=self._stats.latest,
                trend=list(self._trend.path),
            )

    # =========================================================================
    # Status and diagnostics
    # =========================================================================

    def get_status(self) -> dict:
        """Get full session status."""
        status = self.get_state().to_dict()
        status.update({
            "running": self.running,
            "history_size": len(self._history.buffer),
            "fetches": self.fetch_count,
            "failures": self.failure_count,
            "dropped_ticks": self.dropped_ticks,
        })
        if isinstance(self._source, GasRPCClient):
            status["rpc"] = self._source.get_stats()
        return status

    def print_status(self):
        """Print formatted status to console."""
        state = self.get_state()
        tag = " (cached)" if state.cached else ""

        def gwei(value: Optional[float]) -> str:
            return f"{value:.8f}" if value is not None else PLACEHOLDER

        print(f"\n{'='*50}")
        print(f"GasPulse Status")
        print(f"{'='*50}")
        print(f"Legacy Gas Price: {gwei(state.gas_price_gwei)} Gwei{tag}")
        if state.fee_level:
            print(f"Fee level:        {state.fee_level}")
        print(f"Blob Base Fee:    {gwei(state.blob_base_fee_gwei)} Gwei{tag}")
        block = state.block_number if state.block_number is not None else PLACEHOLDER
        print(f"Block Number:     {block}{tag}")
        if state.age_seconds is not None:
            print(f"Last updated {state.age_seconds} seconds ago")

        print(f"\nGas price windows:")
        for name, stats in state.stats.windows.items():
            print(
                f"  {name:4} high {stats.high:.8f} / low {stats.low:.8f} / "
                f"avg {stats.avg:.8f}"
            )
        print(f"{'='*50}\n")

