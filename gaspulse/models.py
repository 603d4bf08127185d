"""
GasPulse Data Models

Dataclasses for readings, cached state, window statistics and the
dashboard snapshot handed to the presentation layer.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import time

from .errors import StorageFailure


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Reading:
    """One observation produced by a successful fetch."""
    gas_price_gwei: float
    blob_base_fee_gwei: float
    block_number: int
    timestamp_ms: int  # Capture time on this host, not the block time

    def get_age_ms(self, now: Optional[int] = None) -> int:
        """Get age of this reading in milliseconds."""
        return (now_ms() if now is None else now) - self.timestamp_ms

    def to_dict(self) -> dict:
        """Convert to the stored record shape."""
        return {
            "gas": self.gas_price_gwei,
            "blob": self.blob_base_fee_gwei,
            "block": self.block_number,
            "timestamp": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, record: dict) -> "Reading":
        """
        Rebuild a Reading from a stored record.

        Raises:
            StorageFailure: if any field is missing or not numeric
        """
        if not isinstance(record, dict):
            raise StorageFailure(f"expected record object, got {type(record).__name__}")
        try:
            return cls(
                gas_price_gwei=_as_float(record["gas"]),
                blob_base_fee_gwei=_as_float(record["blob"]),
                block_number=_as_int(record["block"]),
                timestamp_ms=_as_int(record["timestamp"]),
            )
        except KeyError as e:
            raise StorageFailure(f"record missing field {e}") from e


def _as_float(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StorageFailure(f"expected number, got {value!r}")
    return float(value)


def _as_int(value) -> int:
    if isinstance(value, bool):
        raise StorageFailure(f"expected integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise StorageFailure(f"expected integer, got {value!r}")
    return value


@dataclass(frozen=True)
class CachedState:
    """Durable snapshot restored at startup: oldest-first readings."""
    readings: Tuple[Reading, ...]

    @property
    def latest(self) -> Reading:
        return self.readings[-1]

    def __len__(self) -> int:
        return len(self.readings)


@dataclass(frozen=True)
class WindowStats:
    """High/low/average gas price over one trailing window."""
    high: float = 0.0
    low: float = 0.0
    avg: float = 0.0

    @classmethod
    def empty(cls) -> "WindowStats":
        return cls(0.0, 0.0, 0.0)

    def to_dict(self) -> dict:
        return {"high": self.high, "low": self.low, "avg": self.avg}


@dataclass(frozen=True)
class StatsSnapshot:
    """Statistics for every configured window, keyed by window name."""
    windows: Dict[str, WindowStats] = field(default_factory=dict)
    computed_at_ms: int = 0

    def get(self, name: str) -> WindowStats:
        return self.windows.get(name, WindowStats.empty())

    @property
    def h1(self) -> WindowStats:
        return self.get("h1")

    @property
    def h6(self) -> WindowStats:
        return self.get("h6")

    @property
    def h24(self) -> WindowStats:
        return self.get("h24")

    def to_dict(self) -> dict:
        return {name: stats.to_dict() for name, stats in self.windows.items()}


@dataclass(frozen=True)
class DashboardState:
    """
    Read-only view of everything the presentation layer renders.

    None means no value yet (shown as a placeholder, never as an error).
    """
    gas_price_gwei: Optional[float] = None
    blob_base_fee_gwei: Optional[float] = None
    block_number: Optional[int] = None
    last_updated_ms: Optional[int] = None
    cached: bool = False
    age_seconds: Optional[int] = None
    fee_level: Optional[str] = None
    stats: StatsSnapshot = field(default_factory=StatsSnapshot)
    trend: List[Tuple[float, float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "gas_price_gwei": self.gas_price_gwei,
            "blob_base_fee_gwei": self.blob_base_fee_gwei,
            "block_number": self.block_number,
            "last_updated_ms": self.last_updated_ms,
            "cached": self.cached,
            "age_seconds": self.age_seconds,
            "fee_level": self.fee_level,
            "stats": self.stats.to_dict(),
            "trend": [list(point) for point in self.trend],
        }
