"""
History Buffer

Bounded, oldest-first sequence of readings. Buffers are immutable:
appending returns a new buffer, and ObservableHistory swaps the current
buffer and notifies subscribers with the new one.
"""

import logging
import threading
from typing import Callable, Iterable, Iterator, List, Tuple

from .models import Reading

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 200

HistoryListener = Callable[["HistoryBuffer"], None]


class HistoryBuffer:
    """Immutable bounded history of readings, newest last."""

    __slots__ = ("_items", "_capacity")

    def __init__(self, readings: Iterable[Reading] = (), capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        items = tuple(readings)
        # Keep only the newest `capacity` readings
        self._items: Tuple[Reading, ...] = items[-capacity:]
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def readings(self) -> Tuple[Reading, ...]:
        return self._items

    @property
    def latest(self):
        """Newest reading, or None when empty."""
        return self._items[-1] if self._items else None

    def append(self, reading: Reading) -> "HistoryBuffer":
        """Return a new buffer with `reading` last, evicting the oldest if full."""
        return HistoryBuffer(self._items + (reading,), self._capacity)

    def gas_prices(self) -> List[float]:
        return [r.gas_price_gwei for r in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HistoryBuffer):
            return NotImplemented
        return self._items == other._items and self._capacity == other._capacity

    def __repr__(self) -> str:
        return f"HistoryBuffer(len={len(self._items)}, capacity={self._capacity})"


class ObservableHistory:
    """
    Holder for the current HistoryBuffer.

    Every swap notifies subscribers synchronously on the calling thread,
    in subscription order.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._buffer = HistoryBuffer(capacity=capacity)
        self._listeners: List[HistoryListener] = []
        self._lock = threading.RLock()

    @property
    def buffer(self) -> HistoryBuffer:
        return self._buffer

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def append(self, reading: Reading) -> HistoryBuffer:
        """Append a reading and notify subscribers."""
        with self._lock:
            return self._swap(self._buffer.append(reading))

    def replace(self, readings: Iterable[Reading]) -> HistoryBuffer:
        """Replace the whole buffer (cache restore) and notify subscribers."""
        with self._lock:
            return self._swap(HistoryBuffer(readings, self._buffer.capacity))

    def _swap(self, buffer: HistoryBuffer) -> HistoryBuffer:
        self._buffer = buffer
        logger.debug(f"History changed: {len(buffer)}/{buffer.capacity} readings")
        for listener in list(self._listeners):
            listener(buffer)
        return buffer
