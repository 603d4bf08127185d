"""
Persistent Cache

A small key-value store (string keys, string values) and the reading
cache built on it. Two layouts are supported:

- "history": one key holding the JSON array of the bounded history
- "latest": four scalar keys for the last reading only

Loading never raises: absent, corrupt or partial data is an empty cache.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from .config import CACHE_LAYOUTS, CacheKeys
from .errors import StorageFailure
from .history import DEFAULT_CAPACITY
from .models import CachedState, Reading

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Last-write-wins string store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        """Store a value, replacing any previous one."""
        pass

    def set_many(self, items: Dict[str, str]):
        for key, value in items.items():
            self.set(key, value)


class MemoryStore(KeyValueStore):
    """In-process store. Contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value


class JSONFileStore(KeyValueStore):
    """
    Store backed by a single JSON object file.

    Writes go to a temp file that replaces the original, so a crash
    mid-write leaves the previous contents intact.
    """

    def __init__(self, path):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise StorageFailure(f"cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageFailure(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageFailure(f"cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageFailure(f"key {key!r} does not hold a string")
        return value

    def set(self, key: str, value: str):
        self.set_many({key: value})

    def set_many(self, items: Dict[str, str]):
        with self._lock:
            try:
                data = self._read_all()
            except StorageFailure:
                logger.warning(f"Overwriting unreadable cache file {self.path}")
                data = {}
            data.update(items)
            self._write_all(data)


class ReadingCache:
    """
    Loads and saves the session's cached readings.

    Args:
        store: Backing key-value store
        layout: "history" (full buffer) or "latest" (last reading only)
        capacity: Max readings restored from a stored history
    """

    def __init__(self, store: KeyValueStore, layout: str = "history", capacity: int = DEFAULT_CAPACITY):
        if layout not in CACHE_LAYOUTS:
            raise ValueError(f"layout must be one of: {', '.join(CACHE_LAYOUTS)}")
        self.store = store
        self.layout = layout
        self.capacity = capacity

    def load(self) -> Optional[CachedState]:
        """
        Read the cached state.

        Returns:
            CachedState, or None if nothing usable is stored
        """
        try:
            if self.layout == "history":
                state = self._load_history()
            else:
                state = self._load_latest()
        except StorageFailure as e:
            logger.warning(f"Ignoring unusable cache: {e}")
            return None

        if state is not None:
            logger.info(f"Restored {len(state)} cached reading(s), block {state.latest.block_number}")
        return state

    def _load_history(self) -> Optional[CachedState]:
        raw = self.store.get(CacheKeys.HISTORY)
        if raw is None:
            return None

        try:
            records = json.loads(raw)
        except ValueError as e:
            raise StorageFailure(f"history is not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise StorageFailure("history is not a JSON array")
        if not records:
            return None

        readings = tuple(Reading.from_dict(record) for record in records)
        return CachedState(readings=readings[-self.capacity:])

    def _load_latest(self) -> Optional[CachedState]:
        raw = {key: self.store.get(key) for key in CacheKeys.SCALARS}
        present = [key for key, value in raw.items() if value is not None]
        if not present:
            return None
        if len(present) != len(CacheKeys.SCALARS):
            raise StorageFailure(f"partial reading, only {', '.join(present)} stored")

        try:
            values = {key: json.loads(value) for key, value in raw.items()}
        except ValueError as e:
            raise StorageFailure(f"scalar key is not valid JSON: {e}") from e

        reading = Reading.from_dict({
            "gas": values[CacheKeys.GAS_PRICE],
            "blob": values[CacheKeys.BLOB_FEE],
            "block": values[CacheKeys.BLOCK_NUMBER],
            "timestamp": values[CacheKeys.TIMESTAMP],
        })
        return CachedState(readings=(reading,))

    def save(self, state: CachedState):
        """
        Persist the state, replacing what was stored.

        Raises:
            StorageFailure: if the store cannot be written
        """
        if not len(state):
            return

        if self.layout == "history":
            records = [r.to_dict() for r in state.readings[-self.capacity:]]
            self.store.set_many({CacheKeys.HISTORY: json.dumps(records)})
        else:
            latest = state.latest
            self.store.set_many({
                CacheKeys.GAS_PRICE: json.dumps(latest.gas_price_gwei),
                CacheKeys.BLOB_FEE: json.dumps(latest.blob_base_fee_gwei),
                CacheKeys.BLOCK_NUMBER: json.dumps(latest.block_number),
                CacheKeys.TIMESTAMP: json.dumps(latest.timestamp_ms),
            })
