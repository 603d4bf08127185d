"""
GasPulse Configuration

RPC endpoint, polling cadence, history and cache settings, fee thresholds.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv


DEFAULT_RPC_URL = "https://mainnet.base.org"

# Trailing statistics windows in milliseconds
DEFAULT_WINDOWS: Dict[str, int] = {
    "h1": 3_600_000,
    "h6": 21_600_000,
    "h24": 86_400_000,
}

DEFAULT_CACHE_PATH = Path.home() / ".gaspulse" / "cache.json"

CACHE_LAYOUTS = ("history", "latest")


# JSON-RPC settings
class RPCConfig:
    JSONRPC_VERSION = "2.0"
    REQUEST_ID = 1  # Constant id, one request per HTTP call

    METHOD_GAS_PRICE = "eth_gasPrice"
    METHOD_GET_BLOCK = "eth_getBlockByNumber"

    # Header fields only, no transaction bodies
    LATEST_BLOCK_PARAMS = ["latest", False]

    WEI_PER_GWEI = 10 ** 9


# Display thresholds for the legacy gas price (gwei)
class FeeThresholds:
    LOW_GWEI = 0.05  # below = low
    MEDIUM_GWEI = 0.2  # below = medium, otherwise high


# Storage key names
class CacheKeys:
    HISTORY = "history"

    # Scalar keys for the "latest" layout
    GAS_PRICE = "gasPrice"
    BLOB_FEE = "blobFee"
    BLOCK_NUMBER = "blockNumber"
    TIMESTAMP = "timestamp"

    SCALARS = (GAS_PRICE, BLOB_FEE, BLOCK_NUMBER, TIMESTAMP)


@dataclass
class GasPulseConfig:
    """Runtime settings for one GasPulse session."""
    rpc_url: str = DEFAULT_RPC_URL
    poll_interval_sec: float = 12.0
    tick_interval_sec: float = 1.0
    history_capacity: int = 200
    windows: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_WINDOWS))
    cache_path: Path = DEFAULT_CACHE_PATH
    cache_layout: str = "history"  # "history" (full buffer) or "latest" (4 scalar keys)
    request_timeout_sec: float = 10.0

    def __post_init__(self):
        self.cache_path = Path(self.cache_path).expanduser()
        if not self.rpc_url:
            raise ValueError("rpc_url must not be empty")
        if self.poll_interval_sec <= 0 or self.tick_interval_sec <= 0:
            raise ValueError("timer intervals must be positive")
        if self.history_capacity < 1:
            raise ValueError("history_capacity must be at least 1")
        if self.cache_layout not in CACHE_LAYOUTS:
            raise ValueError(f"cache_layout must be one of: {', '.join(CACHE_LAYOUTS)}")
        if self.request_timeout_sec <= 0:
            raise ValueError("request_timeout_sec must be positive")
        for name, window_ms in self.windows.items():
            if window_ms <= 0:
                raise ValueError(f"window {name} must be positive")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "GasPulseConfig":
        """
        Build config from environment variables (and a .env file if present).

        Recognized variables:
            GASPULSE_RPC_URL, GASPULSE_POLL_INTERVAL, GASPULSE_HISTORY_CAPACITY,
            GASPULSE_CACHE_PATH, GASPULSE_CACHE_LAYOUT, GASPULSE_REQUEST_TIMEOUT
        """
        load_dotenv(env_file)

        kwargs = {}
        if os.getenv("GASPULSE_RPC_URL"):
            kwargs["rpc_url"] = os.getenv("GASPULSE_RPC_URL")
        if os.getenv("GASPULSE_POLL_INTERVAL"):
            kwargs["poll_interval_sec"] = float(os.getenv("GASPULSE_POLL_INTERVAL"))
        if os.getenv("GASPULSE_HISTORY_CAPACITY"):
            kwargs["history_capacity"] = int(os.getenv("GASPULSE_HISTORY_CAPACITY"))
        if os.getenv("GASPULSE_CACHE_PATH"):
            kwargs["cache_path"] = Path(os.getenv("GASPULSE_CACHE_PATH"))
        if os.getenv("GASPULSE_CACHE_LAYOUT"):
            kwargs["cache_layout"] = os.getenv("GASPULSE_CACHE_LAYOUT")
        if os.getenv("GASPULSE_REQUEST_TIMEOUT"):
            kwargs["request_timeout_sec"] = float(os.getenv("GASPULSE_REQUEST_TIMEOUT"))

        return cls(**kwargs)
