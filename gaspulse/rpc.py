"""
JSON-RPC Fetch Client

Polls one Ethereum-compatible endpoint for the legacy gas price and the
latest block header, and assembles a single Reading.

Blob base fee uses the product form:
    (excessBlobGas * baseFeePerGas) // 2, then scaled to gwei.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from collections.abc import Mapping
from typing import Any, Callable, List, Optional

import requests

from .config import RPCConfig
from .errors import NetworkFailure, ProtocolFailure
from .models import Reading, now_ms
from .units import hex_to_int, to_gwei

logger = logging.getLogger(__name__)

REQUIRED_BLOCK_FIELDS = ("number", "excessBlobGas", "baseFeePerGas")


class ReadingSource(ABC):
    """
    Anything that can produce one Reading per call.

    The session controller only depends on this interface, so tests can
    inject a fake source instead of a live endpoint.
    """

    @abstractmethod
    def fetch_reading(self) -> Reading:
        """
        Fetch and assemble one Reading.

        Raises:
            FetchFailure: if no complete reading could be produced
        """
        pass

    def close(self):
        """Release any held resources."""
        pass


class GasRPCClient(ReadingSource):
    """
    JSON-RPC client for gas price and block header polling.

    Both calls go out concurrently and must both succeed; a reading is
    never built from just one of them.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            rpc_url: JSON-RPC endpoint (HTTPS POST)
            timeout_sec: Per-request timeout
            session: Optional pre-built requests session (tests pass a mock)
            clock: Millisecond clock used to stamp readings
        """
        self.rpc_url = rpc_url
        self.timeout_sec = timeout_sec
        self.clock = clock
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

        # Statistics
        self.request_count = 0
        self.error_count = 0

    def _rpc_call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": RPCConfig.JSONRPC_VERSION,
            "id": RPCConfig.REQUEST_ID,
            "method": method,
            "params": params,
        }

        try:
            resp = self._session.post(self.rpc_url, json=payload, timeout=self.timeout_sec)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NetworkFailure(f"{method}: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolFailure(f"{method}: response is not JSON") from e

        if not isinstance(data, dict):
            raise ProtocolFailure(f"{method}: unexpected response shape")
        if data.get("error"):
            raise ProtocolFailure(f"{method}: RPC error {data['error']}")
        if "result" not in data:
            raise ProtocolFailure(f"{method}: response missing result")
        return data["result"]

    def get_gas_price(self) -> Any:
        """Raw eth_gasPrice result (hex wei)."""
        return self._rpc_call(RPCConfig.METHOD_GAS_PRICE, [])

    def get_latest_block(self) -> Mapping[str, Any]:
        """Latest block header without transaction bodies."""
        result = self._rpc_call(RPCConfig.METHOD_GET_BLOCK, list(RPCConfig.LATEST_BLOCK_PARAMS))
        if not isinstance(result, Mapping):
            raise ProtocolFailure("eth_getBlockByNumber: unexpected block payload")
        return result

    def fetch_reading(self) -> Reading:
        self.request_count += 1

        try:
            # Leaving the executor joins both calls before either result is used
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="gaspulse-rpc") as executor:
                gas_future = executor.submit(self.get_gas_price)
                block_future = executor.submit(self.get_latest_block)
            reading = build_reading(gas_future.result(), block_future.result(), self.clock())
        except Exception:
            self.error_count += 1
            raise

        logger.debug(
            f"Reading block={reading.block_number} gas={reading.gas_price_gwei} "
            f"blob={reading.blob_base_fee_gwei}"
        )
        return reading

    def close(self):
        self._session.close()

    def get_stats(self) -> dict:
        """Get client statistics."""
        return {
            "rpc_url": self.rpc_url,
            "requests": self.request_count,
            "errors": self.error_count,
        }


def calculate_blob_base_fee(excess_blob_gas: int, base_fee_per_gas: int) -> float:
    """Blob base fee in gwei: (excessBlobGas * baseFeePerGas) // 2, truncated to gwei."""
    return to_gwei((excess_blob_gas * base_fee_per_gas) // 2)


def build_reading(gas_price_result: Any, block: Mapping[str, Any], timestamp_ms: int) -> Reading:
    """
    Assemble a Reading from raw RPC results.

    Raises:
        ProtocolFailure: if the block is missing a required field or any
            quantity fails to decode
    """
    missing = [name for name in REQUIRED_BLOCK_FIELDS if block.get(name) is None]
    if missing:
        raise ProtocolFailure(f"block missing required fields: {', '.join(missing)}")

    return Reading(
        gas_price_gwei=to_gwei(gas_price_result),
        blob_base_fee_gwei=calculate_blob_base_fee(
            hex_to_int(block["excessBlobGas"]),
            hex_to_int(block["baseFeePerGas"]),
        ),
        block_number=hex_to_int(block["number"]),
        timestamp_ms=timestamp_ms,
    )
