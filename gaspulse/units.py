"""
Unit conversion for chain quantities.

Python ints are arbitrary precision, so wei-scale values above 2**64
convert without loss until the final float widening.
"""

from typing import Union

from .config import RPCConfig
from .errors import ProtocolFailure

Quantity = Union[str, int]


def hex_to_int(value: Quantity) -> int:
    """
    Decode a JSON-RPC hex quantity ("0x1a") into an int.

    Plain ints pass through unchanged.

    Raises:
        ProtocolFailure: on None, bool, or a string that is not hex
    """
    if isinstance(value, bool) or value is None:
        raise ProtocolFailure(f"expected hex quantity, got {value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ProtocolFailure(f"expected hex quantity, got {type(value).__name__}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise ProtocolFailure(f"invalid hex quantity {value!r}") from e


def to_gwei(raw: Quantity) -> float:
    """
    Convert a wei-scale value to gwei.

    Integer floor division by 10**9 happens before the float conversion,
    so the result truncates and never rounds.
    """
    wei = hex_to_int(raw)
    if wei < 0:
        raise ProtocolFailure(f"negative wei value {wei}")
    return float(wei // RPCConfig.WEI_PER_GWEI)
