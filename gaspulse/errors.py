"""
GasPulse Errors

Failures are recovered inside the session; nothing here is ever shown
to the user as an error state.
"""


class GasPulseError(Exception):
    """Base class for all GasPulse failures."""


class FetchFailure(GasPulseError):
    """A poll produced no reading."""


class NetworkFailure(FetchFailure):
    """The RPC request could not complete (connection, timeout, HTTP status)."""


class ProtocolFailure(FetchFailure):
    """The RPC response was malformed or missing an expected field."""


class StorageFailure(GasPulseError):
    """The local cache could not be read, parsed, or written."""
