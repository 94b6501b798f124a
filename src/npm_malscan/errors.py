"""Error hierarchy shared by the scanning pipeline."""

from __future__ import annotations


class ScanError(RuntimeError):
    """Base error for failures raised by the scanner."""


class ConfigError(ScanError):
    """Raised when the configuration cannot be loaded or is invalid."""


class LockParseError(ScanError):
    """Raised when a lock file cannot be decoded into a dependency set."""


class OsvError(ScanError):
    """Base error for failures while talking to the OSV database."""


class OsvTransportError(OsvError):
    """Raised when a batch request cannot be delivered or is rejected."""


class OsvDecodeError(OsvError):
    """Raised when a batch response does not match the expected shape."""
