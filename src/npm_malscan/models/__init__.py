"""Data models for the malicious package scanner."""

from __future__ import annotations

from .finding import Finding, SkippedManifest
from .lock_file import LockFile, LockFormat
from .verdict import ScanVerdict
from .vulnerability import ECOSYSTEM, VulnerabilityQuery, VulnerabilityRecord

__all__ = [
    "ECOSYSTEM",
    "Finding",
    "LockFile",
    "LockFormat",
    "ScanVerdict",
    "SkippedManifest",
    "VulnerabilityQuery",
    "VulnerabilityRecord",
]
