"""npm-malscan core package.

Scans a repository's npm lock files for packages that the OSV database
reports as malicious. The pipeline lives in :mod:`npm_malscan.core`; the
``npm-malscan`` console script wraps it in :mod:`npm_malscan.cli`.
"""

__all__ = [
    "core",
]

__version__ = "0.1.0"
