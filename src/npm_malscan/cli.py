"""CLI entrypoint: scan a repository for malicious npm packages.

Usage:
  npm-malscan [--root PATH] [--config PATH] [--json] [--summary PATH]

Exit status is 0 when nothing malicious was found (including when there is
nothing to scan) and 1 when malicious packages were found or the scan could
not complete.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from .config import load_settings
from .core import scan_repository
from .errors import ConfigError, OsvError
from .summary import RULE, render_markdown, render_text

EXIT_CLEAN = 0
EXIT_FAILURE = 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="npm-malscan",
        description="Check npm lock files against the OSV database for malicious packages.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Repository root to scan (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON settings file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON instead of text",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Also write a Markdown summary to this path",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings")
    return parser.parse_args(argv)


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    stream: TextIO | None = None,
) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("npm_malscan")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    # keep stdout clean for the JSON document
    configure_logging(
        verbose=args.verbose,
        quiet=args.quiet,
        stream=sys.stderr if args.json else sys.stdout,
    )

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    if not args.json:
        print("NPM Supply Chain Scanner")
        print(RULE + "\n")

    try:
        verdict = scan_repository(args.root, settings=settings)
    except OsvError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as exc:
        print(f"Fatal error: cannot scan {args.root}: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    if args.json:
        print(json.dumps(verdict.to_dict(), indent=2))
    else:
        print(render_text(verdict), end="")

    if args.summary is not None:
        try:
            args.summary.write_text(render_markdown(verdict), encoding="utf-8")
        except OSError as exc:
            print(f"ERROR: failed to write summary: {exc}", file=sys.stderr)

    return EXIT_FAILURE if verdict.malicious else EXIT_CLEAN


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
