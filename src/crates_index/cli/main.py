"""CLI entry point: sync the index mirror and inspect crates."""

from __future__ import annotations

import argparse
import logging
import sys

from crates_index.lib.config import Config
from crates_index.lib.crate import Crate
from crates_index.lib.errors import (
    CratesIndexError,
    DecodeError,
    EmptyHistoryError,
    TransportError,
)
from crates_index.lib.index import Index
from crates_index.lib.mirror import SyncResult


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="crates-index",
        description="Mirror and read the crates.io package index.",
    )
    parser.add_argument(
        "--index-path",
        default=None,
        help="Local checkout directory (default: cargo's own index checkout).",
    )
    parser.add_argument(
        "--index-url",
        default=None,
        help="Git URL of the index to mirror.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Enable info-level logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sync", help="Clone the index, or update an existing checkout.")
    show = sub.add_parser("show", help="Print the versions of one crate.")
    show.add_argument("name", help="Crate name (case-insensitive).")
    sub.add_parser("paths", help="Print every crate file path in the index.")
    sub.add_parser("check", help="Parse every crate file and report failures.")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_crate(crate: Crate) -> None:
    latest = crate.latest_version
    n = len(crate)
    s = "s" if n != 1 else ""
    print(f"{crate.name} {latest.version} ({n} version{s})")
    for version in crate.versions:
        marker = " (yanked)" if version.is_yanked else ""
        print(f"  {version.version}{marker}")


def _check(index: Index) -> bool:
    """Strictly parse every crate file; return whether any failed."""
    failures = 0
    total = 0
    for rel_path in index.crate_index_paths():
        total += 1
        try:
            Crate.from_path(index.path / rel_path)
        except (OSError, DecodeError, EmptyHistoryError) as exc:
            failures += 1
            print(f"{rel_path}: {exc}")
    s = "s" if total != 1 else ""
    print(f"Checked {total} crate file{s}, {failures} failed.")
    return failures > 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_env(
            overrides={
                "index_path": args.index_path,
                "index_url": args.index_url,
                "verbose": args.verbose,
            }
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    _configure_logging(config.verbose)
    index = Index(config.index_path, url=config.index_url)

    try:
        if args.command == "sync":
            result = index.retrieve_or_update()
            if result is SyncResult.CLONED:
                print(f"Cloned {index.url} to {index.path}")
            else:
                print(f"Updated {index.path}")
        elif args.command == "show":
            crate = index.crate(args.name)
            if crate is None:
                print(f"Error: crate {args.name!r} not found", file=sys.stderr)
                sys.exit(1)
            _print_crate(crate)
        elif args.command == "paths":
            for rel_path in index.crate_index_paths():
                print(rel_path)
        elif _check(index):
            sys.exit(1)
    except (CratesIndexError, FileNotFoundError) as exc:
        if isinstance(exc, TransportError):
            print(f"Error: sync failed: {exc}", file=sys.stderr)
        else:
            print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
