#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from anchorsync import __version__
from anchorsync.cli.output import ConsoleOutput
from anchorsync.config import SyncOptions, load_options
from anchorsync.exceptions import AnchorSyncError


def _resolve_options(args: argparse.Namespace) -> SyncOptions:
    """Options from --config, explicit source flags, or the environment."""
    if args.config:
        return load_options(args.config)
    if args.local or args.remote:
        return SyncOptions(
            local_path=Path(args.local) if args.local else None,
            remote_urls=args.remote or None,
        )
    return SyncOptions.from_env()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anchorsync",
        description="Inspect trust anchors from a local file or remote endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument("--config", "-c", type=Path, help="YAML config with an anchors section")
    parser.add_argument("--local", help="Local anchors JSON file")
    parser.add_argument(
        "--remote", action="append", metavar="URL",
        help="Remote anchors endpoint (repeat for several)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    status_p = subparsers.add_parser("status", help="Fetch anchors and show the selected set")
    status_p.add_argument("--limit", type=int, default=10, help="Anchors to list (default: 10)")

    stale_p = subparsers.add_parser("stale", help="Check whether a proof version is stale")
    stale_p.add_argument("height", type=int, help="Anchor height (proof version)")

    subparsers.add_parser("version", help="Show version")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    # Suppress verbose debug logs from third-party libraries
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    parser = build_parser()
    args = parser.parse_args(argv)
    load_dotenv(Path.cwd() / ".env")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    console = ConsoleOutput()

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "version":
        console.print(f"anchorsync {__version__}")
        return 0

    from anchorsync.cli.commands import stale, status

    try:
        options = _resolve_options(args)
        if args.command == "status":
            return asyncio.run(status.run(options, limit=args.limit, console=console))
        elif args.command == "stale":
            return asyncio.run(stale.run(options, args.height, console=console))
    except AnchorSyncError as e:
        console.print_error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
