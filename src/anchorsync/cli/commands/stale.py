#!/usr/bin/env python
"""
Stale command - check a proof version against the current anchor set.
"""

from __future__ import annotations

from anchorsync.cli.output import ConsoleOutput
from anchorsync.config import SyncOptions
from anchorsync.sources import build_source
from anchorsync.store import compute_stale_threshold


async def run(options: SyncOptions, height: int, console: ConsoleOutput | None = None) -> int:
    """Exit 0 if height is current, 2 if it is stale."""
    console = console or ConsoleOutput()
    anchors = await build_source(options).fetch()
    ordered = sorted(anchors, key=lambda a: a.height, reverse=True)
    threshold = compute_stale_threshold(ordered)

    if height < threshold:
        console.print_warning(f"Version {height} is stale (threshold {threshold})")
        return 2

    console.print_success(f"Version {height} is current (threshold {threshold})")
    return 0
