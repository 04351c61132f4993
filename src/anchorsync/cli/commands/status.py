#!/usr/bin/env python
"""
Status command - fetch the configured anchors once and show what would be trusted.
"""

from __future__ import annotations

from rich.table import Table

from anchorsync.cli.output import ConsoleOutput
from anchorsync.config import SyncOptions
from anchorsync.consensus import group_candidates, select_anchors
from anchorsync.sources import RemoteSource, build_source
from anchorsync.store import compute_stale_threshold


async def run(options: SyncOptions, limit: int = 10, console: ConsoleOutput | None = None) -> int:
    """Run the status command."""
    console = console or ConsoleOutput()
    source = build_source(options)

    if isinstance(source, RemoteSource):
        candidates = await source.fetch_candidates()
        groups = group_candidates(candidates)
        anchors = select_anchors(candidates)
        console.print(
            f"{len(candidates)}/{len(source.urls)} endpoints answered, "
            f"{len(groups)} distinct chain states"
        )
    else:
        anchors = await source.fetch()

    if not anchors:
        console.print_warning("Source returned no anchors")
        return 1

    ordered = sorted(anchors, key=lambda a: a.height, reverse=True)
    threshold = compute_stale_threshold(ordered)

    console.print(f"""
[bold]Anchor Status[/bold]

Source: {source.kind.value}
Anchors: {len(ordered)}
Latest block: {ordered[0].height}
Stale below: {threshold if threshold else "(none)"}
""")

    table = Table(title=f"Most recent {min(limit, len(ordered))} anchors")
    table.add_column("Height", justify="right")
    table.add_column("Root")
    table.add_column("Block hash")
    for anchor in ordered[:limit]:
        table.add_row(str(anchor.height), anchor.root, anchor.block.hash)
    console.print_table(table)

    return 0
