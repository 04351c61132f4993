"""
RefreshScheduler - decides when anchors are refreshed.

Triggers:
- one initial refresh at start (not for static anchors)
- a periodic timer (check_interval_ms)
- file-change notifications for local anchor files
- explicit refresh() calls

All triggers run the same refresh routine. Runtime failures are logged
and retried; only the initial refresh is fatal.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import SourceKind
from .config.defaults import REFRESH_CHECK_INTERVAL_MS, REFRESH_INITIAL_MAX_ATTEMPTS, RETRY_DELAY_MS
from .exceptions import AnchorSourceError, BootstrapError
from .models import Anchor
from .retry import CancellationToken, RetryConfig, RetryContext
from .sources import AnchorSource, LocalFileSource
from .store import AnchorStore

logger = logging.getLogger(__name__)

# Seconds to wait for the watchdog thread on teardown
_OBSERVER_JOIN_TIMEOUT = 1.0


class SchedulerState(Enum):
    """Scheduler lifecycle states."""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    DESTROYED = "destroyed"


@dataclass
class SchedulerStatus:
    """Point-in-time view of the scheduler for status queries."""
    state: SchedulerState
    source: SourceKind
    generation: int
    anchor_count: int
    latest_height: Optional[int]
    stale_threshold: int
    refresh_count: int = 0
    failure_count: int = 0
    last_refresh_at: Optional[datetime] = None
    last_error: Optional[str] = None


class _AnchorFileHandler(FileSystemEventHandler):
    """Forwards changes of one file to the event loop."""

    def __init__(self, path: Path, loop: asyncio.AbstractEventLoop, callback: Callable[[], None]):
        super().__init__()
        self._path = path
        self._loop = loop
        self._callback = callback

    def _matches(self, raw_path) -> bool:
        if not raw_path:
            return False
        return Path(os.fsdecode(raw_path)).resolve() == self._path

    def _notify(self) -> None:
        # Runs on the watchdog thread
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._callback)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._notify()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._notify()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors often save by renaming a temp file over the target
        if not event.is_directory and self._matches(getattr(event, "dest_path", None)):
            self._notify()


class RefreshScheduler:
    """
    Owns the periodic task, the file observer and the retry loops.

    Every refresh is stamped with a sequence number; a refresh that
    finishes after a newer one has already been published is dropped.
    """

    def __init__(
        self,
        source: AnchorSource,
        store: AnchorStore,
        check_interval_ms: int = REFRESH_CHECK_INTERVAL_MS,
        retry_delay_ms: int = RETRY_DELAY_MS,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.source = source
        self.store = store
        self.check_interval_ms = check_interval_ms
        self.retry_delay_ms = retry_delay_ms
        self._observer_factory = observer_factory

        self.state = SchedulerState.UNINITIALIZED
        self._token = CancellationToken()
        self._timer_task: Optional[asyncio.Task] = None
        self._observer: Optional[Observer] = None
        self._inflight: Set[asyncio.Task] = set()

        self._seq = itertools.count(1)
        self._published_seq = 0
        self._refresh_count = 0
        self._failure_count = 0
        self._last_refresh_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def destroyed(self) -> bool:
        return self.state is SchedulerState.DESTROYED

    @property
    def has_timer(self) -> bool:
        return self._timer_task is not None

    @property
    def has_watcher(self) -> bool:
        return self._observer is not None

    async def start(self) -> None:
        """Run the initial refresh and start the timer and file watcher.

        Raises:
            BootstrapError: If the initial refresh yields no usable anchors.
                Timer and watcher are torn down before it propagates.
        """
        if self.state is not SchedulerState.UNINITIALIZED:
            raise RuntimeError(f"Scheduler cannot start from state {self.state.value}")

        if not self.source.refreshable:
            self.store.replace(await self.source.fetch())
            self.state = SchedulerState.ACTIVE
            return

        loop = asyncio.get_running_loop()
        try:
            if isinstance(self.source, LocalFileSource):
                self._start_watcher(loop, self.source.path)
            self._timer_task = loop.create_task(self._run_periodic())
        except OSError as e:
            self.destroy()
            raise BootstrapError(f"Cannot watch local anchors file: {e}") from e

        self.state = SchedulerState.ACTIVE
        try:
            await self.refresh(initial=True)
        except BaseException:
            self.destroy()
            raise
        # A timer or file-change refresh may have published first
        if self.store.is_empty:
            detail = f": {self._last_error}" if self._last_error else ""
            self.destroy()
            raise BootstrapError(f"A valid anchors source is required{detail}")

    def _start_watcher(self, loop: asyncio.AbstractEventLoop, path: Path) -> None:
        target = path.resolve()
        handler = _AnchorFileHandler(target, loop, self._on_file_change)
        observer = self._observer_factory()
        observer.schedule(handler, str(target.parent), recursive=False)
        observer.start()
        self._observer = observer
        logger.debug(f"Watching {target} for anchor changes")

    def _on_file_change(self) -> None:
        if self.destroyed:
            return
        logger.debug("Local anchors file changed, refreshing")
        self._spawn_refresh("file change")

    async def _run_periodic(self) -> None:
        interval_s = self.check_interval_ms / 1000.0
        while not self._token.cancelled:
            if not await self._token.sleep(interval_s):
                break
            self._spawn_refresh("periodic refresh")

    def _spawn_refresh(self, trigger: str) -> None:
        if self.destroyed:
            return
        if self._inflight:
            logger.warning(
                f"Starting {trigger} while {len(self._inflight)} refresh(es) still in flight"
            )
        task = asyncio.get_running_loop().create_task(self._guarded_refresh(trigger))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def wait_inflight(self) -> None:
        """Wait for refreshes started by the timer or the file watcher."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _guarded_refresh(self, trigger: str) -> None:
        try:
            await self.refresh()
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Error during {trigger}: {e}")

    async def refresh(self, initial: bool = False) -> bool:
        """
        Fetch anchors and publish them to the store.

        Returns:
            True if a new snapshot was published.
        """
        if self.destroyed:
            return False

        seq = next(self._seq)
        anchors = await self._fetch(initial)
        if anchors is None:
            self._failure_count += 1
            return False

        if self.destroyed:
            logger.debug(f"Dropping refresh #{seq}, scheduler destroyed")
            return False
        if seq < self._published_seq:
            logger.warning(
                f"Dropping refresh #{seq}, newer refresh #{self._published_seq} already published"
            )
            return False

        if not self.store.replace(anchors):
            self._last_error = "anchor source returned an empty list"
            self._failure_count += 1
            return False

        self._published_seq = seq
        self._refresh_count += 1
        self._last_refresh_at = datetime.now(timezone.utc)
        self._last_error = None
        return True

    async def _fetch(self, initial: bool) -> Optional[List[Anchor]]:
        if self.source.kind is SourceKind.LOCAL:
            try:
                return await self.source.fetch()
            except AnchorSourceError as e:
                self._last_error = str(e)
                logger.error(f"{e}. Skipping until the next trigger.")
                return None

        config = RetryConfig(
            max_attempts=REFRESH_INITIAL_MAX_ATTEMPTS if initial else None,
            delay_ms=self.retry_delay_ms,
        )
        ctx = RetryContext("Fetching remote anchors", config, self._token)
        anchors = await ctx.run(self.source.fetch)
        if anchors is None and ctx.stats.last_error is not None:
            self._last_error = str(ctx.stats.last_error)
        return anchors

    def destroy(self) -> None:
        """Stop the timer, the watcher and any retry loop. Idempotent."""
        if self.destroyed:
            return
        self.state = SchedulerState.DESTROYED
        self._token.cancel()

        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            if observer.is_alive():
                self._join_observer(observer)

        logger.debug("Refresh scheduler destroyed")

    @staticmethod
    def _join_observer(observer: Observer) -> None:
        """Join the watchdog thread without blocking a running event loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            observer.join(timeout=_OBSERVER_JOIN_TIMEOUT)
            return
        loop.run_in_executor(None, observer.join, _OBSERVER_JOIN_TIMEOUT)

    def status(self) -> SchedulerStatus:
        snapshot = self.store.snapshot
        return SchedulerStatus(
            state=self.state,
            source=self.source.kind,
            generation=snapshot.generation,
            anchor_count=len(snapshot.anchors),
            latest_height=snapshot.latest_height,
            stale_threshold=snapshot.stale_threshold,
            refresh_count=self._refresh_count,
            failure_count=self._failure_count,
            last_refresh_at=self._last_refresh_at,
            last_error=self._last_error,
        )
