"""
Retry logic with cooperative cancellation for anchor refreshes.

Features:
- Bounded or unbounded attempts with a fixed delay between them
- Cancellation token checked before every attempt; a pending delay
  wakes up as soon as the token is cancelled
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .config.defaults import RETRY_DELAY_MS

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: Optional[int] = None  # None retries until cancelled
    delay_ms: float = RETRY_DELAY_MS


@dataclass
class RetryStats:
    """Statistics for retry attempts."""
    attempts: int = 0
    failures: int = 0
    total_delay_ms: float = 0.0
    last_error: Optional[Exception] = None


class CancellationToken:
    """Cooperative cancellation flag shared by retry loops and timers."""

    def __init__(self):
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark cancelled and wake any sleeper. Idempotent."""
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    async def sleep(self, delay_s: float) -> bool:
        """Sleep up to delay_s seconds. Returns False if cancelled meanwhile."""
        if self._cancelled:
            return False
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=delay_s)
        except asyncio.TimeoutError:
            pass
        return not self._cancelled


class RetryContext:
    """State of one retry loop."""

    def __init__(
        self,
        task_id: str,
        config: RetryConfig,
        token: Optional[CancellationToken] = None,
    ):
        self.task_id = task_id
        self.config = config
        self.token = token or CancellationToken()
        self.stats = RetryStats()

    @property
    def can_retry(self) -> bool:
        if self.token.cancelled:
            return False
        max_attempts = self.config.max_attempts
        return max_attempts is None or self.stats.attempts < max_attempts

    @property
    def attempt(self) -> int:
        return self.stats.attempts

    async def wait_before_retry(self) -> bool:
        """Wait the configured delay. Returns False if cancelled while waiting."""
        delay_ms = self.config.delay_ms
        self.stats.total_delay_ms += delay_ms
        return await self.token.sleep(delay_ms / 1000.0)

    async def run(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Optional[Any]:
        """
        Call func until it succeeds, attempts run out, or the token is cancelled.

        Returns:
            The result of func, or None if no attempt succeeded. The last
            error is kept in self.stats.last_error.
        """
        while self.can_retry:
            self.stats.attempts += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                self.stats.failures += 1
                self.stats.last_error = e

                if not self.can_retry:
                    logger.error(f"{self.task_id}: {e}.")
                    break

                logger.error(f"{self.task_id}: {e}. Retrying in {int(self.config.delay_ms)}ms...")
                if not await self.wait_before_retry():
                    break

        if self.token.cancelled:
            logger.debug(f"{self.task_id}: cancelled after {self.stats.attempts} attempts")
        return None
