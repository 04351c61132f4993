"""
Anchor sources - produce candidate anchor lists from one configured origin.

Sources only fetch and parse; trust decisions (consensus, publishing)
happen elsewhere.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

import aiofiles
import httpx

from .config import SourceKind, SyncOptions
from .config.defaults import HTTP_TIMEOUT_SECONDS
from .consensus import select_anchors
from .exceptions import AnchorFormatError, AnchorSourceError
from .models import Anchor, parse_anchor_list

logger = logging.getLogger(__name__)


class AnchorSource(ABC):
    """Base class for anchor origins."""

    kind: SourceKind

    @abstractmethod
    async def fetch(self) -> List[Anchor]:
        """Return one anchor list from this origin.

        Raises:
            AnchorSourceError: If no list could be produced.
        """
        pass

    @property
    def refreshable(self) -> bool:
        return True


class LocalFileSource(AnchorSource):
    """Anchors read from a JSON file, re-read on every fetch."""

    kind = SourceKind.LOCAL

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def fetch(self) -> List[Anchor]:
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                data = await f.read()
            return parse_anchor_list(json.loads(data))
        except AnchorFormatError:
            raise
        except (OSError, ValueError) as e:
            raise AnchorSourceError(
                f"Failed to read or parse local anchors file {self.path}: {e}"
            ) from e


class StaticSource(AnchorSource):
    """A fixed anchor list supplied at construction."""

    kind = SourceKind.STATIC

    def __init__(self, anchors: List[Anchor]):
        self._anchors = list(anchors)

    @property
    def refreshable(self) -> bool:
        return False

    async def fetch(self) -> List[Anchor]:
        return list(self._anchors)


class RemoteSource(AnchorSource):
    """
    Anchors fetched from several HTTP endpoints at once.

    Every endpoint is queried concurrently. A failing endpoint contributes
    nothing; the surviving lists go through consensus selection.
    """

    kind = SourceKind.REMOTE

    def __init__(
        self,
        urls: List[str],
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not urls:
            raise AnchorSourceError("RemoteSource needs at least one URL")
        self.urls = list(urls)
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _fetch_one(self, client: httpx.AsyncClient, url: str) -> Optional[List[Anchor]]:
        """Fetch one endpoint. Returns None on any network or format failure."""
        logger.info(f"Fetching anchors from: {url}")
        try:
            resp = await client.get(url)
            if not resp.is_success:
                raise AnchorSourceError(f"Status: {resp.status_code}")
            return parse_anchor_list(resp.json())
        except (httpx.HTTPError, ValueError, AnchorSourceError) as e:
            logger.error(f"Error fetching {url}: {e}")
            return None

    async def fetch_candidates(self) -> List[List[Anchor]]:
        """Fetch all endpoints and return the lists that arrived intact.

        Raises:
            AnchorSourceError: If every endpoint failed.
        """
        async with self._client() as client:
            responses = await asyncio.gather(
                *(self._fetch_one(client, url) for url in self.urls)
            )

        valid = [r for r in responses if r is not None]
        if not valid:
            raise AnchorSourceError("No valid remote anchors found")
        return valid

    async def fetch(self) -> List[Anchor]:
        return select_anchors(await self.fetch_candidates())


def build_source(
    options: SyncOptions,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AnchorSource:
    """Create the source named by options.

    Raises:
        ConfigurationError: Unless exactly one origin is configured.
    """
    kind = options.source_kind
    if kind is SourceKind.LOCAL:
        return LocalFileSource(options.local_path)
    if kind is SourceKind.REMOTE:
        return RemoteSource(options.remote_urls, timeout=options.http_timeout, transport=transport)
    return StaticSource(options.static_anchors)
