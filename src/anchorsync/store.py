"""
AnchorStore - the trusted, currently-active anchor state.

Each refresh builds a complete AnchorSnapshot (verifier, version index,
staleness threshold) and publishes it with a single reference swap, so a
reader holding a snapshot never sees a verifier and index from different
anchor sets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Union

from .config.defaults import STALE_WINDOW
from .models import Anchor
from .protocols import ProofVerifier, VerifierFactory

logger = logging.getLogger(__name__)


def root_key(root: Union[bytes, str]) -> str:
    """Normalize a root to the lowercase hex used as index key."""
    if isinstance(root, (bytes, bytearray, memoryview)):
        return bytes(root).hex()
    return root.lower()


def compute_stale_threshold(anchors: Sequence[Anchor], window: int = STALE_WINDOW) -> int:
    """Height below which versions are stale.

    anchors must be sorted most recent first. With more than `window`
    anchors the threshold is the height of the window-th oldest one,
    otherwise no staleness is enforced.
    """
    if len(anchors) > window:
        return anchors[len(anchors) - window].height
    return 0


@dataclass(frozen=True)
class AnchorSnapshot:
    """Immutable view of one anchor generation."""
    verifier: ProofVerifier
    version_index: Mapping[str, int] = field(default_factory=dict)
    stale_threshold: int = 0
    anchors: tuple = ()
    generation: int = 0

    @property
    def latest_height(self) -> Optional[int]:
        return self.anchors[0].height if self.anchors else None

    def lookup_version(self, root: Union[bytes, str]) -> Optional[int]:
        return self.version_index.get(root_key(root))

    def is_stale(self, height: int) -> bool:
        return height < self.stale_threshold


class AnchorStore:
    """
    Owner of the active AnchorSnapshot.

    Only the refresh scheduler calls replace(); everything else reads
    `snapshot` once and works on that reference.
    """

    def __init__(self, verifier_factory: VerifierFactory):
        self._verifier_factory = verifier_factory
        self._snapshot = AnchorSnapshot(verifier=verifier_factory())

    @property
    def snapshot(self) -> AnchorSnapshot:
        return self._snapshot

    @property
    def is_empty(self) -> bool:
        return not self._snapshot.anchors

    def replace(self, anchors: List[Anchor]) -> bool:
        """Publish a new snapshot built from anchors.

        Returns False (and leaves the current snapshot in place) for an
        empty list, True once the new snapshot is published.
        """
        if not anchors:
            logger.warning("Ignoring empty anchor list, keeping generation %d",
                           self._snapshot.generation)
            return False

        ordered = sorted(anchors, key=lambda a: a.height, reverse=True)
        threshold = compute_stale_threshold(ordered)

        verifier = self._verifier_factory()
        index = {}
        for anchor in ordered:
            verifier.add_anchor(anchor.root_bytes)
            index[anchor.root] = anchor.height

        self._snapshot = AnchorSnapshot(
            verifier=verifier,
            version_index=MappingProxyType(index),
            stale_threshold=threshold,
            anchors=tuple(ordered),
            generation=self._snapshot.generation + 1,
        )
        logger.info(f"Anchors refreshed, latest block {ordered[0].height}")
        return True

    def is_stale(self, height: int) -> bool:
        return self._snapshot.is_stale(height)

    def lookup_version(self, root: Union[bytes, str]) -> Optional[int]:
        return self._snapshot.lookup_version(root)
