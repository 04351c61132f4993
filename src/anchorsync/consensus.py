"""
Consensus selection across anchor lists fetched from independent endpoints.

Candidates that share the same leading root are treated as the same chain
state. The group with the most members wins; ties go to the group whose
leading anchor is higher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .exceptions import NoAnchorsSelectedError
from .models import Anchor

logger = logging.getLogger(__name__)


@dataclass
class ConsensusGroup:
    """Candidates agreeing on the same leading root."""
    anchors: List[Anchor]
    count: int = 1

    @property
    def leading(self) -> Anchor:
        return self.anchors[0]


def group_candidates(candidates: Iterable[List[Anchor]]) -> Dict[str, ConsensusGroup]:
    """Group non-empty candidate lists by the root of their first anchor.

    The first list seen for a root is kept as the group's representative.
    """
    groups: Dict[str, ConsensusGroup] = {}
    for anchors in candidates:
        if not anchors:
            continue
        key = anchors[0].root
        group = groups.get(key)
        if group is None:
            groups[key] = ConsensusGroup(anchors=anchors)
        else:
            group.count += 1
    return groups


def select_anchors(candidates: Iterable[List[Anchor]]) -> List[Anchor]:
    """Pick the anchor list most candidates agree on.

    Args:
        candidates: Anchor lists from one remote fetch batch (nulls removed)

    Returns:
        The representative list of the winning group

    Raises:
        NoAnchorsSelectedError: If every candidate list was empty.
    """
    groups = group_candidates(candidates)

    chosen: Optional[ConsensusGroup] = None
    for group in groups.values():
        if (
            chosen is None
            or group.count > chosen.count
            or (group.count == chosen.count and group.leading.height > chosen.leading.height)
        ):
            chosen = group

    if chosen is None:
        raise NoAnchorsSelectedError("No anchors selected")

    logger.debug(
        "Selected anchors with root %s at height %d (%d agreeing, %d groups)",
        chosen.leading.root[:16], chosen.leading.height,
        chosen.count, len(groups),
    )
    return chosen.anchors
