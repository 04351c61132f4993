"""
Shared dataclasses for anchor data and verification receipts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List

from .exceptions import AnchorFormatError

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})+$")


@dataclass(frozen=True)
class BlockRef:
    """Block an anchor was observed at."""
    hash: str
    height: int


@dataclass(frozen=True)
class Anchor:
    """A trusted checkpoint: a verification root and the block it came from."""
    root: str
    block: BlockRef

    @property
    def height(self) -> int:
        return self.block.height

    @property
    def root_bytes(self) -> bytes:
        return bytes.fromhex(self.root)

    @classmethod
    def from_dict(cls, data: Any) -> "Anchor":
        """Parse one entry of the anchor JSON format.

        Expected shape: {"root": "<hex>", "block": {"hash": "<hex>", "height": <int>}}

        Raises:
            AnchorFormatError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise AnchorFormatError(f"Anchor must be an object, got {type(data).__name__}")

        root = data.get("root")
        if not isinstance(root, str) or not _HEX_RE.match(root):
            raise AnchorFormatError(f"Invalid anchor root: {root!r}")

        block = data.get("block")
        if not isinstance(block, dict):
            raise AnchorFormatError(f"Anchor {root[:16]} has no block object")

        block_hash = block.get("hash")
        height = block.get("height")
        if not isinstance(block_hash, str):
            raise AnchorFormatError(f"Anchor {root[:16]} has invalid block hash: {block_hash!r}")
        # bool is an int subclass
        if not isinstance(height, int) or isinstance(height, bool) or height < 0:
            raise AnchorFormatError(f"Anchor {root[:16]} has invalid block height: {height!r}")

        return cls(root=root.lower(), block=BlockRef(hash=block_hash, height=height))

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "block": {"hash": self.block.hash, "height": self.block.height},
        }


def parse_anchor_list(data: Any) -> List[Anchor]:
    """Parse a decoded JSON array into a list of anchors."""
    if not isinstance(data, list):
        raise AnchorFormatError(f"Anchor list must be a JSON array, got {type(data).__name__}")
    return [Anchor.from_dict(item) for item in data]


@dataclass
class Receipt:
    """Result of a successful verify_put.

    Attributes:
        proof_seq: Height of the anchor that validated the proof
        root: Root of the validated subtree
        spaceout: The verified object the target resolved to
    """
    proof_seq: int
    root: bytes
    spaceout: Any
