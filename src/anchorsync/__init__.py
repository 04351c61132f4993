"""
anchorsync - keep a trusted set of blockchain anchors fresh and verify
ownership proofs against it.

Sources: a local JSON file (watched), remote endpoints (majority vote),
or a static list.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import SourceKind, SyncOptions, load_options
from .consensus import select_anchors
from .exceptions import (
    AnchorFormatError,
    AnchorSourceError,
    AnchorSyncError,
    BootstrapError,
    ConfigurationError,
    NoAnchorsSelectedError,
    NoMatchingObjectError,
    SignatureVerificationError,
    UnknownProofVersionError,
    VerificationError,
)
from .models import Anchor, BlockRef, Receipt, parse_anchor_list
from .protocols import ProofVerifier, Subtree, VerifierFactory
from .scheduler import RefreshScheduler, SchedulerState, SchedulerStatus
from .service import AnchorSync, create
from .sources import AnchorSource, LocalFileSource, RemoteSource, StaticSource, build_source
from .store import AnchorSnapshot, AnchorStore

__all__ = [
    "Anchor",
    "AnchorFormatError",
    "AnchorSnapshot",
    "AnchorSource",
    "AnchorSourceError",
    "AnchorStore",
    "AnchorSync",
    "AnchorSyncError",
    "BlockRef",
    "BootstrapError",
    "ConfigurationError",
    "LocalFileSource",
    "NoAnchorsSelectedError",
    "NoMatchingObjectError",
    "ProofVerifier",
    "Receipt",
    "RefreshScheduler",
    "RemoteSource",
    "SchedulerState",
    "SchedulerStatus",
    "SignatureVerificationError",
    "SourceKind",
    "StaticSource",
    "Subtree",
    "SyncOptions",
    "UnknownProofVersionError",
    "VerificationError",
    "VerifierFactory",
    "build_source",
    "create",
    "load_options",
    "parse_anchor_list",
    "select_anchors",
]
