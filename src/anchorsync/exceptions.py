"""
Error taxonomy for anchorsync.

Construction-time errors abort object creation, refresh errors are absorbed
by the scheduler and only logged, verification errors go to the caller.
"""

from __future__ import annotations


class AnchorSyncError(Exception):
    """Base class for all anchorsync errors."""


class ConfigurationError(AnchorSyncError):
    """Options do not name exactly one anchor source, or carry bad values."""


class BootstrapError(AnchorSyncError):
    """The initial refresh produced no usable anchor set."""


class AnchorSourceError(AnchorSyncError):
    """A source could not produce an anchor list (I/O, HTTP, all endpoints down)."""


class AnchorFormatError(AnchorSourceError):
    """Anchor data did not match the expected JSON shape."""


class NoAnchorsSelectedError(AnchorSourceError):
    """Consensus selection found no non-empty candidate list."""


class VerificationError(AnchorSyncError):
    """A verify_put call failed."""


class NoMatchingObjectError(VerificationError):
    """The validated subtree holds no object for the requested target."""


class SignatureVerificationError(VerificationError):
    """The message signature does not verify against the object."""


class UnknownProofVersionError(VerificationError):
    """The proof is valid but its root is not in the current version index."""
