"""
Protocols for the proof-verification capability.

The cryptography itself lives outside this package. Any object that
implements these interfaces can be bound to an anchor snapshot.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol


class Subtree(Protocol):
    """Opaque result of a successful proof verification."""

    def find_object(self, target: bytes) -> Optional[Any]:
        """Return the object addressed by target, or None if absent."""
        ...

    def root_identifier(self) -> bytes:
        """Return the root the proof was validated against."""
        ...


class ProofVerifier(Protocol):
    """Verification capability bound to one anchor set.

    A fresh verifier is built for every anchor set; anchors are only
    ever added to a verifier before it is published.
    """

    def add_anchor(self, root: bytes) -> None:
        """Trust proofs built against root."""
        ...

    def verify_proof(self, proof: bytes) -> Subtree:
        """Validate proof against the trusted roots.

        Raises:
            Exception: Implementation-defined error if the proof is invalid.
        """
        ...

    def verify_message(self, obj: Any, message: bytes, signature: bytes) -> None:
        """Check that signature over message was made by the owner of obj.

        Raises:
            Exception: Implementation-defined error if the signature is invalid.
        """
        ...


VerifierFactory = Callable[[], ProofVerifier]
