"""
AnchorSync - public surface for anchor-backed proof verification.

Usage:
    sync = await AnchorSync.create(
        SyncOptions(remote_urls=["https://a.example/anchors.json", ...]),
        verifier_factory=MyVerifier,
    )
    receipt = sync.verify_put(target, message, signature, proof)
    sync.destroy()
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx

from .config import SyncOptions
from .exceptions import (
    NoMatchingObjectError,
    SignatureVerificationError,
    UnknownProofVersionError,
    VerificationError,
)
from .models import Receipt
from .protocols import VerifierFactory
from .scheduler import RefreshScheduler, SchedulerStatus
from .sources import build_source
from .store import AnchorSnapshot, AnchorStore, root_key

logger = logging.getLogger(__name__)


class AnchorSync:
    """
    Keeps a trusted anchor set fresh and verifies proofs against it.

    Build instances with AnchorSync.create(); the constructor does not
    run the initial refresh.
    """

    def __init__(self, scheduler: RefreshScheduler, options: SyncOptions):
        self._scheduler = scheduler
        self._store = scheduler.store
        self.options = options

    @classmethod
    async def create(
        cls,
        options: SyncOptions,
        verifier_factory: VerifierFactory,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "AnchorSync":
        """Build and start a service.

        Raises:
            ConfigurationError: Unless exactly one anchor source is configured.
            BootstrapError: If the initial local/remote refresh yields nothing.
        """
        source = build_source(options, transport=transport)
        store = AnchorStore(verifier_factory)
        scheduler = RefreshScheduler(
            source,
            store,
            check_interval_ms=options.check_interval_ms,
            retry_delay_ms=options.retry_delay_ms,
        )
        await scheduler.start()
        logger.info(f"AnchorSync ready ({source.kind.value} anchors)")
        return cls(scheduler, options)

    async def __aenter__(self) -> "AnchorSync":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def snapshot(self) -> AnchorSnapshot:
        return self._store.snapshot

    def get_proof_seq(self, root: Union[bytes, str]) -> Optional[int]:
        """Height of the anchor with this root, or None if unknown."""
        return self._store.lookup_version(root)

    def is_stale(self, height: int) -> bool:
        return self._store.is_stale(height)

    def verify_put(
        self,
        target: bytes,
        message: bytes,
        signature: bytes,
        proof: bytes,
    ) -> Receipt:
        """
        Verify a signed message against a proof of the target's object.

        The anchor snapshot is captured once; a refresh that lands while
        this runs does not affect the result.

        Returns:
            Receipt with the height of the anchor that validated the proof

        Raises:
            NoMatchingObjectError: The proof holds no object for target.
            SignatureVerificationError: The signature does not verify.
            UnknownProofVersionError: The proof root is not a current anchor.
        """
        snapshot = self._store.snapshot
        verifier = snapshot.verifier

        subtree = verifier.verify_proof(proof)
        obj = subtree.find_object(target)
        if obj is None:
            raise NoMatchingObjectError("No UTXO associated with target")

        try:
            verifier.verify_message(obj, message, signature)
        except VerificationError:
            raise
        except Exception as e:
            raise SignatureVerificationError(f"Signature verification failed: {e}") from e

        root = bytes(subtree.root_identifier())
        proof_seq = snapshot.lookup_version(root)
        if proof_seq is None:
            raise UnknownProofVersionError(
                f"Could not find proof version for root {root_key(root)[:16]}"
            )

        return Receipt(proof_seq=proof_seq, root=root, spaceout=obj)

    async def refresh(self) -> bool:
        """Refresh anchors now. Returns True if a new snapshot was published."""
        return await self._scheduler.refresh()

    def status(self) -> SchedulerStatus:
        return self._scheduler.status()

    def destroy(self) -> None:
        """Stop all refresh activity. Safe to call more than once."""
        self._scheduler.destroy()


async def create(
    options: Union[SyncOptions, dict],
    verifier_factory: VerifierFactory,
    **kwargs: Any,
) -> AnchorSync:
    """Shorthand for AnchorSync.create accepting a plain options dict."""
    if isinstance(options, dict):
        options = SyncOptions.from_dict(options)
    return await AnchorSync.create(options, verifier_factory, **kwargs)
