"""Shared fixtures: anchors and an in-memory proof verifier."""

import hashlib
import json

import pytest

from anchorsync.models import Anchor, BlockRef


def make_anchor(root: str, height: int, block_hash: str = None) -> Anchor:
    return Anchor(root=root, block=BlockRef(hash=block_hash or f"{height:064x}", height=height))


def sign(key: str, message: bytes) -> bytes:
    return hashlib.sha256(key.encode() + message).digest()


class FakeSubtree:
    def __init__(self, root: bytes, objects: dict):
        self._root = root
        self._objects = objects

    def find_object(self, target: bytes):
        return self._objects.get(bytes(target).hex())

    def root_identifier(self) -> bytes:
        return self._root


class FakeVerifier:
    """Proofs are JSON documents: {"root": hex, "objects": {target_hex: {"key": ...}}}.

    With strict=True, proofs against roots that were never added are rejected.
    """

    instances = []

    def __init__(self, strict: bool = True):
        self.strict = strict
        self.roots = []
        FakeVerifier.instances.append(self)

    def add_anchor(self, root: bytes) -> None:
        self.roots.append(bytes(root))

    def verify_proof(self, proof: bytes) -> FakeSubtree:
        data = json.loads(proof)
        root = bytes.fromhex(data["root"])
        if self.strict and root not in self.roots:
            raise ValueError("proof root is not a trusted anchor")
        return FakeSubtree(root, data.get("objects", {}))

    def verify_message(self, obj, message: bytes, signature: bytes) -> None:
        if sign(obj["key"], message) != signature:
            raise ValueError("bad signature")


def build_proof(root: str, objects: dict) -> bytes:
    return json.dumps({"root": root, "objects": objects}).encode()


@pytest.fixture(autouse=True)
def reset_fake_verifiers():
    FakeVerifier.instances.clear()
    yield
    FakeVerifier.instances.clear()


@pytest.fixture
def verifier_factory():
    """Strict verifier factory."""
    return FakeVerifier


@pytest.fixture
def permissive_verifier_factory():
    """Verifier that accepts proofs against any root."""
    return lambda: FakeVerifier(strict=False)


@pytest.fixture
def anchor():
    return make_anchor


@pytest.fixture
def proof():
    return build_proof


@pytest.fixture
def signer():
    return sign
