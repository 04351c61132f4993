"""Tests for AnchorStore."""

import random

import pytest

from anchorsync.store import AnchorStore, compute_stale_threshold, root_key


def _anchors(anchor, heights):
    return [anchor(f"{h:04x}", h) for h in heights]


@pytest.fixture
def store(verifier_factory):
    return AnchorStore(verifier_factory)


class TestReplace:
    """Tests for AnchorStore.replace."""

    def test_initial_store_is_empty(self, store):
        """Test a new store has no anchors and no threshold."""
        assert store.is_empty
        assert store.snapshot.generation == 0
        assert store.snapshot.stale_threshold == 0
        assert store.lookup_version("0001") is None

    def test_indexes_every_root(self, store, anchor):
        """Test every anchor root maps to its exact height."""
        anchors = _anchors(anchor, [5, 1, 9, 3])

        assert store.replace(anchors) is True

        for a in anchors:
            assert store.lookup_version(a.root) == a.height
            assert store.lookup_version(bytes.fromhex(a.root)) == a.height

    def test_sorted_most_recent_first(self, store, anchor):
        """Test snapshot anchors are ordered by descending height."""
        store.replace(_anchors(anchor, [5, 1, 9, 3]))

        assert [a.height for a in store.snapshot.anchors] == [9, 5, 3, 1]
        assert store.snapshot.latest_height == 9

    def test_verifier_holds_exactly_new_set(self, store, anchor):
        """Test no anchors from a prior generation remain reachable."""
        store.replace(_anchors(anchor, [1, 2, 3]))
        store.replace(_anchors(anchor, [10, 11]))

        verifier = store.snapshot.verifier
        assert sorted(verifier.roots) == sorted(bytes.fromhex(f"{h:04x}") for h in [10, 11])
        assert store.lookup_version("0001") is None
        assert store.lookup_version("000a") == 10
        assert store.snapshot.generation == 2

    def test_builds_fresh_verifier(self, store, anchor):
        """Test each replace creates a new verifier instead of mutating the old one."""
        store.replace(_anchors(anchor, [1]))
        first = store.snapshot.verifier

        store.replace(_anchors(anchor, [2]))

        assert store.snapshot.verifier is not first
        assert first.roots == [bytes.fromhex("0001")]

    def test_empty_list_keeps_current_snapshot(self, store, anchor):
        """Test an empty list neither publishes nor rebuilds."""
        store.replace(_anchors(anchor, [1, 2]))
        before = store.snapshot

        assert store.replace([]) is False
        assert store.snapshot is before

    def test_old_snapshot_unchanged_after_replace(self, store, anchor):
        """Test a captured snapshot keeps its own index and verifier."""
        store.replace(_anchors(anchor, [1]))
        captured = store.snapshot

        store.replace(_anchors(anchor, [2]))

        assert captured.lookup_version("0001") == 1
        assert captured.lookup_version("0002") is None

    def test_index_is_read_only(self, store, anchor):
        """Test the published index cannot be mutated."""
        store.replace(_anchors(anchor, [1]))

        with pytest.raises(TypeError):
            store.snapshot.version_index["ff"] = 5


class TestStaleness:
    """Tests for the staleness threshold."""

    def test_nine_or_fewer_never_stale(self, store, anchor):
        """Test that up to nine anchors enforce no threshold."""
        store.replace(_anchors(anchor, range(100, 109)))

        assert store.snapshot.stale_threshold == 0
        assert store.is_stale(0) is False
        assert store.is_stale(1) is False

    def test_more_than_nine_uses_ninth_oldest(self, store, anchor):
        """Test threshold is the height of the ninth-oldest anchor."""
        heights = list(range(100, 112))  # 12 anchors
        random.Random(7).shuffle(heights)
        store.replace(_anchors(anchor, heights))

        # ascending: 100..111, ninth-oldest is 108
        assert store.snapshot.stale_threshold == 108
        assert store.is_stale(107) is True
        assert store.is_stale(108) is False
        assert store.is_stale(100) is True
        assert store.is_stale(111) is False

    def test_ten_anchors(self, store, anchor):
        """Test the boundary case of exactly ten anchors."""
        store.replace(_anchors(anchor, range(1, 11)))

        assert store.snapshot.stale_threshold == 9
        assert store.is_stale(8) is True
        assert store.is_stale(9) is False

    def test_threshold_recomputed_from_new_set(self, store, anchor):
        """Test a smaller follow-up set resets the threshold."""
        store.replace(_anchors(anchor, range(1, 21)))
        assert store.snapshot.stale_threshold == 9

        store.replace(_anchors(anchor, [50, 51]))

        assert store.snapshot.stale_threshold == 0

    def test_compute_stale_threshold(self, anchor):
        """Test compute_stale_threshold on a sorted list."""
        ordered = sorted(_anchors(anchor, range(1, 13)), key=lambda a: a.height, reverse=True)

        assert compute_stale_threshold(ordered) == 9
        assert compute_stale_threshold(ordered[:9]) == 0
        assert compute_stale_threshold([]) == 0


def test_root_key_normalizes():
    """Test bytes and mixed-case hex map to the same key."""
    assert root_key(b"\xaa\xbb") == "aabb"
    assert root_key("AABB") == "aabb"
