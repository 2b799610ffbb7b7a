"""
Tests for the flip collection helpers.

Tests:
- Reorder partitions (ready, loading, failed, hidden)
- Merging fresh entries into known flips
- The submit gate
"""

from ..engine_core.flips import can_submit, decode_flips, merge_flip, reorder_flips, seed_flips
from ..engine_core.state import AnswerType, Flip
from .fakes import flip_hex, loaded_flip


class TestReorderFlips:
    """Tests for reorder_flips."""

    def _mixed(self):
        return [
            Flip(hash="pending1"),
            loaded_flip("ready1"),
            Flip(hash="failed1", failed=True),
            loaded_flip("hidden1", hidden=True),
            loaded_flip("ready2"),
            Flip(hash="hidden2", hidden=True, failed=True),
            Flip(hash="pending2", ready=True),
            Flip(hash="failed2", failed=True),
        ]

    def test_partitions_in_bucket_order(self):
        """Ready first, then loading, failed, hidden."""
        hashes = [f.hash for f in reorder_flips(self._mixed())]

        assert hashes == [
            "ready1", "ready2",
            "pending1", "pending2",
            "failed1", "failed2",
            "hidden1", "hidden2",
        ]

    def test_is_a_permutation(self):
        """No flip is lost or duplicated."""
        flips = self._mixed()
        reordered = reorder_flips(flips)

        assert sorted(f.hash for f in reordered) == sorted(f.hash for f in flips)

    def test_hidden_wins_over_other_buckets(self):
        """A hidden flip goes last even when it is loaded or failed."""
        reordered = reorder_flips([loaded_flip("h", hidden=True), loaded_flip("r")])

        assert [f.hash for f in reordered] == ["r", "h"]

    def test_empty_list(self):
        """Empty in, empty out."""
        assert reorder_flips([]) == []


class TestMergeFlip:
    """Tests for merge_flip and decode_flips."""

    def test_seed_uses_hidden_flag(self):
        """Seeded flips take their hidden flag from the entry."""
        flips = seed_flips([{"hash": "a", "hidden": False}, {"hash": "x", "hidden": True}])

        assert [(f.hash, f.hidden) for f in flips] == [("a", False), ("x", True)]

    def test_ready_entry_is_decoded(self):
        """A ready entry with a payload is decoded."""
        flip = merge_flip(Flip(hash="a"), {"hash": "a", "ready": True, "hex": flip_hex(2)})

        assert flip.is_loaded
        assert len(flip.pics) == 4
        assert flip.orders == [[0, 1, 2, 3], [3, 2, 1, 0]]

    def test_not_ready_entry_stays_pending(self):
        """A not-ready entry stays unresolved."""
        flip = merge_flip(Flip(hash="a"), {"hash": "a", "ready": False})

        assert not flip.is_resolved
        assert not flip.ready

    def test_resolved_flip_is_not_decoded_again(self):
        """Loaded and failed flips ignore fresh entries."""
        loaded = loaded_flip("a", answer=AnswerType.LEFT)
        failed = Flip(hash="b", failed=True)

        assert merge_flip(loaded, {"hash": "a", "ready": True, "hex": "0xzz"}) is loaded
        assert merge_flip(failed, {"hash": "b", "ready": True, "hex": flip_hex()}) is failed

    def test_hidden_flag_is_merged(self):
        """A flip stays hidden once either side says so."""
        flip = merge_flip(Flip(hash="x", hidden=True), {"hash": "x", "ready": True, "hex": flip_hex()})

        assert flip.hidden
        assert flip.is_loaded

    def test_decode_flips_keeps_known_membership(self):
        """Known flips missing from fresh data stay as they were."""
        known = [Flip(hash="a"), Flip(hash="b")]
        data = [{"hash": "a", "ready": True, "hex": flip_hex()}, {"hash": "z", "ready": True}]

        flips = decode_flips(data, known)

        assert [f.hash for f in flips] == ["a", "b"]
        assert flips[0].is_loaded
        assert flips[1] is known[1]

    def test_decode_flips_seeds_from_first_fetch(self):
        """The first fetch of a phase seeds the flip list."""
        data = [
            {"hash": "a", "hidden": False, "ready": True, "hex": flip_hex()},
            {"hash": "x", "hidden": True, "ready": False},
        ]

        flips = decode_flips(data, [])

        assert flips[0].is_loaded
        assert flips[1].hidden and not flips[1].is_resolved


class TestCanSubmit:
    """Tests for the submit gate, one disjunct at a time."""

    def test_all_available_answered(self):
        """Every visible non-failed flip answered, index at the start."""
        flips = [
            loaded_flip("a", answer=AnswerType.LEFT),
            loaded_flip("b", answer=AnswerType.RIGHT),
            loaded_flip("c"),
        ]

        assert can_submit(flips, 0) is False
        flips[2] = loaded_flip("c", answer=AnswerType.INAPPROPRIATE)
        assert can_submit(flips, 0) is True

    def test_failed_and_hidden_flips_do_not_need_answers(self):
        """Failed and hidden flips are skipped by the gate."""
        flips = [
            loaded_flip("a", answer=AnswerType.LEFT),
            Flip(hash="b", failed=True),
            loaded_flip("x", hidden=True),
        ]

        assert can_submit(flips, 0) is True

    def test_index_at_last_visible_flip(self):
        """Unanswered flips do not block once the last visible one is reached."""
        flips = [loaded_flip("a"), loaded_flip("b"), loaded_flip("x", hidden=True)]

        assert can_submit(flips, 0) is False
        assert can_submit(flips, 1) is True

    def test_answer_none_counts_as_answered(self):
        """Answer code 0 is a recorded answer."""
        assert can_submit([loaded_flip("a", answer=AnswerType.NONE), loaded_flip("b")], 0) is False
        flips = [loaded_flip("a", answer=AnswerType.NONE), loaded_flip("b", answer=AnswerType.LEFT)]
        assert can_submit(flips, 0) is True
