"""Tests for the pure tally computation and tie-break randomness."""

import pytest

from core.exceptions import EmptyElectionError, NoProposals, NoVotesCast
from models import WinningType
from services.randomness import (
    FixedRandomness,
    SystemRandomness,
    TimestampRandomness,
    get_randomness_provider,
)
from services.tally_service import compute_tally, group_by_vote_count


class CountingRandomness:
    def __init__(self, value: int = 0):
        self.value = value
        self.calls = 0

    def random_value(self) -> int:
        self.calls += 1
        return self.value


class TestGrouping:
    def test_single_scan_summary(self) -> None:
        total, highest, buckets = group_by_vote_count([3, 5, 5, 1])
        assert total == 14
        assert highest == 5
        assert buckets == {3: [0], 5: [1, 2], 1: [3]}

    def test_all_zero(self) -> None:
        assert group_by_vote_count([0, 0]) == (0, 0, {0: [0, 1]})


class TestMajority:
    def test_unique_winner(self) -> None:
        randomness = CountingRandomness()
        outcome = compute_tally([2, 7, 1], randomness)
        assert outcome.winning_proposal_id == 1
        assert outcome.winning_type == WinningType.MAJORITY
        assert outcome.total_votes == 10
        assert outcome.tiebreak_value is None
        assert randomness.calls == 0

    def test_single_proposal(self) -> None:
        outcome = compute_tally([4], CountingRandomness())
        assert outcome.winning_proposal_id == 0
        assert outcome.winning_type == WinningType.MAJORITY

    def test_winner_with_zero_vote_proposals_around(self) -> None:
        outcome = compute_tally([0, 0, 1, 0], CountingRandomness())
        assert outcome.winning_proposal_id == 2
        assert outcome.winning_type == WinningType.MAJORITY


class TestDraw:
    @pytest.mark.parametrize("value, expected", [(0, 1), (1, 2), (2, 1), (7, 2), (2**255 + 1, 2)])
    def test_index_is_value_mod_candidates(self, value, expected) -> None:
        outcome = compute_tally([3, 5, 5, 1], FixedRandomness(value))
        assert outcome.winning_proposal_id == expected
        assert outcome.winning_type == WinningType.DRAW
        assert outcome.total_votes == 14
        assert outcome.candidates == [1, 2]
        assert outcome.tiebreak_value == value

    def test_winner_always_among_tied(self) -> None:
        randomness = SystemRandomness()
        for _ in range(50):
            outcome = compute_tally([3, 5, 5, 1], randomness)
            assert outcome.winning_proposal_id in {1, 2}

    def test_three_way_tie(self) -> None:
        outcome = compute_tally([4, 1, 4, 4], FixedRandomness(2))
        assert outcome.candidates == [0, 2, 3]
        assert outcome.winning_proposal_id == 3

    def test_randomness_drawn_once(self) -> None:
        randomness = CountingRandomness(5)
        compute_tally([1, 1], randomness)
        assert randomness.calls == 1


class TestEmpty:
    def test_no_proposals(self) -> None:
        with pytest.raises(NoProposals):
            compute_tally([], CountingRandomness())

    def test_no_votes(self) -> None:
        with pytest.raises(NoVotesCast) as exc:
            compute_tally([0, 0, 0], CountingRandomness())
        assert isinstance(exc.value, EmptyElectionError)


class TestRandomnessProviders:
    def test_timestamp_is_reproducible_from_its_inputs(self) -> None:
        a = TimestampRandomness("election-1", clock=lambda: 1_700_000_000_000_000_000)
        b = TimestampRandomness("election-1", clock=lambda: 1_700_000_000_000_000_000)
        assert a.random_value() == b.random_value()

    def test_timestamp_depends_on_context(self) -> None:
        clock = lambda: 42  # noqa: E731
        assert (TimestampRandomness("x", clock=clock).random_value()
                != TimestampRandomness("y", clock=clock).random_value())

    def test_system_is_non_negative_256_bit(self) -> None:
        value = SystemRandomness().random_value()
        assert 0 <= value < 2**256

    def test_provider_lookup(self) -> None:
        assert isinstance(get_randomness_provider("timestamp", "ctx"), TimestampRandomness)
        assert isinstance(get_randomness_provider("system"), SystemRandomness)

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError):
            get_randomness_provider("dice")

    def test_timestamp_without_context(self) -> None:
        provider = get_randomness_provider("timestamp")
        assert provider.context == ""
        with pytest.raises(ValueError, match="expected one of"):
            get_randomness_provider("")
