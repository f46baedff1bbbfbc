"""
Tests for vote aggregation (PERT tally).
"""

import pytest

from ..engine_core.aggregation import numeric_values, pert, tally, tally_votes
from ..engine_core.state import COFFEE, INFINITY, Round, TaskItem, Vote


def votes(*values):
    return [Vote(person=f"p{i}", value=v, timestamp=float(i)) for i, v in enumerate(values)]


class TestPert:
    """Tests for the three-point estimate."""

    def test_pert_of_three_votes(self):
        suggested, deviation = pert([5.0, 10.0, 20.0])

        # mean 35/3; (5 + 4 * 35/3 + 20) / 6 = 11.944...
        assert suggested == pytest.approx((5 + 4 * 35 / 3 + 20) / 6)
        assert suggested == pytest.approx(11.9444, abs=1e-4)
        assert deviation == pytest.approx(2.5)

    def test_pert_of_identical_votes(self):
        suggested, deviation = pert([4.0, 4.0])

        assert suggested == pytest.approx(4.0)
        assert deviation == 0


class TestTally:
    """Tests for tallying votes."""

    def test_tally_numeric(self):
        result = tally_votes(votes(5.0, 10.0, 20.0))

        assert result.count == 3
        assert result.numeric_count == 3
        assert result.min == 5.0
        assert result.max == 20.0
        assert result.mean == pytest.approx(35 / 3)
        assert result.has_estimate

    def test_sentinels_excluded_from_numbers(self):
        result = tally_votes(votes(2.0, COFFEE, 6.0, INFINITY))

        assert result.count == 4
        assert result.numeric_count == 2
        assert result.min == 2.0
        assert result.max == 6.0
        assert result.sentinel_voters == {COFFEE: ["p1"], INFINITY: ["p3"]}

    def test_only_sentinels(self):
        result = tally_votes(votes(COFFEE, COFFEE))

        assert result.count == 2
        assert result.numeric_count == 0
        assert result.suggested is None
        assert result.deviation is None
        assert not result.has_estimate
        assert result.sentinel_voters == {COFFEE: ["p0", "p1"]}

    def test_no_votes(self):
        result = tally_votes([])

        assert result.count == 0
        assert not result.has_estimate

    def test_tally_round(self):
        task = TaskItem(id="t", title="T", link="l")
        round_ = Round(id="t", task=task, votes=tuple(votes(1.0, 3.0)))

        assert tally(round_).mean == pytest.approx(2.0)

    def test_numeric_values(self):
        assert numeric_values(votes(1.0, COFFEE, 2.5)) == [1.0, 2.5]
