"""Tests for the settlement planner."""

import pytest

from settlement import (
    Settlement,
    apply_settlements,
    is_settled,
    optimize_settlements,
    round_balance,
)


def as_tuples(settlements):
    return [(s.from_participant, s.to_participant, s.amount) for s in settlements]


class TestRoundBalance:

    @pytest.mark.parametrize("value, expected", [
        (0.4, 0),
        (-0.4, 0),
        (1.5, 2),
        (-1.5, -2),
        (2547.75, 2548),
        (-935.25, -935),
    ])
    def test_rounds_half_away_from_zero(self, value, expected):
        assert round_balance(value) == expected


class TestOptimizeSettlements:

    def test_single_creditor_two_debtors(self):
        balances = {"A": 200.0, "B": -100.0, "C": -100.0}

        settlements = optimize_settlements(balances)

        assert as_tuples(settlements) == [("B", "A", 100), ("C", "A", 100)]

    def test_uneven_debtor_creditor_counts(self):
        balances = {"A": 300.0, "B": -100.0, "C": -100.0, "D": -100.0}

        settlements = optimize_settlements(balances)

        assert len(settlements) == 3
        assert all(s.to_participant == "A" for s in settlements)
        assert all(s.amount == 100 for s in settlements)
        assert {s.from_participant for s in settlements} == {"B", "C", "D"}

    def test_largest_debtor_pays_largest_creditor_first(self):
        balances = {"A": 50.0, "B": 150.0, "C": -30.0, "D": -170.0}

        settlements = optimize_settlements(balances)

        assert as_tuples(settlements) == [
            ("D", "B", 150),
            ("D", "A", 20),
            ("C", "A", 30),
        ]

    def test_dust_is_suppressed(self):
        assert optimize_settlements({"A": 0.4, "B": -0.4}) == []

    def test_one_unit_is_dust(self):
        assert optimize_settlements({"A": 1.4, "B": -1.4}) == []

    def test_dust_participant_excluded(self):
        balances = {"A": 100.0, "B": -99.4, "C": -0.6}

        settlements = optimize_settlements(balances)

        assert as_tuples(settlements) == [("B", "A", 99)]

    def test_amounts_rounded_to_whole_units(self):
        balances = {"Jimmy": 2547.75, "Serena": -935.25, "Mom": -806.25, "Sis": -806.25}

        settlements = optimize_settlements(balances)

        assert as_tuples(settlements) == [
            ("Serena", "Jimmy", 935),
            ("Mom", "Jimmy", 806),
            ("Sis", "Jimmy", 806),
        ]
        assert all(isinstance(s.amount, int) and s.amount > 0 for s in settlements)

    def test_empty_balances(self):
        assert optimize_settlements({}) == []

    def test_all_zero(self):
        assert optimize_settlements({"A": 0.0, "B": 0.0}) == []

    def test_input_not_modified(self):
        balances = {"A": 200.0, "B": -100.0, "C": -100.0}

        optimize_settlements(balances)

        assert balances == {"A": 200.0, "B": -100.0, "C": -100.0}

    def test_no_self_transfers_and_directions(self):
        balances = {"A": 120.0, "B": 80.0, "C": -45.0, "D": -90.0, "E": -65.0}

        settlements = optimize_settlements(balances)

        for s in settlements:
            assert s.from_participant != s.to_participant
            assert balances[s.from_participant] < 0
            assert balances[s.to_participant] > 0

    def test_transfer_count_bound(self):
        balances = {"A": 120.0, "B": 80.0, "C": -45.0, "D": -90.0, "E": -65.0}

        settlements = optimize_settlements(balances)

        assert len(settlements) <= 2 + 3 - 1

    @pytest.mark.parametrize("balances", [
        {"A": 200.0, "B": -100.0, "C": -100.0},
        {"A": 120.0, "B": 80.0, "C": -45.0, "D": -90.0, "E": -65.0},
        {"Jimmy": 2547.75, "Serena": -935.25, "Mom": -806.25, "Sis": -806.25},
        {"A": 66.67, "B": -33.33, "C": -33.34},
    ])
    def test_applying_settlements_clears_balances(self, balances):
        settlements = optimize_settlements(balances)

        assert is_settled(apply_settlements(balances, settlements))


class TestApplySettlements:

    def test_moves_amounts(self):
        balances = {"A": 200.0, "B": -100.0, "C": -100.0}
        settlements = [Settlement("B", "A", 100)]

        remaining = apply_settlements(balances, settlements)

        assert remaining == {"A": 100.0, "B": 0.0, "C": -100.0}
        assert balances["A"] == 200.0

    def test_unknown_participant(self):
        with pytest.raises(KeyError):
            apply_settlements({"A": 1.0}, [Settlement("X", "A", 1)])


class TestIsSettled:

    def test_within_dust_band(self):
        assert is_settled({"A": 1.4, "B": -1.4, "C": 0.0})

    def test_outside_dust_band(self):
        assert not is_settled({"A": 1.5, "B": -1.5})

    def test_empty(self):
        assert is_settled({})


def test_settlement_to_dict():
    assert Settlement("B", "A", 100).to_dict() == {
        "from_participant": "B",
        "to_participant": "A",
        "amount": 100,
    }
