"""Tests for the balance calculator."""

import pytest

from conftest import make_expense
from splitter import calculate_balances, calculate_totals, convert_to_reference

MEMBERS = ["Jimmy", "Serena", "Mom", "Sis"]
RATE = 0.215


def trip_expenses():
    return [
        make_expense("E001", 1200, "Jimmy", ["Jimmy", "Serena"], currency="JPY"),
        make_expense("E002", 320, "Serena", ["Serena"], currency="JPY", category="transport"),
        make_expense("E003", 15000, "Jimmy", MEMBERS, currency="JPY", category="accommodation"),
        make_expense("E004", 5000, "Mom", ["Mom"], currency="JPY", category="shopping",
                     date="2024-11-16"),
    ]


class TestConvertToReference:

    def test_foreign_currency_is_multiplied(self):
        assert float(convert_to_reference(1000, "JPY", 0.2)) == 200.0

    def test_reference_currency_is_unchanged(self):
        assert float(convert_to_reference(1000, "TWD", 0.2)) == 1000.0

    def test_custom_foreign_currency(self):
        assert float(convert_to_reference(10, "USD", 32, foreign_currency="USD")) == 320.0


class TestCalculateBalances:

    def test_single_payer_even_split(self):
        expenses = [make_expense("E001", 300, "A", ["A", "B", "C"])]

        balances = calculate_balances(["A", "B", "C"], expenses, RATE)

        assert balances == {"A": 200.0, "B": -100.0, "C": -100.0}

    def test_currency_conversion(self):
        expenses = [make_expense("E001", 1000, "A", ["B"], currency="JPY")]

        balances = calculate_balances(["A", "B"], expenses, 0.2)

        assert balances["A"] == pytest.approx(200.0)
        assert balances["B"] == pytest.approx(-200.0)

    def test_mixed_trip(self):
        balances = calculate_balances(MEMBERS, trip_expenses(), RATE)

        assert balances["Jimmy"] == pytest.approx(2547.75)
        assert balances["Serena"] == pytest.approx(-935.25)
        assert balances["Mom"] == pytest.approx(-806.25)
        assert balances["Sis"] == pytest.approx(-806.25)

    def test_conservation(self):
        expenses = trip_expenses() + [
            make_expense("E005", 1000, "Sis", ["Jimmy", "Serena", "Sis"]),
            make_expense("E006", 77, "Serena", MEMBERS, currency="JPY"),
        ]

        balances = calculate_balances(MEMBERS, expenses, RATE)

        assert sum(balances.values()) == pytest.approx(0.0, abs=1e-9)

    def test_idempotent(self):
        expenses = trip_expenses()

        first = calculate_balances(MEMBERS, expenses, RATE)
        second = calculate_balances(MEMBERS, expenses, RATE)

        assert first == second

    def test_order_independent(self):
        forward = calculate_balances(MEMBERS, trip_expenses(), RATE)
        backward = calculate_balances(MEMBERS, list(reversed(trip_expenses())), RATE)

        for name in MEMBERS:
            assert forward[name] == pytest.approx(backward[name])

    def test_no_expenses(self):
        assert calculate_balances(MEMBERS, [], RATE) == {name: 0.0 for name in MEMBERS}

    def test_no_participants(self):
        assert calculate_balances([], [], RATE) == {}

    def test_payer_outside_split_fronts_everything(self):
        expenses = [make_expense("E001", 90, "A", ["B", "C"])]

        balances = calculate_balances(["A", "B", "C"], expenses, RATE)

        assert balances == {"A": 90.0, "B": -45.0, "C": -45.0}

    def test_fractional_shares_are_not_rounded(self):
        expenses = [make_expense("E001", 100, "A", ["A", "B", "C"])]

        balances = calculate_balances(["A", "B", "C"], expenses, RATE)

        assert balances["B"] == pytest.approx(-100 / 3)
        assert balances["A"] == pytest.approx(200 / 3)

    def test_removed_split_member_is_ignored(self):
        # C left the trip; their share is dropped, not redistributed
        expenses = [make_expense("E001", 300, "A", ["A", "B", "C"])]

        balances = calculate_balances(["A", "B"], expenses, RATE)

        assert balances == {"A": 200.0, "B": -100.0}
        assert "C" not in balances

    def test_removed_payer_is_ignored(self):
        expenses = [make_expense("E001", 300, "Z", ["A", "B", "Z"])]

        balances = calculate_balances(["A", "B"], expenses, RATE)

        assert balances == {"A": -100.0, "B": -100.0}

    def test_empty_split_is_rejected(self):
        expenses = [make_expense("E001", 300, "A", [])]

        with pytest.raises(ValueError, match="empty split_with"):
            calculate_balances(["A"], expenses, RATE)


class TestCalculateTotals:

    def test_breakdown(self):
        totals = calculate_totals(MEMBERS, trip_expenses(), RATE)

        assert totals["Jimmy"] == {
            "total_paid": 3483.0,
            "total_share": 935.25,
            "net_balance": 2547.75,
        }
        assert totals["Mom"] == {
            "total_paid": 1075.0,
            "total_share": 1881.25,
            "net_balance": -806.25,
        }

    def test_totals_match_balances(self):
        balances = calculate_balances(MEMBERS, trip_expenses(), RATE)
        totals = calculate_totals(MEMBERS, trip_expenses(), RATE)

        for name in MEMBERS:
            assert totals[name]["net_balance"] == pytest.approx(balances[name], abs=0.005)
