"""Tests for spending analytics."""

from analytics import generate_analytics
from conftest import make_expense


def sample_expenses():
    return [
        make_expense("E001", 1000, "A", ["A", "B"], currency="JPY", date="2024-01-01"),
        make_expense("E002", 300, "B", ["A", "B"], category="transport", date="2024-01-01"),
        make_expense("E003", 500, "C", ["C"], date="2024-01-02"),
    ]


def test_totals_in_reference_currency():
    analytics = generate_analytics(sample_expenses(), 0.2)["analytics"]

    assert analytics["currency_totals"] == {"JPY": 1000.0, "TWD": 800.0}
    assert analytics["total_reference"] == 1000.0
    assert analytics["category_breakdown"] == {"food": 700.0, "transport": 300.0}
    assert analytics["daily_spending"] == {"2024-01-01": 500.0, "2024-01-02": 500.0}
    assert analytics["payer_totals"] == {"A": 200.0, "B": 300.0, "C": 500.0}


def test_highest_spending_day():
    expenses = sample_expenses() + [make_expense("E004", 50, "A", ["A"], date="2024-01-02")]

    analytics = generate_analytics(expenses, 0.2)["analytics"]

    assert analytics["highest_spending_day"] == {"date": "2024-01-02", "amount": 550.0}


def test_payer_and_category_warnings():
    warnings = generate_analytics(sample_expenses(), 0.2)["warnings"]

    assert len(warnings) == 2
    assert "C paid 50.0%" in warnings[0]
    assert "'food' accounts for 70.0%" in warnings[1]


def test_daily_spike_warning():
    expenses = [
        make_expense("E001", 100, "A", ["A", "B"], category="food", date="2024-01-01"),
        make_expense("E002", 100, "B", ["A", "B"], category="transport", date="2024-01-02"),
        make_expense("E003", 100, "A", ["A", "B"], category="tickets", date="2024-01-03"),
        make_expense("E004", 100, "B", ["A", "B"], category="shopping", date="2024-01-03"),
        make_expense("E005", 100, "C", ["A", "B"], category="other", date="2024-01-04"),
        make_expense("E006", 100, "D", ["A", "B"], category="food", date="2024-01-05"),
        make_expense("E007", 100, "E", ["A", "B"], category="transport", date="2024-01-06"),
        make_expense("E008", 500, "C", ["A", "B"], category="accommodation", date="2024-01-07"),
    ]

    warnings = generate_analytics(expenses, 0.2)["warnings"]

    assert any("2024-01-07" in w for w in warnings)
    assert not any("2024-01-01" in w for w in warnings)


def test_no_expenses():
    result = generate_analytics([], 0.2)

    assert result["analytics"]["total_reference"] == 0.0
    assert result["analytics"]["highest_spending_day"] == {"date": None, "amount": 0.0}
    assert result["warnings"] == []
