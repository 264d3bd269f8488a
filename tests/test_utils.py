"""Tests for transparency and formatting helpers."""

import pytest

from conftest import make_expense
from utils import explain_all_participants, explain_participant_share, format_currency


def sample_expenses():
    return [
        make_expense("E001", 300, "A", ["A", "B", "C"]),
        make_expense("E002", 1000, "B", ["B", "C"], currency="JPY", category="transport"),
    ]


class TestExplainParticipantShare:

    def test_contributions(self):
        explanation = explain_participant_share("C", ["A", "B", "C"], sample_expenses(), 0.2)

        assert explanation["participant"] == "C"
        assert [c["expense_id"] for c in explanation["expense_contributions"]] == ["E001", "E002"]

        transport = explanation["expense_contributions"][1]
        assert transport["converted_amount"] == 200.0
        assert transport["split_size"] == 2
        assert transport["participant_share"] == 100.0

        assert explanation["total_paid"] == 0.0
        assert explanation["total_share"] == 200.0
        assert explanation["net_balance"] == -200.0

    def test_payer_outside_every_split(self):
        explanation = explain_participant_share(
            "A", ["A", "B", "C"], [make_expense("E001", 90, "A", ["B", "C"])], 0.2
        )

        assert explanation["expense_contributions"] == []
        assert explanation["total_paid"] == 90.0
        assert explanation["net_balance"] == 90.0

    def test_unknown_participant(self):
        with pytest.raises(LookupError):
            explain_participant_share("Z", ["A"], [], 0.2)


def test_explain_all_keeps_participant_order():
    explanations = explain_all_participants(["C", "A", "B"], sample_expenses(), 0.2)

    assert [e["participant"] for e in explanations] == ["C", "A", "B"]


@pytest.mark.parametrize("amount, currency, expected", [
    (1234.5, "TWD", "NT$1,235"),
    (15000, "JPY", "¥15,000"),
    (12.5, "USD", "12.50 USD"),
])
def test_format_currency(amount, currency, expected):
    assert format_currency(amount, currency) == expected
