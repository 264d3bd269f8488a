"""
Utilities Module

This module provides transparency and display helpers for the trip expense
planner.

Features:
    - Per-participant expense breakdown explanations
    - Currency formatting

The explanations follow the same rules as splitter.calculate_balances:
amounts are converted to the reference currency, each share is
converted / len(split_with), and only current participants are listed.

Functions:
    explain_participant_share: Get detailed breakdown for one participant.
    explain_all_participants: Get detailed breakdown for all participants.
    format_currency: Format amount with currency symbol.
"""

from decimal import Decimal, ROUND_HALF_UP

from settlement import round_balance
from splitter import DEFAULT_FOREIGN_CURRENCY, calculate_totals, convert_to_reference

CURRENCY_SYMBOLS = {
    "TWD": "NT$",
    "JPY": "¥",
}


def _round_decimal(value: Decimal) -> float:
    """Round a Decimal to 2 decimal places and convert to float."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def explain_participant_share(
    name: str,
    participants: list[str],
    expenses: list,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> dict:
    """
    Generate detailed explanation of how a participant's balance was reached.

    For each expense the participant shares:
        - Shows expense details (id, category, date, original amount)
        - Shows the converted amount and the split size
        - Shows the participant's share (converted / len(split_with))

    Args:
        name: Participant to explain.
        participants: Names of the trip's current participants.
        expenses: Expense objects.
        rate: Fixed foreign -> reference conversion rate.
        foreign_currency: The currency converted with `rate`.

    Returns:
        dict: Explanation containing:
            - participant: string
            - expense_contributions: list of dicts with expense breakdown
            - total_paid, total_share, net_balance: floats

    Raises:
        LookupError: If `name` is not a current participant.
    """
    # Orphaned names have no balance to explain
    if name not in participants:
        raise LookupError(f"Participant '{name}' not found")

    totals = calculate_totals(participants, expenses, rate, foreign_currency)[name]

    expense_contributions = []
    for expense in expenses:
        # Only expenses this participant shares contribute to their share
        if name not in expense.split_with:
            continue

        converted = convert_to_reference(expense.amount, expense.currency, rate, foreign_currency)
        expense_contributions.append({
            "expense_id": expense.expense_id,
            "category": expense.category,
            "date": expense.date,
            "payer": expense.payer,
            "amount": expense.amount,
            "currency": expense.currency,
            "converted_amount": _round_decimal(converted),
            "split_size": len(expense.split_with),
            "participant_share": _round_decimal(converted / Decimal(len(expense.split_with)))
        })

    return {
        "participant": name,
        "expense_contributions": expense_contributions,
        "total_paid": totals["total_paid"],
        "total_share": totals["total_share"],
        "net_balance": totals["net_balance"]
    }


def explain_all_participants(
    participants: list[str],
    expenses: list,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> list[dict]:
    """
    Generate detailed explanations for all participants.

    Includes participants with no expenses; keeps the participant order.

    Args:
        participants: Names of the trip's current participants.
        expenses: Expense objects.
        rate: Fixed foreign -> reference conversion rate.
        foreign_currency: The currency converted with `rate`.

    Returns:
        list[dict]: One explain_participant_share() result per participant.
    """
    return [
        explain_participant_share(name, participants, expenses, rate, foreign_currency)
        for name in participants
    ]


def format_currency(amount: float, currency: str = "TWD") -> str:
    """
    Format a monetary amount with its currency symbol.

    Both supported currencies are shown in whole units, e.g. "NT$1,234"
    or "¥15,000". Unknown currencies fall back to a code suffix.

    Args:
        amount: Amount to format.
        currency: Currency code of the amount.

    Returns:
        str: Formatted amount, e.g. "NT$1,235" or "12.50 USD".
    """
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol is None:
        return f"{amount:,.2f} {currency}"
    return f"{symbol}{round_balance(amount):,}"
