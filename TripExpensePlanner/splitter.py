"""
Splitter Module

This module reduces a trip's expenses into one net balance per participant,
normalized to the reference currency.

Features:
    - Fixed-rate conversion of foreign-currency expenses
    - Equal splitting among the participants sharing an expense
    - Exact running sums (Decimal), no rounding until display

Data Model:
    Input - participants: list of participant names
    Input - expenses: list of Expense objects (see expenses.py) with:
        - amount: float (in the expense's own currency)
        - currency: string
        - payer: string
        - split_with: non-empty list of participant names
    Input - rate: foreign -> reference conversion rate

    Output - balances (dict keyed by participant name):
        - float, positive = is owed money, negative = owes money

Orphaned references:
    A payer or split member who is not in the current participant list
    (removed or renamed after the expense was recorded) is ignored: their
    credit or debit is dropped. The split divisor is still the full
    len(split_with), so the remaining members' shares do not grow.

Functions:
    convert_to_reference: Convert an amount into the reference currency.
    calculate_balances: Net balance per participant.
    calculate_totals: Paid / share / net breakdown per participant.
"""

from decimal import Decimal, ROUND_HALF_UP

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_FOREIGN_CURRENCY = "JPY"


def _round_decimal(value: Decimal) -> float:
    """Round a Decimal to 2 decimal places and convert to float."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _to_decimal(value) -> Decimal:
    """
    Convert a number to Decimal through its string form.

    Args:
        value: int, float or Decimal.

    Returns:
        Decimal: Exact decimal value (0.215 stays 0.215, not the binary
        float expansion).
    """
    return Decimal(str(value))


def convert_to_reference(
    amount: float,
    currency: str,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> Decimal:
    """
    Convert an amount into the reference currency.

    Args:
        amount: Amount in `currency`.
        currency: Currency of the amount.
        rate: Fixed foreign -> reference rate.
        foreign_currency: The currency that gets multiplied by `rate`.

    Returns:
        Decimal: The amount in the reference currency. Anything that is not
        the foreign currency is already reference currency.
    """
    # Only the foreign currency is converted
    if currency == foreign_currency:
        return _to_decimal(amount) * _to_decimal(rate)
    return _to_decimal(amount)


def _accumulate(participants, expenses, rate, foreign_currency):
    """
    Walk the expenses once and build the paid and share maps.

    Args:
        participants: Names of the trip's current participants.
        expenses: Expense objects.
        rate: Fixed foreign -> reference conversion rate.
        foreign_currency: The currency converted with `rate`.

    Returns:
        tuple: (paid, share), both dicts of participant name -> Decimal.

    Raises:
        ValueError: If an expense has an empty split_with.
    """
    # Every current participant starts at zero
    paid = {name: Decimal("0") for name in participants}
    share = {name: Decimal("0") for name in participants}

    for expense in expenses:
        if not expense.split_with:
            raise ValueError(
                f"Expense {expense.expense_id} has an empty split_with; "
                "it must be rejected before balance calculation"
            )

        # Step 1: Convert to the reference currency
        converted = convert_to_reference(
            expense.amount, expense.currency, rate, foreign_currency
        )

        # Step 2: Credit the payer, unless they are no longer a participant
        if expense.payer in paid:
            paid[expense.payer] += converted
        else:
            logger.debug(
                "orphaned_payer_ignored",
                expense_id=expense.expense_id,
                payer=expense.payer
            )

        # Step 3: Debit each split member; the divisor counts orphans too
        per_person = converted / Decimal(len(expense.split_with))
        for name in expense.split_with:
            if name in share:
                share[name] += per_person
            else:
                logger.debug(
                    "orphaned_split_member_ignored",
                    expense_id=expense.expense_id,
                    name=name
                )

    return paid, share


def calculate_balances(
    participants: list[str],
    expenses: list,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> dict[str, float]:
    """
    Calculate the net balance of every participant.

    For each expense:
        1. Convert the amount to the reference currency
        2. Credit the converted amount to the payer
        3. Debit converted / len(split_with) from each split member

    A payer who is also in split_with gets both the credit and their own
    debit.

    Args:
        participants: Names of the trip's current participants.
        expenses: Expense objects (full current snapshot).
        rate: Fixed foreign -> reference conversion rate.
        foreign_currency: The currency converted with `rate`.

    Returns:
        dict: participant name -> net balance (reference currency, unrounded).

    Raises:
        ValueError: If an expense has an empty split_with.

    Notes:
        - Pure function, result does not depend on expense order
        - Every participant appears in the result, even with no expenses
    """
    paid, share = _accumulate(participants, expenses, rate, foreign_currency)

    # Net = what they fronted minus what they consumed
    return {name: float(paid[name] - share[name]) for name in paid}


def calculate_totals(
    participants: list[str],
    expenses: list,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> dict[str, dict]:
    """
    Calculate the paid / share / net breakdown of every participant.

    Same rules as calculate_balances, rounded to 2 decimal places for
    display.

    Returns:
        dict: Keyed by participant name, each containing:
            - total_paid: float (converted amounts this participant fronted)
            - total_share: float (this participant's shares of expenses)
            - net_balance: float (total_paid - total_share)
    """
    paid, share = _accumulate(participants, expenses, rate, foreign_currency)
    return {
        name: {
            "total_paid": _round_decimal(paid[name]),
            "total_share": _round_decimal(share[name]),
            "net_balance": _round_decimal(paid[name] - share[name])
        }
        for name in paid
    }
