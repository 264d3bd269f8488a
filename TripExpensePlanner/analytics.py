"""
Analytics Module

This module provides spending summaries for the trip expense planner.

Features:
    - Raw totals per currency and the trip total in the reference currency
    - Category-wise expense breakdown
    - Daily spending analysis
    - Highest spending day identification
    - Per-participant payer totals
    - Smart warnings for spending imbalances

Data Model:
    Input - expenses: list of Expense objects with:
        - payer: string
        - amount: float
        - currency: string
        - category: string
        - date: string (YYYY-MM-DD)

    Output - dict containing:
        - analytics: dict with currency totals, category_breakdown, etc.
        - warnings: list of warning strings

All derived amounts are in the reference currency.

Functions:
    generate_analytics: Generate analytics and warnings from expense data.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from splitter import DEFAULT_FOREIGN_CURRENCY, convert_to_reference


def _round_decimal(value: Decimal) -> float:
    """Round a Decimal to 2 decimal places and convert to float."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def generate_analytics(
    expenses: list,
    rate: float,
    foreign_currency: str = DEFAULT_FOREIGN_CURRENCY
) -> dict:
    """
    Generate analytics and smart warnings from expense data.

    Analytics computed:
        - currency_totals: Raw amount recorded per currency
        - total_reference: Whole trip spend in the reference currency
        - category_breakdown: Total amount spent per category
        - daily_spending: Total amount spent per date
        - highest_spending_day: Date and amount of maximum daily spend
        - payer_totals: Total amount fronted by each payer

    Warnings generated (rule-based):
        - If one payer fronted > 40% of total trip cost
        - If one category > 50% of total spend
        - If a day's spend > 2x average daily spend

    Args:
        expenses: Expense objects.
        rate: Fixed foreign -> reference conversion rate.
        foreign_currency: The currency converted with `rate`.

    Returns:
        dict: Contains two keys:
            - analytics: dict described above
            - warnings: list of warning strings
    """
    currency_totals = defaultdict(Decimal)
    category_totals = defaultdict(Decimal)
    daily_totals = defaultdict(Decimal)
    payer_totals = defaultdict(Decimal)
    total_spent = Decimal("0")

    # Step 1: Aggregate raw and converted amounts
    for expense in expenses:
        currency_totals[expense.currency] += Decimal(str(expense.amount))

        amount = convert_to_reference(expense.amount, expense.currency, rate, foreign_currency)
        category_totals[expense.category] += amount
        daily_totals[expense.date] += amount
        payer_totals[expense.payer] += amount
        total_spent += amount

    # Step 2: Find the highest spending day
    highest_spending_day = {"date": None, "amount": 0.0}
    if daily_totals:
        max_date = max(daily_totals, key=daily_totals.get)
        highest_spending_day = {
            "date": max_date,
            "amount": _round_decimal(daily_totals[max_date])
        }

    analytics = {
        "currency_totals": {c: _round_decimal(a) for c, a in currency_totals.items()},
        "total_reference": _round_decimal(total_spent),
        "category_breakdown": {c: _round_decimal(a) for c, a in category_totals.items()},
        "daily_spending": {d: _round_decimal(a) for d, a in sorted(daily_totals.items())},
        "highest_spending_day": highest_spending_day,
        "payer_totals": {p: _round_decimal(a) for p, a in payer_totals.items()}
    }

    # Step 3: Rule-based warnings
    warnings = []
    total_spent_float = _round_decimal(total_spent)

    # Rule 1: one payer fronted > 40% of total trip cost
    if total_spent > 0:
        for payer, amount in payer_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 40:
                warnings.append(
                    f"Warning: {payer} paid {_round_decimal(percentage)}% of total expenses "
                    f"({_round_decimal(amount)} of {total_spent_float})"
                )

    # Rule 2: one category > 50% of total spend
    if total_spent > 0:
        for category, amount in category_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 50:
                warnings.append(
                    f"Warning: '{category}' accounts for {_round_decimal(percentage)}% of total spend "
                    f"({_round_decimal(amount)} of {total_spent_float})"
                )

    # Rule 3: a day's spend > 2x average daily spend
    if len(daily_totals) > 1:
        avg_daily = total_spent / Decimal(len(daily_totals))
        for date, amount in sorted(daily_totals.items()):
            if amount > avg_daily * 2:
                warnings.append(
                    f"Warning: Spending on {date} ({_round_decimal(amount)}) "
                    f"exceeds 2x average daily spend ({_round_decimal(avg_daily)})"
                )

    return {
        "analytics": analytics,
        "warnings": warnings
    }
