"""
Settlement Module

This module turns net balances into a list of transfers that settles every
debt in the trip.

Features:
    - Convert net balances into settlement transactions
    - Greedy largest-debtor / largest-creditor matching
    - Whole-unit transfers with a 1-unit dust band
    - Apply a settlement plan to check what is left over

Data Model:
    Input - balances (dict keyed by participant name):
        - float, positive = owed money, negative = owes money

    Output - list of Settlement objects:
        - from_participant: string (debtor who pays)
        - to_participant: string (creditor who receives)
        - amount: int (whole reference-currency units)

Rounding happens only here: the balances themselves stay exact, and each
one is rounded to a whole unit before matching. Anything that rounds into
-1..1 is dust and counts as settled.

Functions:
    round_balance: Round a balance to a whole reference-currency unit.
    optimize_settlements: Convert balances into settlement transactions.
    apply_settlements: Apply transfers to balances.
    is_settled: Check whether every balance is within the dust band.
"""

from decimal import Decimal, ROUND_HALF_UP

import structlog

logger = structlog.get_logger(__name__)

# Rounded balances with magnitude <= DUST_THRESHOLD are already settled
DUST_THRESHOLD = 1


class Settlement:
    """
    One directed transfer from a debtor to a creditor.

    Attributes:
        from_participant (str): Name of the debtor who pays.
        to_participant (str): Name of the creditor who receives.
        amount (int): Whole reference-currency units, always positive.
    """

    def __init__(self, from_participant: str, to_participant: str, amount: int):
        self.from_participant = from_participant
        self.to_participant = to_participant
        self.amount = amount

    def to_dict(self) -> dict:
        """Convert the transfer to a dictionary for the API response."""
        return {
            "from_participant": self.from_participant,
            "to_participant": self.to_participant,
            "amount": self.amount
        }

    def __eq__(self, other) -> bool:
        """Two transfers are equal when payer, receiver and amount match."""
        if not isinstance(other, Settlement):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        """Return string representation of the transfer."""
        return (
            f"Settlement(from='{self.from_participant}', "
            f"to='{self.to_participant}', amount={self.amount})"
        )


def round_balance(value: float) -> int:
    """
    Round a balance to the nearest whole unit.

    Halves round away from zero (2.5 -> 3, -1.5 -> -2).

    Args:
        value: Balance in the reference currency.

    Returns:
        int: The rounded balance.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def optimize_settlements(balances: dict) -> list[Settlement]:
    """
    Convert net balances into settlement transactions.

    Uses a greedy algorithm:
        1. Round every balance to a whole unit
        2. Debtors: rounded balance < -1; creditors: rounded balance > 1
        3. Sort debtors most negative first, creditors largest first
           (ties keep the input order)
        4. Match the current debtor with the current creditor:
           - Transfer the minimum of what one owes and the other is owed
           - Move past whoever drops below one unit
           - Repeat until either list runs out

    Args:
        balances: Dictionary keyed by participant name with the net balance.

    Returns:
        list[Settlement]: Transfers in the order they were matched. Empty
        when everyone is within the dust band.

    Notes:
        - Does NOT modify input balances
        - Greedy, so not guaranteed to use the fewest possible transfers
    """
    # Step 1: Round and split into debtors and creditors, skipping dust
    debtors = []    # [name, rounded balance], balance negative
    creditors = []  # [name, rounded balance], balance positive

    for name, balance in balances.items():
        rounded = round_balance(balance)
        if rounded < -DUST_THRESHOLD:
            debtors.append([name, rounded])
        elif rounded > DUST_THRESHOLD:
            creditors.append([name, rounded])

    # Step 2: Largest debt and largest credit first (sort is stable)
    debtors.sort(key=lambda x: x[1])
    creditors.sort(key=lambda x: x[1], reverse=True)

    settlements = []
    debtor_idx = 0
    creditor_idx = 0

    # Step 3: Match debtors with creditors until one list runs out
    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        amount = min(abs(debtor[1]), creditor[1])
        settlements.append(Settlement(debtor[0], creditor[0], amount))

        debtor[1] += amount
        creditor[1] -= amount

        # Move past whoever has less than one unit left
        if abs(debtor[1]) < 1:
            debtor_idx += 1
        if creditor[1] < 1:
            creditor_idx += 1

    logger.debug(
        "settlements_planned",
        debtors=len(debtors),
        creditors=len(creditors),
        transfers=len(settlements)
    )
    return settlements


def apply_settlements(balances: dict, settlements: list[Settlement]) -> dict[str, float]:
    """
    Apply transfers to a copy of the balances.

    Paying raises the debtor's balance by the amount and lowers the
    creditor's by the same amount.

    Args:
        balances: Net balances keyed by participant name.
        settlements: Transfers to apply, in order.

    Returns:
        dict: The residual balances.

    Raises:
        KeyError: If a transfer names someone missing from balances.
    """
    remaining = dict(balances)
    for s in settlements:
        remaining[s.from_participant] += s.amount
        remaining[s.to_participant] -= s.amount
    return remaining


def is_settled(balances: dict) -> bool:
    """
    Check whether a trip is settled.

    Args:
        balances: Net balances keyed by participant name.

    Returns:
        bool: True if every balance rounds into -1..1. An empty dict is
        settled.
    """
    return all(abs(round_balance(b)) <= DUST_THRESHOLD for b in balances.values())
