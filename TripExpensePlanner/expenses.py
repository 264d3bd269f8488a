"""
Expenses Module

This module handles all expense-related operations for the trip expense
planner.

Features:
    - Add/edit/delete expenses
    - Categorize expenses (food, transport, shopping, accommodation, tickets, other)
    - Track who paid, in which currency, and who shares the cost
    - Validate records before they reach the balance calculator

Data Model:
    Expense stored at: trips/{trip_id}/expenses/{expense_id}
    Fields:
        - expense_id: string (E001, E002, ... format)
        - amount: float (finite and > 0, in its own currency)
        - currency: string (the configured reference or foreign currency)
        - payer: string (participant name)
        - split_with: list of participant names (never empty)
        - date: string (YYYY-MM-DD)
        - category: string
        - note: string or None

Functions:
    valid_currencies: Currencies accepted under the current settings.
    validate_expense: Reject malformed expense input.
    add_expense: Add a new expense to a trip.
    update_expense: Replace an existing expense.
    delete_expense: Delete an expense.
    get_expenses: Get all expenses for a trip.
"""

import math
import re
from datetime import datetime
from typing import Optional

import structlog

from config.firebase_config import get_db
from config.settings import Settings, get_settings
from participants import get_participant_names, require_trip

logger = structlog.get_logger(__name__)


# Valid expense categories
VALID_CATEGORIES = {"food", "transport", "shopping", "accommodation", "tickets", "other"}

# Expense IDs look like E001, E002, ...
_EXPENSE_ID_PATTERN = re.compile(r'^E(\d+)$')


class Expense:
    """
    Represents a single shared expense in the trip.

    Attributes:
        expense_id (str): Unique identifier in E### format.
        amount (float): Amount in `currency` (must be > 0).
        currency (str): Reference or foreign currency code.
        payer (str): Name of the participant who paid.
        split_with (list[str]): Names of the participants sharing the cost.
        date (str): Date of expense (YYYY-MM-DD).
        category (str): One of VALID_CATEGORIES.
        note (str | None): Optional description.
    """

    def __init__(
        self,
        expense_id: str,
        amount: float,
        currency: str,
        payer: str,
        split_with: list[str],
        date: str,
        category: str,
        note: Optional[str] = None
    ):
        self.expense_id = expense_id
        self.amount = amount
        self.currency = currency
        self.payer = payer
        self.split_with = split_with
        self.date = date
        self.category = category
        self.note = note

    def to_dict(self) -> dict:
        """Convert expense to dictionary for Firestore storage."""
        return {
            "expense_id": self.expense_id,
            "amount": self.amount,
            "currency": self.currency,
            "payer": self.payer,
            "split_with": list(self.split_with),
            "date": self.date,
            "category": self.category,
            "note": self.note
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create an Expense instance from a dictionary."""
        return cls(
            expense_id=data.get("expense_id"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            payer=data.get("payer"),
            split_with=list(data.get("split_with", [])),
            date=data.get("date"),
            category=data.get("category"),
            note=data.get("note")
        )

    def __repr__(self) -> str:
        """Return string representation of expense."""
        return (
            f"Expense(id='{self.expense_id}', payer='{self.payer}', "
            f"amount={self.amount} {self.currency}, category='{self.category}')"
        )


def _id_number(expense_id: str) -> int:
    """
    Extract the numeric suffix of an E### expense ID.

    Args:
        expense_id: ID to parse.

    Returns:
        int: The number (E012 -> 12), or 0 for IDs not in E### format
        (legacy data sorts first).
    """
    match = _EXPENSE_ID_PATTERN.match(expense_id or "")
    return int(match.group(1)) if match else 0


def valid_currencies(settings: Optional[Settings] = None) -> set[str]:
    """
    Get the currencies an expense may be recorded in.

    Only the reference currency and the one foreign currency have a known
    conversion, so nothing else is accepted.

    Args:
        settings: Settings to read; defaults to the application settings.

    Returns:
        set[str]: {reference_currency, foreign_currency}.
    """
    settings = settings or get_settings()
    return {settings.reference_currency, settings.foreign_currency}


def _generate_next_expense_id(trip_id: str) -> str:
    """
    Generate the next sequential expense ID for a trip.

    Format: E001, E002, E003, ...

    Logic:
        1. Fetch all existing expense document IDs for the trip
        2. Extract numeric suffix from IDs matching E### format (e.g., E001 -> 1)
        3. Find the highest existing number
        4. Generate next ID with zero-padded 3-digit suffix
        5. If no valid E### IDs exist, start from E001

    Args:
        trip_id: The ID of the trip.

    Returns:
        str: Next expense ID in format E### (e.g., E001, E002).
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    # Fetch all existing expense documents for this trip
    docs = db.collection("trips").document(trip_id).collection("expenses").stream()

    # Highest E### number in use; non-matching IDs count as 0
    max_num = max((_id_number(doc.id) for doc in docs), default=0)

    # Generate next ID with 3-digit zero padding
    return f"E{max_num + 1:03d}"


def _validate_date(date_str: str, field_name: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate.
        field_name: Name of the field for error messages.

    Returns:
        bool: True if valid.

    Raises:
        ValueError: If date format is invalid.
    """
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be in YYYY-MM-DD format, got: {date_str}")


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Args:
        value: String to validate.
        field_name: Name of the field for error messages.

    Returns:
        bool: True if valid.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def validate_expense(
    amount: float,
    currency: str,
    payer: str,
    split_with: list[str],
    date: str,
    category: str,
    participants: list[str],
    currencies: Optional[set[str]] = None
) -> None:
    """
    Validate expense fields against the trip's current participants.

    This is the boundary check that keeps malformed records (an empty
    split, a NaN or infinite amount, an unconvertible currency) away from
    the balance calculator.

    Args:
        amount: Expense amount in its own currency.
        currency: Currency of the amount.
        payer: Name of the paying participant.
        split_with: Names of the participants sharing the cost.
        date: Expense date (YYYY-MM-DD).
        category: One of VALID_CATEGORIES.
        participants: Names of the trip's current participants.
        currencies: Accepted currencies; defaults to valid_currencies().

    Raises:
        ValueError: If any field is invalid.
    """
    if currencies is None:
        currencies = valid_currencies()

    _validate_non_empty_string(payer, "payer")
    _validate_date(date, "date")

    # Amount must be a real, finite, positive number (bool is an int subclass)
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
        or amount <= 0
    ):
        raise ValueError(f"amount must be a positive finite number, got: {amount}")

    if currency not in currencies:
        raise ValueError(f"currency must be one of {sorted(currencies)}, got: {currency}")

    if category not in VALID_CATEGORIES:
        raise ValueError(f"category must be one of {sorted(VALID_CATEGORIES)}, got: {category}")

    # Validate split_with is a non-empty list without repeats
    if not isinstance(split_with, list) or len(split_with) == 0:
        raise ValueError("split_with must be a non-empty list of participant names")

    if len(set(split_with)) != len(split_with):
        raise ValueError("split_with must not contain duplicate names")

    # Payer and every split member must be current participants
    known = set(participants)
    if payer not in known:
        raise ValueError(f"payer '{payer}' is not a participant of this trip")

    for name in split_with:
        if name not in known:
            raise ValueError(f"split member '{name}' is not a participant of this trip")


def _expense_ref(db, trip_id: str, expense_id: str):
    """Return the document reference of one expense."""
    return db.collection("trips").document(trip_id) \
             .collection("expenses").document(expense_id)


def add_expense(
    trip_id: str,
    amount: float,
    currency: str,
    payer: str,
    split_with: list[str],
    date: str,
    category: str,
    note: Optional[str] = None,
    currencies: Optional[set[str]] = None
) -> Expense:
    """
    Add a new expense to a trip.

    Args:
        trip_id: The ID of the trip.
        amount: Amount of the expense in `currency` (must be > 0).
        currency: Reference or foreign currency code.
        payer: Name of the participant who paid.
        split_with: Names of the participants sharing the cost.
        date: Date of the expense (YYYY-MM-DD).
        category: Category of the expense.
        note: Optional description; defaults to the category.
        currencies: Accepted currencies; defaults to valid_currencies().

    Returns:
        Expense: The created expense object.

    Raises:
        ValueError: If input validation fails.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.

    Notes:
        - Payer does NOT have to be in split_with
        - No balance calculation is performed here
    """
    _validate_non_empty_string(trip_id, "trip_id")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    # Validate against the trip's current participants
    validate_expense(
        amount, currency, payer, split_with, date, category,
        get_participant_names(trip_id), currencies
    )

    # Create expense with a sequential ID (E001, E002, ...)
    expense = Expense(
        expense_id=_generate_next_expense_id(trip_id),
        amount=float(amount),
        currency=currency,
        payer=payer,
        split_with=list(split_with),
        date=date,
        category=category,
        note=note.strip() if note and note.strip() else category
    )

    # Store at trips/{trip_id}/expenses/{expense_id}
    _expense_ref(db, trip_id, expense.expense_id).set(expense.to_dict())

    logger.info(
        "expense_added",
        trip_id=trip_id,
        expense_id=expense.expense_id,
        amount=expense.amount,
        currency=expense.currency,
        split_size=len(expense.split_with)
    )
    return expense


def update_expense(
    trip_id: str,
    expense_id: str,
    amount: float,
    currency: str,
    payer: str,
    split_with: list[str],
    date: str,
    category: str,
    note: Optional[str] = None,
    currencies: Optional[set[str]] = None
) -> Expense:
    """
    Replace an existing expense with new values.

    The edited record is validated exactly like a new one; the expense_id
    is kept.

    Args:
        trip_id: The ID of the trip.
        expense_id: The ID of the expense to replace.
        amount, currency, payer, split_with, date, category, note:
            New field values, as for add_expense.
        currencies: Accepted currencies; defaults to valid_currencies().

    Returns:
        Expense: The updated expense object.

    Raises:
        ValueError: If input validation fails.
        LookupError: If the trip or the expense does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(expense_id, "expense_id")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    doc_ref = _expense_ref(db, trip_id, expense_id)
    if not doc_ref.get().exists:
        raise LookupError(f"Expense {expense_id} not found in trip {trip_id}")

    validate_expense(
        amount, currency, payer, split_with, date, category,
        get_participant_names(trip_id), currencies
    )

    expense = Expense(
        expense_id=expense_id,
        amount=float(amount),
        currency=currency,
        payer=payer,
        split_with=list(split_with),
        date=date,
        category=category,
        note=note.strip() if note and note.strip() else category
    )

    # Overwrite the whole document
    doc_ref.set(expense.to_dict())

    logger.info("expense_updated", trip_id=trip_id, expense_id=expense_id)
    return expense


def delete_expense(trip_id: str, expense_id: str) -> None:
    """
    Delete an expense from a trip.

    Args:
        trip_id: The ID of the trip.
        expense_id: The ID of the expense to delete.

    Raises:
        LookupError: If the trip or the expense does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(expense_id, "expense_id")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    doc_ref = _expense_ref(db, trip_id, expense_id)
    if not doc_ref.get().exists:
        raise LookupError(f"Expense {expense_id} not found in trip {trip_id}")

    doc_ref.delete()
    logger.info("expense_deleted", trip_id=trip_id, expense_id=expense_id)


def get_expenses(trip_id: str) -> list[Expense]:
    """
    Get all expenses for a trip, ordered by expense ID number.

    Args:
        trip_id: The ID of the trip.

    Returns:
        list[Expense]: List of all expenses for the trip.

    Raises:
        ValueError: If trip_id is invalid.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    # Query all expenses for the trip
    docs = db.collection("trips").document(trip_id) \
             .collection("expenses").stream()

    expenses = [Expense.from_dict(doc.to_dict()) for doc in docs]

    # Numeric order so E1000 comes after E999
    expenses.sort(key=lambda e: _id_number(e.expense_id))
    return expenses
