"""
Participants Module

This module handles all participant-related operations for the trip expense
planner.

Features:
    - Add/remove participants to a trip
    - Rename participants
    - Retrieve participant details
    - Guard every operation against unknown trips

Participants are identified by name inside a trip; the name is what
expenses reference. Removing or renaming a participant does NOT rewrite
existing expenses, so those references become orphaned and are ignored by
the balance calculator.

Data Model:
    Trip stored at: trips/{trip_id}
    Participant stored at: trips/{trip_id}/participants/{participant_id}
    Fields:
        - participant_id: string (P001, P002, ... format)
        - name: string (unique within the trip)

Functions:
    require_trip: Raise LookupError if a trip does not exist.
    add_participant: Add a new participant to a trip.
    remove_participant: Delete a participant from a trip.
    rename_participant: Change a participant's name.
    get_participants: Get all participants for a trip.
    get_participant_names: Get participant names for a trip.
"""

import re

import structlog

from config.firebase_config import get_db

logger = structlog.get_logger(__name__)

# Participant IDs look like P001, P002, ...
_PARTICIPANT_ID_PATTERN = re.compile(r'^P(\d+)$')


def _id_number(participant_id: str) -> int:
    """
    Extract the numeric suffix of a P### participant ID.

    Args:
        participant_id: ID to parse.

    Returns:
        int: The number (P012 -> 12), or 0 for IDs not in P### format
        (legacy data sorts first).
    """
    match = _PARTICIPANT_ID_PATTERN.match(participant_id or "")
    return int(match.group(1)) if match else 0


def require_trip(db, trip_id: str) -> None:
    """
    Make sure a trip document exists.

    Args:
        db: Firestore client.
        trip_id: The ID of the trip.

    Raises:
        LookupError: If trips/{trip_id} does not exist.
    """
    if not db.collection("trips").document(trip_id).get().exists:
        raise LookupError(f"Trip {trip_id} not found")


def _generate_next_participant_id(trip_id: str) -> str:
    """
    Generate the next sequential participant ID for a trip.

    Format: P001, P002, P003, ...

    Logic:
        1. Fetch all existing participant document IDs for the trip
        2. Extract numeric suffix from IDs matching P### format (e.g., P001 -> 1)
        3. Find the highest existing number
        4. Generate next ID with zero-padded 3-digit suffix
        5. If no valid P### IDs exist, start from P001

    Args:
        trip_id: The ID of the trip.

    Returns:
        str: Next participant ID in format P### (e.g., P001, P002).
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    # Fetch all existing participant documents for this trip
    docs = _participants_ref(db, trip_id).stream()

    # Highest P### number in use; non-matching IDs count as 0
    max_num = max((_id_number(doc.id) for doc in docs), default=0)

    # Generate next ID with 3-digit zero padding
    return f"P{max_num + 1:03d}"


class Participant:
    """
    Represents a participant in a trip.

    Attributes:
        participant_id (str): Unique identifier for the participant.
        name (str): Name of the participant, unique within the trip.
    """

    def __init__(self, name: str, participant_id: str = None):
        self.participant_id = participant_id  # ID is generated externally via _generate_next_participant_id
        self.name = name

    def to_dict(self) -> dict:
        """Convert participant to dictionary for Firestore storage."""
        return {
            "participant_id": self.participant_id,
            "name": self.name
        }

    def __repr__(self) -> str:
        """Return string representation of participant."""
        return f"Participant(id='{self.participant_id}', name='{self.name}')"

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        """Create a Participant instance from a dictionary."""
        return cls(
            participant_id=data.get("participant_id"),
            name=data.get("name")
        )


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


def _participants_ref(db, trip_id: str):
    """Return the participants collection reference of a trip."""
    return db.collection("trips").document(trip_id).collection("participants")


def _find_participant_doc(db, trip_id: str, name: str):
    """
    Find a participant document by name.

    Args:
        db: Firestore client.
        trip_id: The ID of the trip.
        name: Participant name to look for.

    Returns:
        DocumentSnapshot | None: The matching document, or None.
    """
    for doc in _participants_ref(db, trip_id).stream():
        if doc.to_dict().get("name") == name:
            return doc
    return None


def add_participant(trip_id: str, name: str) -> Participant:
    """
    Add a new participant to a trip.

    Args:
        trip_id: The ID of the trip.
        name: Name of the participant.

    Returns:
        Participant: The created participant object.

    Raises:
        ValueError: If input validation fails or the name is taken.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    # Validate inputs
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(name, "name")
    name = name.strip()

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    # Names are the participant key for expenses, so they must be unique
    if _find_participant_doc(db, trip_id, name) is not None:
        raise ValueError(f"Participant '{name}' already exists in trip {trip_id}")

    # Create participant with a sequential ID (P001, P002, ...)
    participant = Participant(
        name=name,
        participant_id=_generate_next_participant_id(trip_id)
    )

    # Store at trips/{trip_id}/participants/{participant_id}
    _participants_ref(db, trip_id).document(participant.participant_id) \
        .set(participant.to_dict())

    logger.info(
        "participant_added",
        trip_id=trip_id,
        participant_id=participant.participant_id,
        name=name
    )
    return participant


def remove_participant(trip_id: str, name: str) -> Participant:
    """
    Remove a participant from a trip.

    This is a hard delete. Expenses recorded with this name keep it, and the
    balance calculator ignores it from then on.

    Args:
        trip_id: The ID of the trip.
        name: Name of the participant to remove.

    Returns:
        Participant: The removed participant.

    Raises:
        ValueError: If removing would leave the trip without participants.
        LookupError: If the trip or the participant does not exist.
        RuntimeError: If Firestore is not available.
    """
    # Validate inputs
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(name, "name")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    doc = _find_participant_doc(db, trip_id, name)
    if doc is None:
        raise LookupError(f"Participant '{name}' not found in trip {trip_id}")

    # A trip always keeps at least one participant
    if len(list(_participants_ref(db, trip_id).stream())) <= 1:
        raise ValueError("A trip must keep at least one participant")

    _participants_ref(db, trip_id).document(doc.id).delete()

    logger.info("participant_removed", trip_id=trip_id, participant_id=doc.id, name=name)
    return Participant.from_dict(doc.to_dict())


def rename_participant(trip_id: str, old_name: str, new_name: str) -> Participant:
    """
    Rename a participant.

    Only the participant record changes; expenses that reference the old
    name are left as they are.

    Args:
        trip_id: The ID of the trip.
        old_name: Current name of the participant.
        new_name: Name to switch to.

    Returns:
        Participant: The renamed participant.

    Raises:
        ValueError: If the new name is empty or already taken.
        LookupError: If the trip or the participant does not exist.
        RuntimeError: If Firestore is not available.
    """
    # Validate inputs
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(old_name, "old_name")
    _validate_non_empty_string(new_name, "new_name")
    new_name = new_name.strip()

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    require_trip(db, trip_id)

    doc = _find_participant_doc(db, trip_id, old_name)
    if doc is None:
        raise LookupError(f"Participant '{old_name}' not found in trip {trip_id}")

    # Renaming to the same name changes nothing
    if new_name == old_name:
        return Participant.from_dict(doc.to_dict())

    if _find_participant_doc(db, trip_id, new_name) is not None:
        raise ValueError(f"Participant '{new_name}' already exists in trip {trip_id}")

    _participants_ref(db, trip_id).document(doc.id).update({"name": new_name})

    logger.info(
        "participant_renamed",
        trip_id=trip_id,
        participant_id=doc.id,
        old_name=old_name,
        new_name=new_name
    )

    # Return updated participant
    data = doc.to_dict()
    data["name"] = new_name
    return Participant.from_dict(data)


def get_participants(trip_id: str) -> list[Participant]:
    """
    Get all participants for a trip, ordered by participant ID number.

    Args:
        trip_id: The ID of the trip.

    Returns:
        list[Participant]: List of all participants.

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

    # Query all participants
    participants = [
        Participant.from_dict(doc.to_dict())
        for doc in _participants_ref(db, trip_id).stream()
    ]

    # Numeric order so P1000 comes after P999
    participants.sort(key=lambda p: _id_number(p.participant_id))
    return participants


def get_participant_names(trip_id: str) -> list[str]:
    """
    Get participant names for a trip, in participant ID order.

    Args:
        trip_id: The ID of the trip.

    Returns:
        list[str]: Participant names.
    """
    return [p.name for p in get_participants(trip_id)]
