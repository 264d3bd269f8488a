"""
TripExpensePlanner - FastAPI Web Backend

This module serves as the main entry point for the trip expense planner API.

Features:
    - RESTful API for managing trips, participants, and expenses
    - Integration with Firebase Firestore backend
    - Balance and settlement recomputation on every request
    - Analytics and transparency reports

Endpoints:
    POST   /trips                                   - Create a new trip
    GET    /trips/{trip_id}/participants            - List participants
    POST   /trips/{trip_id}/participants            - Add participant
    PUT    /trips/{trip_id}/participants/{name}     - Rename participant
    DELETE /trips/{trip_id}/participants/{name}     - Remove participant
    GET    /trips/{trip_id}/expenses                - List expenses
    POST   /trips/{trip_id}/expenses                - Add expense
    PUT    /trips/{trip_id}/expenses/{expense_id}   - Edit expense
    DELETE /trips/{trip_id}/expenses/{expense_id}   - Delete expense
    GET    /trips/{trip_id}/settlement              - Balances and transfers
    GET    /trips/{trip_id}/analytics               - Spending analytics

Usage:
    uvicorn main:app --reload
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from participants import (
    Participant,
    add_participant,
    get_participant_names,
    get_participants,
    remove_participant,
    rename_participant,
)
from expenses import (
    Expense,
    add_expense,
    delete_expense,
    get_expenses,
    update_expense,
    valid_currencies,
)
from splitter import calculate_balances, calculate_totals
from settlement import is_settled, optimize_settlements
from analytics import generate_analytics
from utils import explain_all_participants
from config.firebase_config import get_db
from config.logging_config import configure_logging
from config.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class TripCreate(BaseModel):
    """Request model for creating a new trip."""
    name: Optional[str] = Field(None, description="Optional trip name")
    participants: list[str] = Field(default_factory=list, description="Initial participant names")


class TripResponse(BaseModel):
    """Response model for trip creation."""
    trip_id: str
    message: str
    participants: list[str]


class ParticipantCreate(BaseModel):
    """Request model for adding a participant."""
    name: str = Field(..., min_length=1, description="Participant name")


class ParticipantRename(BaseModel):
    """Request model for renaming a participant."""
    new_name: str = Field(..., min_length=1, description="New participant name")


class ParticipantResponse(BaseModel):
    """Response model for participant data."""
    participant_id: str
    name: str


class ExpenseCreate(BaseModel):
    """Request model for adding or editing an expense."""
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount in the expense's own currency")
    currency: str = Field(..., min_length=1, description="Expense currency, checked against settings")
    payer: str = Field(..., min_length=1, description="Name of the participant who paid")
    split_with: list[str] = Field(..., min_length=1, description="Names sharing the cost")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Expense date (YYYY-MM-DD)")
    category: str = Field(..., description="Expense category")
    note: Optional[str] = Field(None, description="Optional note")


class ExpenseResponse(BaseModel):
    """Response model for expense data."""
    expense_id: str
    amount: float
    currency: str
    payer: str
    split_with: list[str]
    date: str
    category: str
    note: Optional[str]


class SettlementResponse(BaseModel):
    """Response model for balances and settlement transfers."""
    reference_currency: str
    exchange_rate: float
    balances: dict[str, float]
    totals: dict
    settlements: list
    settled: bool


class AnalyticsResponse(BaseModel):
    """Response model for analytics."""
    analytics: dict
    warnings: list
    explanations: list


# =============================================================================
# FastAPI Application
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure structlog once when the application starts."""
    configure_logging()
    logger.info("api_started")
    yield


app = FastAPI(
    title="Trip Expense Planner",
    description="Shared trip expenses with balances and settlement plans",
    version="1.0.0",
    lifespan=lifespan
)


# =============================================================================
# Helper Functions
# =============================================================================

def _generate_trip_id() -> str:
    """
    Generate a unique trip ID.

    Format: trip_{short_uuid}
    """
    return f"trip_{uuid.uuid4().hex[:8]}"


def _participant_response(p: Participant) -> ParticipantResponse:
    """Convert a Participant into its API response model."""
    return ParticipantResponse(participant_id=p.participant_id, name=p.name)


def _expense_response(e: Expense) -> ExpenseResponse:
    """Convert an Expense into its API response model."""
    return ExpenseResponse(**e.to_dict())


# =============================================================================
# Trips
# =============================================================================

@app.post("/trips", response_model=TripResponse, status_code=201)
async def create_trip(trip_data: TripCreate = None):
    """
    Create a new trip.

    Request flow:
        1. Validate every initial participant name
        2. Generate unique trip_id
        3. Create trip document in Firestore
        4. Add the initial participants, if any
        5. Return trip_id to client
    """
    try:
        # Step 1: Validate names before anything is written
        names = [n.strip() for n in trip_data.participants] if trip_data else []
        if any(not name for name in names):
            raise ValueError("participant names must be non-empty")
        if len(set(names)) != len(names):
            raise ValueError("participant names must be unique")

        db = get_db()
        if db is None:
            raise HTTPException(status_code=503, detail="Database not available")

        # Step 2: Generate unique trip ID
        trip_id = _generate_trip_id()

        # Step 3: Create trip document in Firestore
        db.collection("trips").document(trip_id).set({
            "trip_id": trip_id,
            "name": trip_data.name if trip_data and trip_data.name else trip_id,
            "created_at": datetime.now(timezone.utc).isoformat()
        })

        # Step 4: Add the initial participants
        added = [add_participant(trip_id, name).name for name in names]

        logger.info("trip_created", trip_id=trip_id, participants=len(added))
        return TripResponse(
            trip_id=trip_id,
            message="Trip created successfully",
            participants=added
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("create_trip_failed")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Participants
# =============================================================================

@app.get("/trips/{trip_id}/participants", response_model=list[ParticipantResponse])
async def list_trip_participants(trip_id: str):
    """List the participants of a trip."""
    try:
        return [_participant_response(p) for p in get_participants(trip_id)]

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/trips/{trip_id}/participants", response_model=ParticipantResponse, status_code=201)
async def add_trip_participant(trip_id: str, participant_data: ParticipantCreate):
    """Add a participant to a trip."""
    try:
        return _participant_response(add_participant(trip_id, participant_data.name))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("add_participant_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.put("/trips/{trip_id}/participants/{name}", response_model=ParticipantResponse)
async def rename_trip_participant(trip_id: str, name: str, rename_data: ParticipantRename):
    """
    Rename a participant.

    Existing expenses keep the old name and stop counting toward this
    participant's balance.
    """
    try:
        return _participant_response(rename_participant(trip_id, name, rename_data.new_name))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("rename_participant_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/trips/{trip_id}/participants/{name}", status_code=204)
async def remove_trip_participant(trip_id: str, name: str):
    """Remove a participant from a trip."""
    try:
        remove_participant(trip_id, name)
        return Response(status_code=204)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("remove_participant_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Expenses
# =============================================================================

@app.get("/trips/{trip_id}/expenses", response_model=list[ExpenseResponse])
async def list_trip_expenses(trip_id: str):
    """List the expenses of a trip."""
    try:
        return [_expense_response(e) for e in get_expenses(trip_id)]

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/trips/{trip_id}/expenses", response_model=ExpenseResponse, status_code=201)
async def add_trip_expense(
    trip_id: str,
    expense_data: ExpenseCreate,
    settings: Settings = Depends(get_settings)
):
    """
    Add an expense to a trip.

    Request flow:
        1. Validate shape using the Pydantic model
        2. Validate against trip participants and the configured
           currencies in add_expense()
        3. Return created expense data
    """
    try:
        expense = add_expense(
            trip_id=trip_id,
            currencies=valid_currencies(settings),
            **expense_data.model_dump()
        )
        return _expense_response(expense)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("add_expense_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.put("/trips/{trip_id}/expenses/{expense_id}", response_model=ExpenseResponse)
async def edit_trip_expense(
    trip_id: str,
    expense_id: str,
    expense_data: ExpenseCreate,
    settings: Settings = Depends(get_settings)
):
    """
    Replace an existing expense.

    The new data is validated exactly like a new expense; the expense ID
    is kept.
    """
    try:
        expense = update_expense(
            trip_id=trip_id,
            expense_id=expense_id,
            currencies=valid_currencies(settings),
            **expense_data.model_dump()
        )
        return _expense_response(expense)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("edit_expense_failed", trip_id=trip_id, expense_id=expense_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/trips/{trip_id}/expenses/{expense_id}", status_code=204)
async def delete_trip_expense(trip_id: str, expense_id: str):
    """Delete an expense."""
    try:
        delete_expense(trip_id, expense_id)
        return Response(status_code=204)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("delete_expense_failed", trip_id=trip_id, expense_id=expense_id)
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Derived views
# =============================================================================

@app.get("/trips/{trip_id}/settlement", response_model=SettlementResponse)
async def get_trip_settlement(trip_id: str, settings: Settings = Depends(get_settings)):
    """
    Compute balances and the settlement plan for a trip.

    Request flow:
        1. Fetch the current participants and expenses
        2. Calculate balances (splitter.py)
        3. Plan settlements (settlement.py)
        4. Return everything; nothing is stored
    """
    try:
        participants = get_participant_names(trip_id)
        expenses = get_expenses(trip_id)

        balances = calculate_balances(
            participants, expenses, settings.exchange_rate, settings.foreign_currency
        )
        totals = calculate_totals(
            participants, expenses, settings.exchange_rate, settings.foreign_currency
        )
        settlements = optimize_settlements(balances)

        logger.info(
            "settlement_computed",
            trip_id=trip_id,
            participants=len(participants),
            expenses=len(expenses),
            transfers=len(settlements)
        )
        return SettlementResponse(
            reference_currency=settings.reference_currency,
            exchange_rate=settings.exchange_rate,
            balances=balances,
            totals=totals,
            settlements=[s.to_dict() for s in settlements],
            settled=is_settled(balances)
        )

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("settlement_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/trips/{trip_id}/analytics", response_model=AnalyticsResponse)
async def get_trip_analytics(trip_id: str, settings: Settings = Depends(get_settings)):
    """Spending analytics, warnings and per-participant explanations."""
    try:
        participants = get_participant_names(trip_id)
        expenses = get_expenses(trip_id)

        result = generate_analytics(expenses, settings.exchange_rate, settings.foreign_currency)
        explanations = explain_all_participants(
            participants, expenses, settings.exchange_rate, settings.foreign_currency
        )

        return AnalyticsResponse(
            analytics=result["analytics"],
            warnings=result["warnings"],
            explanations=explanations
        )

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("analytics_failed", trip_id=trip_id)
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Trip Expense Planner"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
