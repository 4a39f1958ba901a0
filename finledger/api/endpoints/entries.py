"""
Income and expense API endpoints

Both resources behave identically; one router is built per entry kind.
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from finledger.auth.dependencies import get_current_user_id, get_ledger
from finledger.models.entry import EntryKind
from finledger.schemas.auth import MessageResponse
from finledger.schemas.entry import EntryCreate, EntryCreated, EntryResponse
from finledger.services import LedgerEngine


def build_entry_router(kind: EntryKind) -> APIRouter:
    """Create the add/list/delete routes for one entry kind"""
    router = APIRouter()
    label = kind.value.capitalize()

    @router.post(
        "",
        response_model=EntryCreated,
        status_code=status.HTTP_201_CREATED,
        name=f"add_{kind.value}",
        summary=f"Add a new {kind.value}",
    )
    def add_entry(
        entry_in: EntryCreate,
        user_id: str = Depends(get_current_user_id),
        ledger: LedgerEngine = Depends(get_ledger),
    ):
        entry_id = ledger.add_entry(
            user_id,
            kind,
            category=entry_in.category,
            amount=entry_in.amount,
            date=entry_in.date,
            description=entry_in.description,
        )
        return EntryCreated(message=f"{label} added successfully", id=entry_id)

    @router.get(
        "",
        response_model=List[EntryResponse],
        name=f"list_{kind.value}",
        summary=f"Get {kind.value} records within a date range",
    )
    def list_entries(
        from_date: str = Query(..., alias="from", description="Start date (YYYY-MM-DD)"),
        to_date: str = Query(..., alias="to", description="End date (YYYY-MM-DD)"),
        user_id: str = Depends(get_current_user_id),
        ledger: LedgerEngine = Depends(get_ledger),
    ):
        return ledger.list_entries(user_id, kind, from_date, to_date).all()

    @router.delete(
        "/{entry_id}",
        response_model=MessageResponse,
        name=f"delete_{kind.value}",
        summary=f"Delete a {kind.value} by ID",
    )
    def delete_entry(
        entry_id: int,
        user_id: str = Depends(get_current_user_id),
        ledger: LedgerEngine = Depends(get_ledger),
    ):
        ledger.delete_entry(user_id, entry_id, kind)
        return MessageResponse(message=f"{label} deleted successfully")

    return router


income_router = build_entry_router(EntryKind.INCOME)
expense_router = build_entry_router(EntryKind.EXPENSE)
