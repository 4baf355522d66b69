"""Journal entry API endpoints."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import gl_service
from storeledger.domain.accounting.enums import EntryType
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.accounting import (
    JournalEntryCreate,
    JournalEntryResponse,
    JournalEntryUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/journal-entries", response_model=List[JournalEntryResponse])
def list_journal_entries(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    entry_type: Optional[EntryType] = None,
    account_code: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[JournalEntryResponse]:
    """List journal entries, newest first."""
    entries = gl_service.list_journal_entries(
        db,
        date_from=date_from,
        date_to=date_to,
        entry_type=entry_type,
        account_code=account_code,
        limit=limit,
        offset=offset,
    )
    return [JournalEntryResponse.model_validate(e) for e in entries]


@router.post("/journal-entries", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry_data: JournalEntryCreate,
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    """
    Create a manual journal entry.

    Debits must equal credits and every account must exist (or be one of
    the auto-provisioned well-known codes).
    """
    try:
        entry = gl_service.create_journal_entry(
            db,
            entry_date=entry_data.entry_date,
            memo=entry_data.memo,
            entry_type=EntryType.MANUAL,
            lines_list=[line.model_dump() for line in entry_data.lines],
            reference_no=entry_data.reference_no,
            created_by=entry_data.created_by,
            notes=entry_data.notes,
        )
        return JournalEntryResponse.model_validate(entry)

    except LedgerError as e:
        logger.error(f"Could not create journal entry: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("creating journal entry", e)


@router.get("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
def get_journal_entry(
    entry_id: UUID,
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    try:
        return JournalEntryResponse.model_validate(gl_service.get_journal_entry(db, entry_id))
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.put("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
def update_journal_entry(
    entry_id: UUID,
    entry_data: JournalEntryUpdate,
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    """
    Edit a journal entry.

    Rejected when the entry is dated in a locked period or a receivable or
    payable references it; post an adjusting entry instead.
    """
    try:
        entry = gl_service.update_journal_entry(
            db,
            entry_id,
            entry_date=entry_data.entry_date,
            memo=entry_data.memo,
            lines_list=[line.model_dump() for line in entry_data.lines] if entry_data.lines else None,
            notes=entry_data.notes,
        )
        return JournalEntryResponse.model_validate(entry)

    except LedgerError as e:
        logger.error(f"Could not update journal entry {entry_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"updating journal entry {entry_id}", e)


@router.delete("/journal-entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_journal_entry(
    entry_id: UUID,
    db: Session = Depends(get_db),
) -> Response:
    """Delete a journal entry that no debt references and no lock covers."""
    try:
        gl_service.delete_journal_entry(db, entry_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except LedgerError as e:
        logger.error(f"Could not delete journal entry {entry_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"deleting journal entry {entry_id}", e)
