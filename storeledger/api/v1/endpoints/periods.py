"""Accounting period API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import period_service
from storeledger.domain.accounting.enums import PeriodStatus
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.accounting import JournalEntryResponse
from storeledger.schemas.periods import (
    ClosePeriodRequest,
    ClosePeriodResponse,
    PeriodCreate,
    PeriodResponse,
)
from storeledger.services.notifications import EventPublisher, get_event_publisher

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/periods", response_model=List[PeriodResponse])
def list_periods(
    period_status: Optional[PeriodStatus] = None,
    db: Session = Depends(get_db),
) -> List[PeriodResponse]:
    return [PeriodResponse.model_validate(p) for p in period_service.list_periods(db, status=period_status)]


@router.post("/periods", response_model=PeriodResponse, status_code=status.HTTP_201_CREATED)
def create_period(
    period_data: PeriodCreate,
    db: Session = Depends(get_db),
) -> PeriodResponse:
    try:
        period = period_service.create_period(
            db,
            name=period_data.name,
            start_date=period_data.start_date,
            end_date=period_data.end_date,
            notes=period_data.notes,
        )
        return PeriodResponse.model_validate(period)

    except LedgerError as e:
        logger.error(f"Could not create period {period_data.name}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("creating period", e)


@router.post("/close-period", response_model=ClosePeriodResponse)
def close_period(
    request: ClosePeriodRequest,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> ClosePeriodResponse:
    """
    Close a period: zero revenue and expense into 911, roll the net result
    into 421 and lock every transaction dated up to the lock date.

    A period can only be closed once.
    """
    try:
        result = period_service.close_period(
            db,
            request.period_id,
            lock_date=request.lock_date,
            closed_by=request.closed_by,
        )
        publisher.publish("period.closed", {
            "period_id": str(result.period.id),
            "lock_date": str(result.period.lock_date),
            "net_profit": str(result.net_profit),
        })
        return ClosePeriodResponse(
            period=PeriodResponse.model_validate(result.period),
            total_revenue=result.total_revenue,
            total_expense=result.total_expense,
            net_profit=result.net_profit,
            entries=[JournalEntryResponse.model_validate(e) for e in result.entries],
        )

    except LedgerError as e:
        logger.error(f"Could not close period {request.period_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"closing period {request.period_id}", e)
