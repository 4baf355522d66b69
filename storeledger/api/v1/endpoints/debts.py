"""Receivable and payable API endpoints."""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import debt_service
from storeledger.domain.accounting.enums import DebtKind, PaymentStatus
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.accounting import JournalEntryResponse
from storeledger.schemas.debts import (
    AgingResponse,
    DebtCreate,
    PayableCreate,
    PayableResponse,
    PaymentCreate,
    PaymentNotificationIn,
    PaymentResponse,
    ReceivableResponse,
)
from storeledger.services.notifications import EventPublisher, get_event_publisher
from storeledger.services.payment_matching import PaymentNotification, default_matcher

logger = logging.getLogger(__name__)

router = APIRouter()


def _payment_response(application: debt_service.PaymentApplication) -> PaymentResponse:
    debt = application.debt
    return PaymentResponse(
        debt_id=debt.id,
        applied_amount=application.applied_amount,
        remaining_amount=debt.remaining_amount,
        payment_status=debt.payment_status,
        journal_entry=(
            JournalEntryResponse.model_validate(application.journal_entry)
            if application.journal_entry else None
        ),
    )


def _apply(
    db: Session,
    kind: DebtKind,
    debt_id: UUID,
    payment: PaymentCreate,
    publisher: EventPublisher,
) -> PaymentResponse:
    try:
        debt = debt_service.get_debt(db, kind, debt_id)
        application = debt_service.apply_payment(
            db,
            debt,
            payment.amount,
            payment_date=payment.payment_date,
            cash_account_code=payment.cash_account_code,
            post_entry=payment.post_entry,
            publisher=publisher,
        )
        return _payment_response(application)

    except LedgerError as e:
        logger.error(f"Could not apply payment to {kind.value} {debt_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"applying payment to {kind.value} {debt_id}", e)


def _open(db: Session, kind: DebtKind, debt_data: DebtCreate, **extra):
    try:
        return debt_service.open_debt_for_entry(
            db,
            kind,
            debt_data.journal_entry_id,
            partner_id=debt_data.partner_id,
            amount=debt_data.amount,
            due_date=debt_data.due_date,
            description=debt_data.description,
            **extra,
        )

    except LedgerError as e:
        logger.error(f"Could not open {kind.value} for entry {debt_data.journal_entry_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"opening {kind.value}", e)


@router.get("/receivables", response_model=List[ReceivableResponse])
def list_receivables(
    partner_id: Optional[UUID] = None,
    payment_status: Optional[PaymentStatus] = None,
    db: Session = Depends(get_db),
) -> List[ReceivableResponse]:
    receivables = debt_service.list_receivables(db, partner_id=partner_id, payment_status=payment_status)
    return [ReceivableResponse.model_validate(r) for r in receivables]


@router.post("/receivables", response_model=ReceivableResponse, status_code=status.HTTP_201_CREATED)
def create_receivable(
    debt_data: DebtCreate,
    db: Session = Depends(get_db),
) -> ReceivableResponse:
    """Open a receivable for an entry that debits 131 without one."""
    return ReceivableResponse.model_validate(_open(db, DebtKind.RECEIVABLE, debt_data))


@router.get("/receivables/aging", response_model=AgingResponse)
def receivables_aging(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
) -> AgingResponse:
    """Outstanding receivables bucketed by days overdue."""
    return AgingResponse(**debt_service.aging_report(db, DebtKind.RECEIVABLE, as_of))


@router.get("/receivables/{receivable_id}", response_model=ReceivableResponse)
def get_receivable(
    receivable_id: UUID,
    db: Session = Depends(get_db),
) -> ReceivableResponse:
    try:
        return ReceivableResponse.model_validate(debt_service.get_receivable(db, receivable_id))
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("/receivables/{receivable_id}/payments", response_model=PaymentResponse)
def pay_receivable(
    receivable_id: UUID,
    payment: PaymentCreate,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> PaymentResponse:
    """Record a customer payment: Dr cash / Cr 131."""
    return _apply(db, DebtKind.RECEIVABLE, receivable_id, payment, publisher)


@router.get("/payables", response_model=List[PayableResponse])
def list_payables(
    partner_id: Optional[UUID] = None,
    payment_status: Optional[PaymentStatus] = None,
    db: Session = Depends(get_db),
) -> List[PayableResponse]:
    payables = debt_service.list_payables(db, partner_id=partner_id, payment_status=payment_status)
    return [PayableResponse.model_validate(p) for p in payables]


@router.post("/payables", response_model=PayableResponse, status_code=status.HTTP_201_CREATED)
def create_payable(
    debt_data: PayableCreate,
    db: Session = Depends(get_db),
) -> PayableResponse:
    """Open a payable for an entry that credits 331 without one."""
    return PayableResponse.model_validate(
        _open(db, DebtKind.PAYABLE, debt_data, bill_type=debt_data.bill_type)
    )


@router.get("/payables/aging", response_model=AgingResponse)
def payables_aging(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
) -> AgingResponse:
    return AgingResponse(**debt_service.aging_report(db, DebtKind.PAYABLE, as_of))


@router.get("/payables/{payable_id}", response_model=PayableResponse)
def get_payable(
    payable_id: UUID,
    db: Session = Depends(get_db),
) -> PayableResponse:
    try:
        return PayableResponse.model_validate(debt_service.get_payable(db, payable_id))
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("/payables/{payable_id}/payments", response_model=PaymentResponse)
def pay_payable(
    payable_id: UUID,
    payment: PaymentCreate,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> PaymentResponse:
    """Record a supplier payment: Dr 331 / Cr cash."""
    return _apply(db, DebtKind.PAYABLE, payable_id, payment, publisher)


@router.post("/payment-notifications", response_model=PaymentResponse)
def payment_notification(
    notification_data: PaymentNotificationIn,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> PaymentResponse:
    """
    Settle a receivable from a payment confirmation.

    Matching is by exact reference; set allow_heuristic to fall back to
    the amount and time-window matcher.
    """
    notification = PaymentNotification(
        amount=notification_data.amount,
        received_at=notification_data.received_at or datetime.utcnow(),
        reference=notification_data.reference,
        description=notification_data.description,
    )
    try:
        application = debt_service.settle_from_notification(
            db,
            notification,
            default_matcher(allow_heuristic=notification_data.allow_heuristic),
            publisher=publisher,
        )
        return _payment_response(application)

    except LedgerError as e:
        logger.error(f"Could not settle payment notification: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("settling payment notification", e)
