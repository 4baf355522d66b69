"""Receivable/Payable ledger: debt records, payments and aging."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Type
from uuid import UUID

from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.db.session import unit_of_work
from storeledger.models.accounting import (
    JournalEntry,
    JournalLine,
    Partner,
    Receivable,
    Payable,
)
from storeledger.domain.accounting import chart
from storeledger.domain.accounting.enums import (
    BillType,
    DebtKind,
    EntryType,
    PartnerKind,
    PaymentStatus,
    SourceType,
)
from storeledger.domain.accounting.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)
from storeledger.domain.accounting.gl_service import (
    ZERO,
    create_journal_entry,
    get_journal_entry,
    to_amount,
)
from storeledger.domain.accounting.partner_service import PartnerDirectory
from storeledger.services.notifications.publisher import EventPublisher, NullEventPublisher

logger = logging.getLogger(__name__)

AGING_BUCKETS = ["current", "1-30", "31-60", "61-90", "90+"]

DebtRecord = Receivable | Payable


@dataclass
class PaymentApplication:
    debt: DebtRecord
    applied_amount: Decimal
    journal_entry: JournalEntry | None = None


def _model_for(kind: DebtKind) -> Type[Receivable] | Type[Payable]:
    return Receivable if kind == DebtKind.RECEIVABLE else Payable


def _kind_of(debt: DebtRecord) -> DebtKind:
    return DebtKind.RECEIVABLE if isinstance(debt, Receivable) else DebtKind.PAYABLE


def derive_payment_status(original: Decimal, remaining: Decimal) -> PaymentStatus:
    """unpaid if nothing was paid, paid if nothing remains, partial otherwise."""
    if remaining <= 0:
        return PaymentStatus.PAID
    if remaining >= original:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def create_receivable(
    db: Session,
    journal_entry: JournalEntry,
    partner: Partner,
    amount: Decimal,
    due_date: date | None,
    invoice_date: date | None = None,
    order_id: str | None = None,
    description: str | None = None,
) -> Receivable:
    """Open a receivable for a posted entry. Flushes; the caller commits."""
    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Receivable amount must be positive", entry_id=journal_entry.id)

    receivable = Receivable(
        journal_entry_id=journal_entry.id,
        partner_id=partner.id,
        order_id=order_id,
        original_amount=amount,
        remaining_amount=amount,
        payment_status=PaymentStatus.UNPAID,
        invoice_date=invoice_date or journal_entry.entry_date,
        due_date=due_date,
        description=description,
    )
    db.add(receivable)
    db.flush()
    logger.info(f"Opened receivable {receivable.id} for {amount} due {due_date}")
    return receivable


def create_payable(
    db: Session,
    journal_entry: JournalEntry,
    partner: Partner,
    amount: Decimal,
    due_date: date | None,
    invoice_date: date | None = None,
    bill_type: BillType = BillType.EXPENSE,
    description: str | None = None,
) -> Payable:
    """Open a payable for a posted entry. Flushes; the caller commits."""
    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Payable amount must be positive", entry_id=journal_entry.id)

    payable = Payable(
        journal_entry_id=journal_entry.id,
        partner_id=partner.id,
        bill_type=bill_type,
        original_amount=amount,
        remaining_amount=amount,
        payment_status=PaymentStatus.UNPAID,
        invoice_date=invoice_date or journal_entry.entry_date,
        due_date=due_date,
        description=description,
    )
    db.add(payable)
    db.flush()
    logger.info(f"Opened payable {payable.id} ({bill_type.value}) for {amount} due {due_date}")
    return payable


def get_debt(db: Session, kind: DebtKind, debt_id: UUID) -> DebtRecord:
    model = _model_for(kind)
    debt = db.query(model).filter(model.id == debt_id).first()
    if not debt:
        raise NotFoundError(f"{kind.value.capitalize()} {debt_id} not found", debt_id=debt_id)
    return debt


def get_receivable(db: Session, receivable_id: UUID) -> Receivable:
    return get_debt(db, DebtKind.RECEIVABLE, receivable_id)


def get_payable(db: Session, payable_id: UUID) -> Payable:
    return get_debt(db, DebtKind.PAYABLE, payable_id)


def list_debts(
    db: Session,
    kind: DebtKind,
    partner_id: UUID | None = None,
    payment_status: PaymentStatus | None = None,
) -> List[DebtRecord]:
    model = _model_for(kind)
    query = db.query(model)
    if partner_id:
        query = query.filter(model.partner_id == partner_id)
    if payment_status:
        query = query.filter(model.payment_status == payment_status)
    return query.order_by(model.due_date, model.created_at).all()


def list_receivables(db: Session, **filters) -> List[Receivable]:
    return list_debts(db, DebtKind.RECEIVABLE, **filters)


def list_payables(db: Session, **filters) -> List[Payable]:
    return list_debts(db, DebtKind.PAYABLE, **filters)


CONTROL_ACCOUNTS = {
    DebtKind.RECEIVABLE: (chart.RECEIVABLE, PartnerKind.CUSTOMER),
    DebtKind.PAYABLE: (chart.PAYABLE, PartnerKind.SUPPLIER),
}


@dataclass
class DebtSyncResult:
    created: List[DebtRecord]
    skipped: int = 0


def _control_amount(entry: JournalEntry, kind: DebtKind) -> tuple[Decimal, UUID | None]:
    """Amount booked on 131 (debit) or 331 (credit), with the first line's partner."""
    account_code, _ = CONTROL_ACCOUNTS[kind]
    amount = ZERO
    partner_id = None
    for line in entry.lines:
        if line.account_code != account_code:
            continue
        side = line.debit if kind == DebtKind.RECEIVABLE else line.credit
        if side > 0:
            amount += side
            partner_id = partner_id or line.partner_id
    return amount, partner_id


def open_debt_for_entry(
    db: Session,
    kind: DebtKind,
    entry_id: UUID,
    partner_id: UUID | None = None,
    amount: Decimal | None = None,
    due_date: date | None = None,
    description: str | None = None,
    bill_type: BillType = BillType.EXPENSE,
) -> DebtRecord:
    """
    Open a receivable or payable for an entry that was posted without one.

    The entry must debit 131 (receivable) or credit 331 (payable). The amount
    defaults to what the entry booked on that account and may not exceed it.
    Without an explicit partner, the partner on the control line is used,
    then the shared default partner of the direction. The due date defaults
    to the entry date plus the payment terms.

    Raises:
        NotFoundError: If the entry or partner does not exist
        ValidationError: If the entry books nothing on the control account,
            the amount is out of range, or the partner is of the wrong kind
        ConflictError: If a debt already references the entry
    """
    account_code, partner_kind = CONTROL_ACCOUNTS[kind]
    model = _model_for(kind)

    with unit_of_work(db):
        entry = get_journal_entry(db, entry_id)
        booked, line_partner_id = _control_amount(entry, kind)
        if booked <= 0:
            raise ValidationError(
                f"Journal entry {entry.reference_no} books nothing on {account_code}",
                entry_id=entry.id,
                account_code=account_code,
            )

        existing = db.query(model.id).filter(model.journal_entry_id == entry.id).first()
        if existing:
            raise ConflictError(
                f"A {kind.value} already exists for journal entry {entry.reference_no}",
                entry_id=entry.id,
                debt_id=existing[0],
            )

        amount = booked if amount is None else to_amount(amount)
        if amount <= 0 or amount > booked:
            raise ValidationError(
                f"Debt amount must be positive and at most {booked}",
                entry_id=entry.id,
                amount=amount,
            )

        partner_id = partner_id or line_partner_id
        if partner_id:
            partner = db.query(Partner).filter(Partner.id == partner_id).first()
            if not partner:
                raise NotFoundError(f"Partner {partner_id} not found", partner_id=partner_id)
            if partner.kind != partner_kind:
                raise ValidationError(
                    f"A {kind.value} needs a {partner_kind.value} partner",
                    partner_id=partner.id,
                )
        else:
            partner = PartnerDirectory(db).default_partner(partner_kind)

        due_date = due_date or entry.entry_date + timedelta(days=get_settings().default_payment_terms_days)
        description = description or entry.memo

        if kind == DebtKind.RECEIVABLE:
            order_id = entry.source_id if entry.source_type == SourceType.ORDER else None
            return create_receivable(
                db, entry, partner, amount, due_date,
                order_id=order_id, description=description,
            )
        return create_payable(
            db, entry, partner, amount, due_date,
            bill_type=bill_type, description=description,
        )


def sync_debts_from_ledger(db: Session, kind: DebtKind) -> DebtSyncResult:
    """
    Open debts for every posted entry that booked 131/331 without one.

    Entries that already carry a debt are counted as skipped, so running the
    sync repeatedly creates nothing new.
    """
    account_code, _ = CONTROL_ACCOUNTS[kind]
    model = _model_for(kind)
    side = JournalLine.debit if kind == DebtKind.RECEIVABLE else JournalLine.credit

    candidate_ids = [
        row[0] for row in db.query(JournalLine.journal_entry_id)
        .filter(JournalLine.account_code == account_code, side > 0)
        .distinct()
        .all()
    ]
    linked = {
        row[0] for row in db.query(model.journal_entry_id)
        .filter(model.journal_entry_id.in_(candidate_ids))
        .all()
    } if candidate_ids else set()

    result = DebtSyncResult(created=[])
    with unit_of_work(db):
        for entry_id in candidate_ids:
            if entry_id in linked:
                result.skipped += 1
                continue
            result.created.append(open_debt_for_entry(db, kind, entry_id))

    logger.info(
        f"Synced {kind.value}s from the ledger: {len(result.created)} created, "
        f"{result.skipped} already linked"
    )
    return result


def apply_payment(
    db: Session,
    debt: DebtRecord,
    amount: Decimal,
    payment_date: date | None = None,
    cash_account_code: str = chart.BANK,
    post_entry: bool = True,
    publisher: EventPublisher | None = None,
) -> PaymentApplication:
    """
    Apply a payment to a receivable or payable.

    remaining = max(0, remaining - amount); the status is re-derived. When
    post_entry is set a receipt (Dr cash / Cr 131) or payment
    (Dr 331 / Cr cash) entry is posted for the applied part of the amount.

    Args:
        db: Database session
        debt: Receivable or Payable
        amount: Amount paid
        payment_date: Entry date; defaults to today
        cash_account_code: Cash or bank account that moved
        post_entry: Post the matching journal entry
        publisher: Receives a "<kind>.payment_settled" event after commit

    Returns:
        PaymentApplication with the applied amount and the posted entry

    Raises:
        ValidationError: If the amount is not positive
        StateError: If the debt is already paid
    """
    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive", debt_id=debt.id)

    kind = _kind_of(debt)
    payment_date = payment_date or date.today()
    publisher = publisher or NullEventPublisher()

    with unit_of_work(db):
        if debt.payment_status == PaymentStatus.PAID or debt.remaining_amount <= 0:
            raise StateError(f"{kind.value.capitalize()} {debt.id} is already paid", debt_id=debt.id)

        remaining = to_amount(debt.remaining_amount)
        applied = min(amount, remaining)
        if amount > remaining:
            logger.warning(
                f"Payment {amount} exceeds remaining {remaining} on {kind.value} {debt.id}; "
                f"applying {applied}"
            )

        debt.remaining_amount = max(ZERO, remaining - amount)
        debt.payment_status = derive_payment_status(to_amount(debt.original_amount), debt.remaining_amount)

        journal_entry = None
        if post_entry:
            if kind == DebtKind.RECEIVABLE:
                debit_code, credit_code = cash_account_code, chart.RECEIVABLE
                entry_type, partner_kind = EntryType.RECEIPT, PartnerKind.CUSTOMER
            else:
                debit_code, credit_code = chart.PAYABLE, cash_account_code
                entry_type, partner_kind = EntryType.PAYMENT, PartnerKind.SUPPLIER

            description = f"Payment on {kind.value} {debt.id}"
            journal_entry = create_journal_entry(
                db=db,
                entry_date=payment_date,
                memo=description,
                entry_type=entry_type,
                lines_list=[
                    {
                        "account_code": debit_code,
                        "debit": applied,
                        "credit": ZERO,
                        "description": description,
                        "partner_id": debt.partner_id,
                        "partner_kind": partner_kind,
                    },
                    {
                        "account_code": credit_code,
                        "debit": ZERO,
                        "credit": applied,
                        "description": description,
                        "partner_id": debt.partner_id,
                        "partner_kind": partner_kind,
                    },
                ],
                source_type=SourceType.RECEIVABLE if kind == DebtKind.RECEIVABLE else SourceType.PAYABLE,
                source_id=str(debt.id),
            )
        db.flush()

    logger.info(
        f"Applied {applied} to {kind.value} {debt.id}: remaining={debt.remaining_amount} "
        f"status={debt.payment_status.value}"
    )

    publisher.publish(f"{kind.value}.payment_settled", {
        "debt_id": str(debt.id),
        "partner_id": str(debt.partner_id),
        "applied_amount": str(applied),
        "remaining_amount": str(debt.remaining_amount),
        "payment_status": debt.payment_status.value,
        "journal_entry_id": str(journal_entry.id) if journal_entry else None,
    })

    return PaymentApplication(debt=debt, applied_amount=applied, journal_entry=journal_entry)


def effective_due_date(debt: DebtRecord) -> date:
    """Due date, falling back to invoice date + terms, then creation date + terms."""
    if debt.due_date:
        return debt.due_date
    terms = timedelta(days=get_settings().default_payment_terms_days)
    if debt.invoice_date:
        return debt.invoice_date + terms
    return debt.created_at.date() + terms


def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "1-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


def aging_report(
    db: Session,
    kind: DebtKind = DebtKind.RECEIVABLE,
    as_of: date | None = None,
) -> Dict[str, Any]:
    """
    Bucket outstanding debt by days overdue.

    Returns:
        Dict with as_of, per-bucket totals, total outstanding and one row
        per open debt
    """
    as_of = as_of or date.today()
    model = _model_for(kind)
    debts = (
        db.query(model)
        .filter(model.payment_status != PaymentStatus.PAID, model.remaining_amount > 0)
        .order_by(model.due_date)
        .all()
    )

    buckets = {name: ZERO for name in AGING_BUCKETS}
    items = []
    for debt in debts:
        due = effective_due_date(debt)
        days_overdue = (as_of - due).days
        bucket = aging_bucket(days_overdue)
        remaining = to_amount(debt.remaining_amount)
        buckets[bucket] += remaining
        items.append({
            "id": debt.id,
            "partner_id": debt.partner_id,
            "partner_name": debt.partner.name if debt.partner else None,
            "due_date": due,
            "days_overdue": max(days_overdue, 0),
            "bucket": bucket,
            "original_amount": to_amount(debt.original_amount),
            "remaining_amount": remaining,
        })

    return {
        "kind": kind.value,
        "as_of": as_of,
        "buckets": buckets,
        "total": sum(buckets.values(), ZERO),
        "items": items,
    }


def settle_from_notification(
    db: Session,
    notification,
    matcher,
    publisher: EventPublisher | None = None,
) -> PaymentApplication:
    """
    Settle the receivable a payment-confirmation signal refers to.

    Args:
        db: Database session
        notification: PaymentNotification from the payment gateway
        matcher: PaymentMatcher strategy picking the receivable
        publisher: Event publisher for the settlement event

    Raises:
        NotFoundError: If no open receivable matches
    """
    receivable = matcher.match(db, notification)
    if not receivable:
        raise NotFoundError(
            "No open receivable matches the payment notification",
            reference=notification.reference,
            amount=notification.amount,
        )

    logger.info(
        f"Payment notification {notification.reference or notification.amount} matched "
        f"receivable {receivable.id}"
    )
    return apply_payment(
        db,
        receivable,
        notification.amount,
        payment_date=notification.received_at.date(),
        cash_account_code=chart.BANK,
        publisher=publisher,
    )
