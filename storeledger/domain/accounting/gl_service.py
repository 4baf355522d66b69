"""General Ledger service for journal entry operations."""

import logging
from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.db.session import unit_of_work
from storeledger.models.accounting import (
    JournalEntry,
    JournalLine,
    Receivable,
    Payable,
)
from storeledger.domain.accounting.chart import ensure_account
from storeledger.domain.accounting.enums import (
    EntryType,
    SourceType,
    JournalStatus,
)
from storeledger.domain.accounting.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Entries the posting engines own are corrected with adjusting entries
EDITABLE_ENTRY_TYPES = frozenset({
    EntryType.MANUAL,
    EntryType.TRANSFER,
    EntryType.ADJUSTING,
})

REFERENCE_PREFIXES = {
    EntryType.SALE: "SO",
    EntryType.COGS: "COGS",
    EntryType.DEPRECIATION: "DEP",
    EntryType.MANUAL: "JE",
    EntryType.TRANSFER: "TF",
    EntryType.ADJUSTING: "ADJ",
    EntryType.CLOSING: "CLS",
    EntryType.RECEIPT: "RC",
    EntryType.PAYMENT: "PM",
    EntryType.PURCHASE: "FA",
}


def to_amount(value: Any) -> Decimal:
    """Convert a number to a 2-decimal Decimal."""
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_reference_no(entry_type: EntryType, entry_date: date | None = None) -> str:
    """Build a reference number like ``JE-202501-3FA2C1``."""
    entry_date = entry_date or date.today()
    prefix = REFERENCE_PREFIXES.get(entry_type, "JE")
    return f"{prefix}-{entry_date:%Y%m}-{uuid4().hex[:6].upper()}"


def validate_lines(lines_list: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Normalize journal lines and check the double-entry invariant.

    Args:
        lines_list: List of line dictionaries with:
            - account_code: str
            - debit: Decimal, float or str
            - credit: Decimal, float or str
            - description: Optional string
            - partner_id / partner_kind: Optional counterparty

    Returns:
        Normalized line dictionaries with Decimal amounts

    Raises:
        ValidationError: If the lines are fewer than two, carry negative or
            empty amounts, or debits don't equal credits
    """
    if not lines_list or len(lines_list) < 2:
        raise ValidationError("A journal entry needs at least 2 lines")

    normalized = []
    for index, line in enumerate(lines_list):
        account_code = str(line.get("account_code") or "").strip()
        if not account_code:
            raise ValidationError(f"Line {index + 1} has no account code", line=index + 1)

        debit = to_amount(line.get("debit"))
        credit = to_amount(line.get("credit"))
        if debit < 0 or credit < 0:
            raise ValidationError(
                f"Line {index + 1} has a negative amount",
                line=index + 1,
                account_code=account_code,
            )
        if debit == 0 and credit == 0:
            raise ValidationError(
                f"Line {index + 1} has neither a debit nor a credit",
                line=index + 1,
                account_code=account_code,
            )
        if debit > 0 and credit > 0:
            raise ValidationError(
                f"Line {index + 1} has both a debit and a credit",
                line=index + 1,
                account_code=account_code,
            )

        normalized.append({
            "account_code": account_code,
            "debit": debit,
            "credit": credit,
            "description": line.get("description"),
            "partner_id": line.get("partner_id"),
            "partner_kind": line.get("partner_kind"),
        })

    total_debit = sum((line["debit"] for line in normalized), ZERO)
    total_credit = sum((line["credit"] for line in normalized), ZERO)
    tolerance = get_settings().get_balance_tolerance()

    if abs(total_debit - total_credit) > tolerance:
        raise ValidationError(
            f"Journal entry is not balanced: debits={total_debit}, credits={total_credit}",
            total_debit=total_debit,
            total_credit=total_credit,
        )

    return normalized


def _resolve_line_accounts(db: Session, lines: List[Dict[str, Any]]) -> None:
    for line in lines:
        account = ensure_account(db, line["account_code"])
        if not account.is_active:
            raise ValidationError(
                f"Account {account.code} is inactive",
                account_code=account.code,
            )


def _build_lines(lines: List[Dict[str, Any]]) -> List[JournalLine]:
    return [
        JournalLine(
            line_no=index,
            account_code=line["account_code"],
            debit=line["debit"],
            credit=line["credit"],
            description=line["description"],
            partner_id=line["partner_id"],
            partner_kind=line["partner_kind"],
        )
        for index, line in enumerate(lines)
    ]


def create_journal_entry(
    db: Session,
    entry_date: date,
    memo: str | None,
    entry_type: EntryType,
    lines_list: List[Dict[str, Any]],
    reference_no: str | None = None,
    source_type: SourceType | None = None,
    source_id: str | None = None,
    adjusted_date: date | None = None,
    created_by: str | None = None,
    notes: str | None = None,
) -> JournalEntry:
    """
    Create a posted journal entry with lines.

    Runs inside the caller's unit of work when there is one, so a posting
    and the records created alongside it commit together.

    Args:
        db: Database session
        entry_date: Transaction date
        memo: Entry description
        entry_type: Business event tag
        lines_list: Line dictionaries, see validate_lines
        reference_no: Unique reference; generated when omitted
        source_type: Kind of the triggering business object
        source_id: ID of the triggering business object
        adjusted_date: Date of the error an adjusting entry corrects

    Returns:
        Created JournalEntry instance

    Raises:
        ValidationError: If the lines are invalid or reference unknown accounts
        ConflictError: If the reference number is already used
        StateError: If the entry date falls in a locked period
    """
    from storeledger.domain.accounting.period_service import assert_not_locked

    lines = validate_lines(lines_list)

    with unit_of_work(db):
        # Closing entries are dated inside the period being locked
        if entry_type != EntryType.CLOSING:
            assert_not_locked(db, entry_date)

        _resolve_line_accounts(db, lines)

        reference_no = reference_no or generate_reference_no(entry_type, entry_date)
        if find_entry_by_reference(db, reference_no):
            raise ConflictError(
                f"Reference number {reference_no} already exists",
                reference_no=reference_no,
            )

        journal_entry = JournalEntry(
            reference_no=reference_no,
            entry_date=entry_date,
            memo=memo,
            entry_type=entry_type,
            source_type=source_type,
            source_id=str(source_id) if source_id is not None else None,
            adjusted_date=adjusted_date,
            status=JournalStatus.POSTED,
            posted_at=datetime.utcnow(),
            created_by=created_by,
            notes=notes,
        )
        journal_entry.lines = _build_lines(lines)
        db.add(journal_entry)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(
                f"Reference number {reference_no} already exists",
                reference_no=reference_no,
            )

    logger.info(
        f"Posted journal entry {journal_entry.reference_no} ({entry_type.value}) "
        f"source={source_type.value if source_type else None}:{source_id} with {len(lines)} lines"
    )

    return journal_entry


def get_journal_entry(db: Session, entry_id: UUID) -> JournalEntry:
    entry = db.query(JournalEntry).filter(JournalEntry.id == entry_id).first()
    if not entry:
        raise NotFoundError(f"Journal entry {entry_id} not found", entry_id=entry_id)
    return entry


def find_entry_by_reference(db: Session, reference_no: str) -> JournalEntry | None:
    return db.query(JournalEntry).filter(JournalEntry.reference_no == reference_no).first()


def find_entry_by_source(
    db: Session,
    source_type: SourceType,
    source_id: str,
    entry_type: EntryType | None = None,
    account_code: str | None = None,
) -> JournalEntry | None:
    """
    Find a posted entry by its back-reference.

    Args:
        db: Database session
        source_type: Kind of the business object
        source_id: ID of the business object
        entry_type: Optional entry type filter
        account_code: Only match entries that have a line on this account

    Returns:
        The oldest matching JournalEntry or None
    """
    query = db.query(JournalEntry).filter(
        JournalEntry.source_type == source_type,
        JournalEntry.source_id == str(source_id),
        JournalEntry.status == JournalStatus.POSTED,
    )
    if entry_type:
        query = query.filter(JournalEntry.entry_type == entry_type)
    if account_code:
        query = query.filter(JournalEntry.lines.any(JournalLine.account_code == account_code))
    return query.order_by(JournalEntry.created_at).first()


def list_journal_entries(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
    entry_type: EntryType | None = None,
    account_code: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> List[JournalEntry]:
    query = db.query(JournalEntry)
    if date_from:
        query = query.filter(JournalEntry.entry_date >= date_from)
    if date_to:
        query = query.filter(JournalEntry.entry_date <= date_to)
    if entry_type:
        query = query.filter(JournalEntry.entry_type == entry_type)
    if account_code:
        query = query.filter(JournalEntry.lines.any(JournalLine.account_code == account_code))
    return (
        query.order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def assert_no_dependent_debts(db: Session, entry: JournalEntry) -> None:
    """Raise StateError while a receivable or payable references the entry."""
    receivable = db.query(Receivable.id).filter(Receivable.journal_entry_id == entry.id).first()
    payable = db.query(Payable.id).filter(Payable.journal_entry_id == entry.id).first()
    if receivable or payable:
        raise StateError(
            f"Journal entry {entry.reference_no} is referenced by a receivable or payable",
            entry_id=entry.id,
            receivable_id=receivable[0] if receivable else None,
            payable_id=payable[0] if payable else None,
        )


def assert_editable(entry: JournalEntry) -> None:
    """Raise StateError for entries posted by sales, depreciation, payments or closing."""
    if entry.entry_type not in EDITABLE_ENTRY_TYPES:
        raise StateError(
            f"Journal entry {entry.reference_no} is a {entry.entry_type.value} posting; "
            "correct it with an adjusting entry",
            entry_id=entry.id,
            entry_type=entry.entry_type.value,
        )


def update_journal_entry(
    db: Session,
    entry_id: UUID,
    entry_date: date | None = None,
    memo: str | None = None,
    lines_list: List[Dict[str, Any]] | None = None,
    notes: str | None = None,
) -> JournalEntry:
    """
    Edit an entry in place.

    Raises:
        StateError: If the old or new date is locked, the entry was posted by
            an engine rather than by hand, or a debt references the entry
        ValidationError: If the new lines are invalid
    """
    from storeledger.domain.accounting.period_service import assert_not_locked

    with unit_of_work(db):
        entry = get_journal_entry(db, entry_id)
        assert_not_locked(db, entry.entry_date)
        if entry_date:
            assert_not_locked(db, entry_date)
        assert_editable(entry)
        assert_no_dependent_debts(db, entry)

        if lines_list is not None:
            lines = validate_lines(lines_list)
            _resolve_line_accounts(db, lines)
            entry.lines.clear()
            db.flush()
            entry.lines.extend(_build_lines(lines))

        if entry_date:
            entry.entry_date = entry_date
        if memo is not None:
            entry.memo = memo
        if notes is not None:
            entry.notes = notes
        db.flush()

    logger.info(f"Updated journal entry {entry.reference_no}")
    return entry


def delete_journal_entry(db: Session, entry_id: UUID) -> None:
    """
    Delete an entry and its lines.

    Raises:
        StateError: If the entry date is locked, the entry is not a manual,
            transfer or adjusting entry, or a debt references the entry
    """
    from storeledger.domain.accounting.period_service import assert_not_locked

    with unit_of_work(db):
        entry = get_journal_entry(db, entry_id)
        assert_not_locked(db, entry.entry_date)
        assert_editable(entry)
        assert_no_dependent_debts(db, entry)
        reference_no = entry.reference_no
        db.delete(entry)
        db.flush()

    logger.info(f"Deleted journal entry {reference_no}")
