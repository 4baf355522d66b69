"""Accounting period closing and lock-date enforcement."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import List, Dict, Any
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from storeledger.db.session import unit_of_work
from storeledger.models.accounting import (
    Account,
    AccountingPeriod,
    JournalEntry,
    JournalLine,
)
from storeledger.domain.accounting.chart import INCOME_SUMMARY, RETAINED_EARNINGS
from storeledger.domain.accounting.enums import (
    AccountType,
    EntryType,
    SourceType,
    JournalStatus,
    PeriodStatus,
)
from storeledger.domain.accounting.exceptions import (
    ValidationError,
    NotFoundError,
    StateError,
)
from storeledger.domain.accounting.gl_service import (
    ZERO,
    create_journal_entry,
    to_amount,
)

logger = logging.getLogger(__name__)


@dataclass
class ClosingResult:
    period: AccountingPeriod
    total_revenue: Decimal
    total_expense: Decimal
    net_profit: Decimal
    entries: List[JournalEntry] = field(default_factory=list)


def create_period(
    db: Session,
    name: str,
    start_date: date,
    end_date: date,
    notes: str | None = None,
) -> AccountingPeriod:
    if not (name or "").strip():
        raise ValidationError("Period name is required")
    if end_date < start_date:
        raise ValidationError(
            "Period end date is before its start date",
            start_date=start_date,
            end_date=end_date,
        )

    with unit_of_work(db):
        period = AccountingPeriod(
            name=name.strip(),
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus.OPEN,
            notes=notes,
        )
        db.add(period)
        db.flush()

    logger.info(f"Created accounting period {period.name} ({start_date} - {end_date})")
    return period


def get_period(db: Session, period_id: UUID) -> AccountingPeriod:
    period = db.query(AccountingPeriod).filter(AccountingPeriod.id == period_id).first()
    if not period:
        raise NotFoundError(f"Accounting period {period_id} not found", period_id=period_id)
    return period


def list_periods(db: Session, status: PeriodStatus | None = None) -> List[AccountingPeriod]:
    query = db.query(AccountingPeriod)
    if status:
        query = query.filter(AccountingPeriod.status == status)
    return query.order_by(AccountingPeriod.start_date.desc()).all()


def find_locking_period(db: Session, txn_date: date) -> AccountingPeriod | None:
    """Return a closed period whose lock date covers the given date, if any."""
    return (
        db.query(AccountingPeriod)
        .filter(
            AccountingPeriod.status == PeriodStatus.CLOSED,
            AccountingPeriod.lock_date.isnot(None),
            AccountingPeriod.lock_date >= txn_date,
        )
        .order_by(AccountingPeriod.lock_date.desc())
        .first()
    )


def assert_not_locked(db: Session, txn_date: date) -> None:
    """
    Reject mutations of transactions dated on or before a closed period's lock date.

    Raises:
        StateError: If the date is locked
    """
    period = find_locking_period(db, txn_date)
    if period:
        raise StateError(
            f"Transactions dated {txn_date} are locked by closed period {period.name} "
            f"(lock date {period.lock_date})",
            period_id=period.id,
            txn_date=txn_date,
            lock_date=period.lock_date,
        )


def _net_by_account(
    db: Session,
    account_type: AccountType,
    start_date: date,
    end_date: date,
) -> List[Dict[str, Any]]:
    """Net balance per account of one type within a date range, nature-aware."""
    rows = (
        db.query(
            JournalLine.account_code,
            func.sum(JournalLine.debit).label("total_debit"),
            func.sum(JournalLine.credit).label("total_credit"),
        )
        .join(JournalEntry, JournalEntry.id == JournalLine.journal_entry_id)
        .join(Account, Account.code == JournalLine.account_code)
        .filter(
            JournalEntry.status == JournalStatus.POSTED,
            JournalEntry.entry_date >= start_date,
            JournalEntry.entry_date <= end_date,
            Account.account_type == account_type,
        )
        .group_by(JournalLine.account_code)
        .order_by(JournalLine.account_code)
        .all()
    )

    balances = []
    for row in rows:
        debit = to_amount(row.total_debit)
        credit = to_amount(row.total_credit)
        net = credit - debit if account_type == AccountType.REVENUE else debit - credit
        if net != 0:
            balances.append({"account_code": row.account_code, "amount": net})
    return balances


def _closing_lines(
    balances: List[Dict[str, Any]],
    account_type: AccountType,
    description: str,
) -> List[Dict[str, Any]]:
    """
    Build the lines that zero a set of temporary accounts against income summary.

    Revenue balances are removed with debits, expense balances with credits;
    negative balances flip side.
    """
    lines = []
    total = ZERO
    for balance in balances:
        amount = balance["amount"]
        total += amount
        debit_side = (amount > 0) == (account_type == AccountType.REVENUE)
        lines.append({
            "account_code": balance["account_code"],
            "debit": abs(amount) if debit_side else ZERO,
            "credit": ZERO if debit_side else abs(amount),
            "description": description,
        })

    if total != 0:
        summary_credit = (total > 0) == (account_type == AccountType.REVENUE)
        lines.append({
            "account_code": INCOME_SUMMARY,
            "debit": ZERO if summary_credit else abs(total),
            "credit": abs(total) if summary_credit else ZERO,
            "description": description,
        })
    return lines


def close_period(
    db: Session,
    period_id: UUID,
    lock_date: date | None = None,
    closed_by: str | None = None,
) -> ClosingResult:
    """
    Close an accounting period.

    Steps:
    1. Atomically flip the period from open to closed (check-and-set)
    2. Close revenue accounts into income summary (911)
    3. Close expense accounts into income summary (911)
    4. Roll net profit/loss from income summary into retained earnings (421)

    Closing entries are dated at the period end and carry references derived
    from the period id, so a repeated attempt cannot post them twice.

    Args:
        db: Database session
        period_id: AccountingPeriod UUID
        lock_date: Lock date; defaults to the period end date
        closed_by: User closing the period

    Returns:
        ClosingResult with totals and the posted entries

    Raises:
        NotFoundError: If the period does not exist
        StateError: If the period is already closed
    """
    with unit_of_work(db):
        period = get_period(db, period_id)
        lock_date = lock_date or period.end_date
        if lock_date < period.start_date:
            raise ValidationError(
                "Lock date is before the period start date",
                period_id=period.id,
                lock_date=lock_date,
            )

        result = db.execute(
            update(AccountingPeriod)
            .where(
                AccountingPeriod.id == period.id,
                AccountingPeriod.status == PeriodStatus.OPEN,
            )
            .values(
                status=PeriodStatus.CLOSED,
                lock_date=lock_date,
                closed_by=closed_by,
                closed_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StateError(f"Period {period.name} is already closed", period_id=period.id)
        db.refresh(period)

        revenue = _net_by_account(db, AccountType.REVENUE, period.start_date, period.end_date)
        expense = _net_by_account(db, AccountType.EXPENSE, period.start_date, period.end_date)
        total_revenue = sum((b["amount"] for b in revenue), ZERO)
        total_expense = sum((b["amount"] for b in expense), ZERO)
        net_profit = total_revenue - total_expense

        entries = []
        steps = [
            ("REV", f"Close revenue accounts for {period.name}",
             _closing_lines(revenue, AccountType.REVENUE, f"Close revenue - {period.name}")),
            ("EXP", f"Close expense accounts for {period.name}",
             _closing_lines(expense, AccountType.EXPENSE, f"Close expenses - {period.name}")),
        ]
        if net_profit != 0:
            profit = net_profit > 0
            description = f"Transfer {'profit' if profit else 'loss'} - {period.name}"
            steps.append(("NET", f"Transfer net result for {period.name}", [
                {
                    "account_code": INCOME_SUMMARY if profit else RETAINED_EARNINGS,
                    "debit": abs(net_profit),
                    "credit": ZERO,
                    "description": description,
                },
                {
                    "account_code": RETAINED_EARNINGS if profit else INCOME_SUMMARY,
                    "debit": ZERO,
                    "credit": abs(net_profit),
                    "description": description,
                },
            ]))

        for tag, memo, lines in steps:
            if len(lines) < 2:
                continue
            entries.append(create_journal_entry(
                db=db,
                entry_date=period.end_date,
                memo=memo,
                entry_type=EntryType.CLOSING,
                lines_list=lines,
                reference_no=f"CLS-{tag}-{period.id}",
                source_type=SourceType.PERIOD,
                source_id=str(period.id),
                created_by=closed_by,
            ))

    logger.info(
        f"Closed period {period.name}: revenue={total_revenue} expense={total_expense} "
        f"net={net_profit} entries={len(entries)}"
    )

    return ClosingResult(
        period=period,
        total_revenue=total_revenue,
        total_expense=total_expense,
        net_profit=net_profit,
        entries=entries,
    )
