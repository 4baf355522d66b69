"""Reporting service for generating accounting reports.

Every report re-aggregates posted journal lines on each call; no running
balances are stored.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.models.accounting import (
    Account,
    JournalEntry,
    JournalLine,
)
from storeledger.domain.accounting.chart import get_account
from storeledger.domain.accounting.enums import (
    AccountType,
    EntryType,
    JournalStatus,
)
from storeledger.domain.accounting.gl_service import ZERO, to_amount

logger = logging.getLogger(__name__)

CREDIT_NATURE = {AccountType.LIABILITY, AccountType.EQUITY, AccountType.REVENUE}

# P&L lines keyed by account code prefix
PNL_REVENUE_GROUPS = [("511", "net_revenue")]
PNL_EXPENSE_GROUPS = [
    ("632", "cost_of_goods_sold"),
    ("641", "selling_expenses"),
    ("642", "admin_expenses"),
    ("635", "financial_expenses"),
]


def nature_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Asset/expense: debit - credit; liability/equity/revenue: credit - debit."""
    if account_type in CREDIT_NATURE:
        return credit - debit
    return debit - credit


def _sum_by_account(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
    exclude_types: List[EntryType] | None = None,
) -> List[Any]:
    query = (
        db.query(
            JournalLine.account_code,
            func.sum(JournalLine.debit).label("total_debit"),
            func.sum(JournalLine.credit).label("total_credit"),
        )
        .join(JournalEntry, JournalEntry.id == JournalLine.journal_entry_id)
        .filter(JournalEntry.status == JournalStatus.POSTED)
    )
    if date_from:
        query = query.filter(JournalEntry.entry_date >= date_from)
    if date_to:
        query = query.filter(JournalEntry.entry_date <= date_to)
    if exclude_types:
        query = query.filter(JournalEntry.entry_type.notin_(exclude_types))
    return query.group_by(JournalLine.account_code).order_by(JournalLine.account_code).all()


def _accounts_by_code(db: Session) -> Dict[str, Account]:
    return {account.code: account for account in db.query(Account).all()}


def get_trial_balance(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
) -> Dict[str, Any]:
    """
    Generate a trial balance.

    Args:
        db: Database session
        date_from: Optional start date
        date_to: Optional end date

    Returns:
        Dict with one row per account code (sorted by code) and totals
    """
    accounts = _accounts_by_code(db)
    rows = []
    total_debit = ZERO
    total_credit = ZERO

    for row in _sum_by_account(db, date_from, date_to):
        debit = to_amount(row.total_debit)
        credit = to_amount(row.total_credit)
        account = accounts.get(row.account_code)
        total_debit += debit
        total_credit += credit
        rows.append({
            "code": row.account_code,
            "name": account.name if account else None,
            "account_type": account.account_type.value if account else None,
            "total_debit": debit,
            "total_credit": credit,
            "balance": debit - credit,
        })

    return {
        "date_from": date_from,
        "date_to": date_to,
        "accounts": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "is_balanced": abs(total_debit - total_credit) <= get_settings().get_balance_tolerance(),
    }


def get_account_ledger(
    db: Session,
    code: str,
    date_from: date | None = None,
    date_to: date | None = None,
) -> Dict[str, Any]:
    """
    Replay one account's lines chronologically with a running balance.

    The running balance always increases with debits and decreases with
    credits, whatever the account nature.
    """
    account = get_account(db, code)

    query = (
        db.query(JournalLine, JournalEntry)
        .join(JournalEntry, JournalEntry.id == JournalLine.journal_entry_id)
        .filter(
            JournalLine.account_code == code,
            JournalEntry.status == JournalStatus.POSTED,
        )
    )
    if date_from:
        query = query.filter(JournalEntry.entry_date >= date_from)
    if date_to:
        query = query.filter(JournalEntry.entry_date <= date_to)
    query = query.order_by(JournalEntry.entry_date, JournalEntry.created_at, JournalLine.line_no)

    balance = ZERO
    total_debit = ZERO
    total_credit = ZERO
    lines = []
    for line, entry in query.all():
        debit = to_amount(line.debit)
        credit = to_amount(line.credit)
        balance += debit - credit
        total_debit += debit
        total_credit += credit
        lines.append({
            "entry_id": entry.id,
            "reference_no": entry.reference_no,
            "entry_date": entry.entry_date,
            "entry_type": entry.entry_type.value,
            "description": line.description or entry.memo,
            "debit": debit,
            "credit": credit,
            "balance": balance,
        })

    return {
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type.value,
        "date_from": date_from,
        "date_to": date_to,
        "lines": lines,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "ending_balance": balance,
    }


def get_balance_sheet(db: Session, as_of: date | None = None) -> Dict[str, Any]:
    """
    Generate a balance sheet as of a date.

    Balances are cumulative and nature-aware. Current-period earnings are
    recomputed from revenue and expense balances, so the sheet balances
    whether or not the period has been closed.

    Returns:
        Dict with assets/liabilities/equity sections, current earnings and
        a balance check
    """
    as_of = as_of or date.today()
    accounts = _accounts_by_code(db)

    sections: Dict[AccountType, Dict[str, Any]] = {
        t: {"name": t.value, "accounts": [], "total": ZERO}
        for t in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY)
    }
    total_revenue = ZERO
    total_expense = ZERO

    for row in _sum_by_account(db, date_to=as_of):
        account = accounts.get(row.account_code)
        if not account:
            logger.warning(f"Journal lines reference unknown account {row.account_code}")
            continue

        balance = nature_balance(account.account_type, to_amount(row.total_debit), to_amount(row.total_credit))
        if account.account_type == AccountType.REVENUE:
            total_revenue += balance
        elif account.account_type == AccountType.EXPENSE:
            total_expense += balance
        elif balance != 0:
            section = sections[account.account_type]
            section["accounts"].append({"code": account.code, "name": account.name, "balance": balance})
            section["total"] += balance

    current_earnings = total_revenue - total_expense
    total_assets = sections[AccountType.ASSET]["total"]
    total_liabilities = sections[AccountType.LIABILITY]["total"]
    total_equity = sections[AccountType.EQUITY]["total"] + current_earnings
    difference = total_assets - (total_liabilities + total_equity)

    if difference != 0:
        logger.warning(f"Balance sheet as of {as_of} is off by {difference}")

    return {
        "as_of": as_of,
        "assets": sections[AccountType.ASSET],
        "liabilities": sections[AccountType.LIABILITY],
        "equity": sections[AccountType.EQUITY],
        "current_earnings": current_earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "difference": difference,
        "is_balanced": abs(difference) <= get_settings().get_balance_tolerance(),
    }


def _pnl_group(code: str, groups: List[tuple[str, str]], fallback: str) -> str:
    for prefix, name in groups:
        if code.startswith(prefix):
            return name
    return fallback


def get_profit_and_loss(db: Session, date_from: date, date_to: date) -> Dict[str, Any]:
    """
    Generate a Profit & Loss report.

    Closing entries are left out so a closed period still reports its
    results.

    Returns:
        Dict with revenue/expense lines, profit subtotals, flat-rate tax
        and net profit
    """
    accounts = _accounts_by_code(db)
    amounts = {
        "net_revenue": ZERO,
        "other_income": ZERO,
        "cost_of_goods_sold": ZERO,
        "selling_expenses": ZERO,
        "admin_expenses": ZERO,
        "financial_expenses": ZERO,
        "other_expenses": ZERO,
    }
    details = []

    rows = _sum_by_account(db, date_from, date_to, exclude_types=[EntryType.CLOSING])
    for row in rows:
        account = accounts.get(row.account_code)
        if not account or account.account_type not in (AccountType.REVENUE, AccountType.EXPENSE):
            continue

        amount = nature_balance(account.account_type, to_amount(row.total_debit), to_amount(row.total_credit))
        if account.account_type == AccountType.REVENUE:
            group = _pnl_group(account.code, PNL_REVENUE_GROUPS, "other_income")
        else:
            group = _pnl_group(account.code, PNL_EXPENSE_GROUPS, "other_expenses")
        amounts[group] += amount
        details.append({
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type.value,
            "group": group,
            "amount": amount,
        })

    gross_profit = amounts["net_revenue"] - amounts["cost_of_goods_sold"]
    operating_profit = gross_profit - (
        amounts["selling_expenses"] + amounts["admin_expenses"] + amounts["financial_expenses"]
    )
    profit_before_tax = operating_profit + amounts["other_income"] - amounts["other_expenses"]
    income_tax = to_amount(max(ZERO, profit_before_tax * get_settings().get_tax_rate()))
    net_profit = profit_before_tax - income_tax

    return {
        "date_from": date_from,
        "date_to": date_to,
        **amounts,
        "gross_profit": gross_profit,
        "operating_profit": operating_profit,
        "profit_before_tax": profit_before_tax,
        "income_tax": income_tax,
        "net_profit": net_profit,
        "accounts": details,
    }
