"""Reporting schemas for accounting reports."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


# Trial Balance Schemas
class TrialBalanceRow(BaseModel):
    """One account in the trial balance."""
    code: str
    name: Optional[str] = None
    account_type: Optional[str] = None
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


class TrialBalanceResponse(BaseModel):
    """Trial balance response."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    accounts: List[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


# Account Ledger Schemas
class AccountLedgerLine(BaseModel):
    """A line in an account ledger, with running balance."""
    entry_id: UUID
    reference_no: str
    entry_date: date
    entry_type: str
    description: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal


class AccountLedgerResponse(BaseModel):
    """Account ledger response."""
    code: str
    name: str
    account_type: str
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    lines: List[AccountLedgerLine]
    total_debit: Decimal
    total_credit: Decimal
    ending_balance: Decimal


# Balance Sheet Schemas
class BalanceSheetAccount(BaseModel):
    """A single account in balance sheet."""
    code: str
    name: str
    balance: Decimal


class BalanceSheetSection(BaseModel):
    """A section in balance sheet (Assets, Liabilities, Equity)."""
    name: str
    total: Decimal
    accounts: List[BalanceSheetAccount]


class BalanceSheetResponse(BaseModel):
    """Balance Sheet report response."""
    as_of: date
    assets: BalanceSheetSection
    liabilities: BalanceSheetSection
    equity: BalanceSheetSection
    current_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    difference: Decimal
    is_balanced: bool


# Profit & Loss Schemas
class PnLAccountRow(BaseModel):
    """A single account row in P&L report."""
    code: str
    name: str
    account_type: str
    group: str
    amount: Decimal


class PnLResponse(BaseModel):
    """Profit & Loss report response."""
    date_from: date
    date_to: date
    net_revenue: Decimal
    other_income: Decimal
    cost_of_goods_sold: Decimal
    selling_expenses: Decimal
    admin_expenses: Decimal
    financial_expenses: Decimal
    other_expenses: Decimal
    gross_profit: Decimal
    operating_profit: Decimal
    profit_before_tax: Decimal
    income_tax: Decimal
    net_profit: Decimal
    accounts: List[PnLAccountRow]
