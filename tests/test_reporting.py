"""Tests for trial balance, account ledger, balance sheet and P&L."""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from storeledger.domain.accounting import chart
from storeledger.domain.accounting.depreciation_service import post_depreciation_entry, register_fixed_asset
from storeledger.domain.accounting.enums import AccountType, EntryType
from storeledger.domain.accounting.exceptions import NotFoundError
from storeledger.domain.accounting.gl_service import create_journal_entry
from storeledger.domain.accounting.period_service import close_period, create_period
from storeledger.services.reporting_service import (
    get_account_ledger,
    get_balance_sheet,
    get_profit_and_loss,
    get_trial_balance,
    nature_balance,
)


def _post(db: Session, entry_date: date, debit: str, credit: str, amount: str, memo: str = "Test"):
    return create_journal_entry(
        db, entry_date, memo, EntryType.MANUAL,
        [
            {"account_code": debit, "debit": amount, "credit": 0},
            {"account_code": credit, "debit": 0, "credit": amount},
        ],
    )


@pytest.fixture
def books(ledger: Session) -> Session:
    """A small quarter of store activity."""
    _post(ledger, date(2025, 1, 2), chart.BANK, "411", "50000000", "Owner capital")
    _post(ledger, date(2025, 1, 5), chart.INVENTORY, chart.PAYABLE, "8000000", "Stock purchase")
    _post(ledger, date(2025, 1, 12), chart.BANK, chart.SALES_REVENUE, "10000000", "Online sales")
    _post(ledger, date(2025, 1, 12), chart.COGS, chart.INVENTORY, "6000000", "Cost of sales")
    _post(ledger, date(2025, 1, 20), chart.SELLING_EXPENSE, chart.BANK, "1000000", "Ads")
    _post(ledger, date(2025, 1, 25), chart.ADMIN_EXPENSE, chart.CASH, "500000", "Office supplies")
    _post(ledger, date(2025, 1, 28), chart.FINANCIAL_EXPENSE, chart.BANK, "200000", "Bank fees")
    _post(ledger, date(2025, 1, 30), chart.BANK, chart.OTHER_INCOME, "300000", "Interest")
    _post(ledger, date(2025, 2, 10), chart.BANK, chart.SALES_REVENUE, "4000000", "February sales")
    return ledger


def test_nature_balance():
    assert nature_balance(AccountType.ASSET, Decimal("10"), Decimal("3")) == Decimal("7")
    assert nature_balance(AccountType.REVENUE, Decimal("10"), Decimal("3")) == Decimal("-7")
    assert nature_balance(AccountType.LIABILITY, Decimal("0"), Decimal("5")) == Decimal("5")


def test_trial_balance_is_balanced_and_sorted(books: Session):
    report = get_trial_balance(books)

    assert report["is_balanced"]
    assert report["total_debit"] == report["total_credit"] == Decimal("80000000.00")
    codes = [row["code"] for row in report["accounts"]]
    assert codes == sorted(codes)

    bank = next(row for row in report["accounts"] if row["code"] == chart.BANK)
    assert bank["balance"] == Decimal("63100000.00")
    assert bank["name"] == "Bank deposits"


def test_trial_balance_date_range(books: Session):
    report = get_trial_balance(books, date_from=date(2025, 2, 1), date_to=date(2025, 2, 28))
    assert [row["code"] for row in report["accounts"]] == [chart.BANK, chart.SALES_REVENUE]
    assert report["total_debit"] == Decimal("4000000.00")


def test_account_ledger_running_balance(books: Session):
    report = get_account_ledger(books, chart.INVENTORY)

    assert [line["balance"] for line in report["lines"]] == [
        Decimal("8000000.00"),
        Decimal("2000000.00"),
    ]
    assert report["ending_balance"] == Decimal("2000000.00")
    assert report["account_type"] == "asset"

    # Liability accounts still run debit minus credit
    payable = get_account_ledger(books, chart.PAYABLE)
    assert payable["ending_balance"] == Decimal("-8000000.00")

    with pytest.raises(NotFoundError):
        get_account_ledger(books, "000")


def test_account_ledger_filters_dates(books: Session):
    report = get_account_ledger(books, chart.SALES_REVENUE, date_from=date(2025, 2, 1))
    assert len(report["lines"]) == 1
    assert report["lines"][0]["description"] == "February sales"


def test_balance_sheet_balances_before_and_after_closing(books: Session):
    open_sheet = get_balance_sheet(books, as_of=date(2025, 1, 31))

    assert open_sheet["is_balanced"]
    assert open_sheet["difference"] == Decimal("0.00")
    # 10,000,000 + 300,000 - 6,000,000 - 1,000,000 - 500,000 - 200,000
    assert open_sheet["current_earnings"] == Decimal("2600000.00")
    assert open_sheet["total_liabilities"] == Decimal("8000000.00")
    assert open_sheet["total_assets"] == Decimal("60600000.00")

    period = create_period(books, "2025-01", date(2025, 1, 1), date(2025, 1, 31))
    close_period(books, period.id)

    closed_sheet = get_balance_sheet(books, as_of=date(2025, 1, 31))
    assert closed_sheet["is_balanced"]
    assert closed_sheet["current_earnings"] == Decimal("0.00")
    equity = {row["code"]: row["balance"] for row in closed_sheet["equity"]["accounts"]}
    assert equity[chart.RETAINED_EARNINGS] == Decimal("2600000.00")
    assert closed_sheet["total_equity"] == open_sheet["total_equity"]


def test_balance_sheet_nets_accumulated_depreciation(ledger: Session):
    _post(ledger, date(2025, 1, 2), chart.BANK, "411", "40000000", "Owner capital")
    register_fixed_asset(ledger, "FA-POS", "POS terminal", Decimal("12000000"), date(2025, 1, 5), 12)
    post_depreciation_entry(ledger, "2025-01")

    sheet = get_balance_sheet(ledger, as_of=date(2025, 1, 31))
    assets = {row["code"]: row["balance"] for row in sheet["assets"]["accounts"]}

    assert assets[chart.FIXED_ASSET] == Decimal("12000000.00")
    assert assets[chart.ACCUMULATED_DEPRECIATION] == Decimal("-1000000.00")
    assert sheet["total_assets"] == Decimal("39000000.00")
    assert sheet["current_earnings"] == Decimal("-1000000.00")
    assert sheet["is_balanced"]


def test_profit_and_loss(books: Session):
    report = get_profit_and_loss(books, date(2025, 1, 1), date(2025, 1, 31))

    assert report["net_revenue"] == Decimal("10000000.00")
    assert report["cost_of_goods_sold"] == Decimal("6000000.00")
    assert report["gross_profit"] == Decimal("4000000.00")
    assert report["selling_expenses"] == Decimal("1000000.00")
    assert report["admin_expenses"] == Decimal("500000.00")
    assert report["financial_expenses"] == Decimal("200000.00")
    assert report["operating_profit"] == Decimal("2300000.00")
    assert report["other_income"] == Decimal("300000.00")
    assert report["profit_before_tax"] == Decimal("2600000.00")
    assert report["income_tax"] == Decimal("520000.00")
    assert report["net_profit"] == Decimal("2080000.00")


def test_profit_and_loss_ignores_closing_entries(books: Session):
    period = create_period(books, "2025-01", date(2025, 1, 1), date(2025, 1, 31))
    close_period(books, period.id)

    report = get_profit_and_loss(books, date(2025, 1, 1), date(2025, 1, 31))
    assert report["profit_before_tax"] == Decimal("2600000.00")


def test_loss_has_no_tax(ledger: Session):
    _post(ledger, date(2025, 3, 3), chart.SELLING_EXPENSE, chart.CASH, "400000")

    report = get_profit_and_loss(ledger, date(2025, 3, 1), date(2025, 3, 31))
    assert report["profit_before_tax"] == Decimal("-400000.00")
    assert report["income_tax"] == Decimal("0.00")
    assert report["net_profit"] == Decimal("-400000.00")
