"""Financial report API endpoints."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.reporting import (
    AccountLedgerResponse,
    BalanceSheetResponse,
    PnLResponse,
    TrialBalanceResponse,
)
from storeledger.services import reporting_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")


@router.get("/trial-balance", response_model=TrialBalanceResponse)
def trial_balance(
    date_from: Optional[date] = Query(None, description="Start date"),
    date_to: Optional[date] = Query(None, description="End date"),
    db: Session = Depends(get_db),
) -> TrialBalanceResponse:
    """Debit and credit totals per account; the grand totals must match."""
    _check_range(date_from, date_to)
    try:
        return TrialBalanceResponse(**reporting_service.get_trial_balance(db, date_from, date_to))
    except Exception as e:
        raise internal_error("generating trial balance", e)


@router.get("/account-ledger/{code}", response_model=AccountLedgerResponse)
def account_ledger(
    code: str,
    date_from: Optional[date] = Query(None, description="Start date"),
    date_to: Optional[date] = Query(None, description="End date"),
    db: Session = Depends(get_db),
) -> AccountLedgerResponse:
    """Every line posted to one account with a running balance."""
    _check_range(date_from, date_to)
    try:
        return AccountLedgerResponse(**reporting_service.get_account_ledger(db, code, date_from, date_to))
    except LedgerError as e:
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"generating ledger for account {code}", e)


@router.get("/balance-sheet", response_model=BalanceSheetResponse)
def balance_sheet(
    as_of: Optional[date] = Query(None, description="Report date, defaults to today"),
    db: Session = Depends(get_db),
) -> BalanceSheetResponse:
    """Assets against liabilities plus equity as of a date."""
    try:
        return BalanceSheetResponse(**reporting_service.get_balance_sheet(db, as_of))
    except Exception as e:
        raise internal_error("generating balance sheet", e)


@router.get("/profit-loss", response_model=PnLResponse)
def profit_loss(
    date_from: date = Query(..., description="Start date"),
    date_to: date = Query(..., description="End date"),
    db: Session = Depends(get_db),
) -> PnLResponse:
    """Revenue, expenses and profit for a date range."""
    _check_range(date_from, date_to)
    try:
        return PnLResponse(**reporting_service.get_profit_and_loss(db, date_from, date_to))
    except Exception as e:
        raise internal_error("generating profit and loss", e)
