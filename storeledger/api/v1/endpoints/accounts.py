"""Chart of Accounts API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import chart
from storeledger.domain.accounting.enums import AccountStatus, AccountType
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.accounting import AccountCreate, AccountResponse, AccountUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(
    account_type: Optional[AccountType] = None,
    account_status: Optional[AccountStatus] = None,
    db: Session = Depends(get_db),
) -> List[AccountResponse]:
    """List the chart of accounts, sorted by code."""
    accounts = chart.list_accounts(db, account_type=account_type, status=account_status)
    return [AccountResponse.model_validate(a) for a in accounts]


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    account_data: AccountCreate,
    db: Session = Depends(get_db),
) -> AccountResponse:
    """Create an account. The code must be unique."""
    try:
        account = chart.create_account(
            db,
            code=account_data.code,
            name=account_data.name,
            account_type=account_data.account_type,
            parent_code=account_data.parent_code,
            level=account_data.level,
            notes=account_data.notes,
        )
        return AccountResponse.model_validate(account)

    except LedgerError as e:
        logger.error(f"Could not create account {account_data.code}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("creating account", e)


@router.patch("/accounts/{code}", response_model=AccountResponse)
def update_account(
    code: str,
    account_data: AccountUpdate,
    db: Session = Depends(get_db),
) -> AccountResponse:
    """Rename, deactivate or retype an account."""
    try:
        account = chart.update_account(
            db,
            code,
            name=account_data.name,
            account_type=account_data.account_type,
            status=account_data.status,
            notes=account_data.notes,
        )
        return AccountResponse.model_validate(account)

    except LedgerError as e:
        logger.error(f"Could not update account {code}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"updating account {code}", e)
