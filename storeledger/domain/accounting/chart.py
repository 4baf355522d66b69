"""Chart of Accounts registry.

Accounts are addressed by code. A fixed allow-list of well-known codes is
provisioned on first use; any other unknown code is rejected.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storeledger.db.session import unit_of_work
from storeledger.models.accounting import Account, JournalLine
from storeledger.domain.accounting.enums import AccountType, AccountStatus
from storeledger.domain.accounting.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)

logger = logging.getLogger(__name__)

# Well-known account codes
CASH = "111"
BANK = "1121"
RECEIVABLE = "131"
INVENTORY = "156"
FIXED_ASSET = "211"
ACCUMULATED_DEPRECIATION = "214"
PAYABLE = "331"
ACCRUED_PAYROLL = "334"
DEFERRED_REVENUE = "3387"
RETAINED_EARNINGS = "421"
SALES_REVENUE = "511"
COGS = "632"
FINANCIAL_EXPENSE = "635"
SELLING_EXPENSE = "641"
ADMIN_EXPENSE = "642"
OTHER_INCOME = "711"
OTHER_EXPENSE = "811"
INCOME_SUMMARY = "911"


@dataclass(frozen=True)
class AccountDefinition:
    code: str
    name: str
    account_type: AccountType
    level: int = 1
    parent_code: str | None = None


# Codes that may be created on first reference
AUTO_PROVISION_ACCOUNTS: Dict[str, AccountDefinition] = {
    d.code: d
    for d in [
        AccountDefinition(CASH, "Cash on hand", AccountType.ASSET),
        AccountDefinition(BANK, "Bank deposits", AccountType.ASSET, 2, "112"),
        AccountDefinition(RECEIVABLE, "Accounts receivable", AccountType.ASSET),
        AccountDefinition(INVENTORY, "Merchandise inventory", AccountType.ASSET),
        AccountDefinition(FIXED_ASSET, "Tangible fixed assets", AccountType.ASSET),
        AccountDefinition(ACCUMULATED_DEPRECIATION, "Accumulated depreciation", AccountType.ASSET),
        AccountDefinition(PAYABLE, "Accounts payable", AccountType.LIABILITY),
        AccountDefinition(ACCRUED_PAYROLL, "Payable to employees", AccountType.LIABILITY),
        AccountDefinition(DEFERRED_REVENUE, "Unearned revenue", AccountType.LIABILITY, 2, "338"),
        AccountDefinition(RETAINED_EARNINGS, "Retained earnings", AccountType.EQUITY),
        AccountDefinition(SALES_REVENUE, "Sales revenue", AccountType.REVENUE),
        AccountDefinition(SELLING_EXPENSE, "Selling expenses", AccountType.EXPENSE),
        AccountDefinition(ADMIN_EXPENSE, "General and administrative expenses", AccountType.EXPENSE),
        AccountDefinition(OTHER_INCOME, "Other income", AccountType.REVENUE),
        AccountDefinition(OTHER_EXPENSE, "Other expenses", AccountType.EXPENSE),
        AccountDefinition(INCOME_SUMMARY, "Income summary", AccountType.EQUITY),
    ]
}

# Default chart loaded by seed_chart_of_accounts
DEFAULT_CHART: List[AccountDefinition] = [
    AccountDefinition(CASH, "Cash on hand", AccountType.ASSET),
    AccountDefinition("112", "Cash in bank", AccountType.ASSET),
    AccountDefinition(BANK, "Bank deposits", AccountType.ASSET, 2, "112"),
    AccountDefinition(RECEIVABLE, "Accounts receivable", AccountType.ASSET),
    AccountDefinition("133", "Deductible VAT", AccountType.ASSET),
    AccountDefinition(INVENTORY, "Merchandise inventory", AccountType.ASSET),
    AccountDefinition(FIXED_ASSET, "Tangible fixed assets", AccountType.ASSET),
    AccountDefinition(ACCUMULATED_DEPRECIATION, "Accumulated depreciation", AccountType.ASSET),
    AccountDefinition(PAYABLE, "Accounts payable", AccountType.LIABILITY),
    AccountDefinition("333", "Taxes payable", AccountType.LIABILITY),
    AccountDefinition("3331", "VAT payable", AccountType.LIABILITY, 2, "333"),
    AccountDefinition(ACCRUED_PAYROLL, "Payable to employees", AccountType.LIABILITY),
    AccountDefinition("338", "Other payables", AccountType.LIABILITY),
    AccountDefinition(DEFERRED_REVENUE, "Unearned revenue", AccountType.LIABILITY, 2, "338"),
    AccountDefinition("411", "Owner's capital", AccountType.EQUITY),
    AccountDefinition(RETAINED_EARNINGS, "Retained earnings", AccountType.EQUITY),
    AccountDefinition(SALES_REVENUE, "Sales revenue", AccountType.REVENUE),
    AccountDefinition("5111", "Revenue from sale of goods", AccountType.REVENUE, 2, SALES_REVENUE),
    AccountDefinition(COGS, "Cost of goods sold", AccountType.EXPENSE),
    AccountDefinition(FINANCIAL_EXPENSE, "Financial expenses", AccountType.EXPENSE),
    AccountDefinition(SELLING_EXPENSE, "Selling expenses", AccountType.EXPENSE),
    AccountDefinition(ADMIN_EXPENSE, "General and administrative expenses", AccountType.EXPENSE),
    AccountDefinition("6421", "Staff costs", AccountType.EXPENSE, 2, ADMIN_EXPENSE),
    AccountDefinition("6422", "Office supplies", AccountType.EXPENSE, 2, ADMIN_EXPENSE),
    AccountDefinition("6423", "Depreciation of office equipment", AccountType.EXPENSE, 2, ADMIN_EXPENSE),
    AccountDefinition("6424", "Taxes, fees and charges", AccountType.EXPENSE, 2, ADMIN_EXPENSE),
    AccountDefinition("6425", "Outsourced services", AccountType.EXPENSE, 2, ADMIN_EXPENSE),
    AccountDefinition(OTHER_INCOME, "Other income", AccountType.REVENUE),
    AccountDefinition(OTHER_EXPENSE, "Other expenses", AccountType.EXPENSE),
    AccountDefinition(INCOME_SUMMARY, "Income summary", AccountType.EQUITY),
]


def find_account(db: Session, code: str) -> Account | None:
    return db.query(Account).filter(Account.code == code).first()


def get_account(db: Session, code: str) -> Account:
    """Return the account with the given code or raise NotFoundError."""
    account = find_account(db, code)
    if not account:
        raise NotFoundError(f"Account {code} not found", account_code=code)
    return account


def list_accounts(
    db: Session,
    account_type: AccountType | None = None,
    status: AccountStatus | None = None,
) -> List[Account]:
    query = db.query(Account)
    if account_type:
        query = query.filter(Account.account_type == account_type)
    if status:
        query = query.filter(Account.status == status)
    return query.order_by(Account.code).all()


def create_account(
    db: Session,
    code: str,
    name: str,
    account_type: AccountType,
    parent_code: str | None = None,
    level: int | None = None,
    notes: str | None = None,
) -> Account:
    """
    Create an account in the chart.

    Args:
        db: Database session
        code: Unique account code
        name: Display name
        account_type: Account nature
        parent_code: Optional parent account code (must exist)
        level: Hierarchy level; derived from the parent when omitted
        notes: Free-text notes

    Returns:
        Created Account

    Raises:
        ValidationError: If code/name are empty or the parent does not exist
        ConflictError: If the code is already taken
    """
    code = (code or "").strip()
    if not code or not (name or "").strip():
        raise ValidationError("Account code and name are required", account_code=code)

    with unit_of_work(db):
        if find_account(db, code):
            raise ConflictError(f"Account code {code} already exists", account_code=code)

        parent = None
        if parent_code:
            parent = find_account(db, parent_code)
            if not parent:
                raise ValidationError(
                    f"Parent account {parent_code} does not exist",
                    parent_code=parent_code,
                )

        account = Account(
            code=code,
            name=name.strip(),
            account_type=account_type,
            parent_code=parent_code,
            level=level or (parent.level + 1 if parent else 1),
            notes=notes,
        )
        db.add(account)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(f"Account code {code} already exists", account_code=code)

    logger.info(f"Created account {code} ({account_type.value})")
    return account


def update_account(
    db: Session,
    code: str,
    name: str | None = None,
    account_type: AccountType | None = None,
    status: AccountStatus | None = None,
    notes: str | None = None,
) -> Account:
    """
    Update an account.

    The account type cannot change once journal lines reference the code.
    """
    with unit_of_work(db):
        account = get_account(db, code)

        if account_type and account_type != account.account_type:
            in_use = db.query(JournalLine.id).filter(JournalLine.account_code == code).first()
            if in_use:
                raise StateError(
                    f"Account {code} is referenced by journal lines; its type cannot change",
                    account_code=code,
                )
            account.account_type = account_type

        if name:
            account.name = name.strip()
        if status:
            account.status = status
        if notes is not None:
            account.notes = notes
        db.flush()

    return account


def ensure_account(db: Session, code: str) -> Account:
    """
    Return the account for a code, provisioning allow-listed codes on demand.

    A uniqueness violation while provisioning means another transaction
    created the account first; the row is re-fetched instead of failing.

    Raises:
        ValidationError: If the code is unknown and not allow-listed
    """
    account = find_account(db, code)
    if account:
        return account

    definition = AUTO_PROVISION_ACCOUNTS.get(code)
    if not definition:
        raise ValidationError(f"Account {code} does not exist", account_code=code)

    try:
        with db.begin_nested():
            account = Account(
                code=definition.code,
                name=definition.name,
                account_type=definition.account_type,
                level=definition.level,
                parent_code=definition.parent_code,
                notes="Auto-provisioned",
            )
            db.add(account)
            db.flush()
    except IntegrityError:
        logger.warning(f"Account {code} was created concurrently, re-fetching")
        account = find_account(db, code)
        if not account:
            raise
        return account

    logger.info(f"Auto-provisioned account {code} ({definition.name})")
    return account


def require_accounts(db: Session, codes: Iterable[str]) -> Dict[str, Account]:
    """Look up accounts strictly, without provisioning."""
    codes = list(dict.fromkeys(codes))
    accounts = {a.code: a for a in db.query(Account).filter(Account.code.in_(codes)).all()}
    missing = [c for c in codes if c not in accounts]
    if missing:
        raise ValidationError(
            f"Required accounts are missing: {', '.join(missing)}",
            account_codes=",".join(missing),
        )
    return accounts


def seed_chart_of_accounts(db: Session) -> int:
    """Insert the default chart, skipping codes that already exist."""
    created = 0
    with unit_of_work(db):
        existing = {code for (code,) in db.query(Account.code).all()}
        for definition in DEFAULT_CHART:
            if definition.code in existing:
                continue
            db.add(Account(
                code=definition.code,
                name=definition.name,
                account_type=definition.account_type,
                level=definition.level,
                parent_code=definition.parent_code,
            ))
            created += 1
        db.flush()

    if created:
        logger.info(f"Seeded {created} accounts into the chart of accounts")
    return created
