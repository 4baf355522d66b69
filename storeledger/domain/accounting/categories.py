"""Category to account mapping for rule-driven general entries."""

from dataclasses import dataclass

from storeledger.domain.accounting import chart
from storeledger.domain.accounting.enums import (
    Category,
    EntryKind,
    PaymentStatus,
    BillType,
)
from storeledger.domain.accounting.exceptions import ValidationError

INCOME_CATEGORIES = {
    Category.SALES: chart.SALES_REVENUE,
    Category.SERVICES: chart.SALES_REVENUE,
    Category.INVESTMENT: chart.OTHER_INCOME,
    Category.OTHER_INCOME: chart.OTHER_INCOME,
}

EXPENSE_CATEGORIES = {
    Category.MATERIALS: chart.INVENTORY,
    Category.PAYROLL: chart.ADMIN_EXPENSE,
    Category.MARKETING: chart.SELLING_EXPENSE,
    Category.SHIPPING: chart.ADMIN_EXPENSE,
    Category.UTILITIES: chart.ADMIN_EXPENSE,
    Category.RENT: chart.ADMIN_EXPENSE,
    Category.MAINTENANCE: chart.ADMIN_EXPENSE,
    Category.OTHER_EXPENSE: chart.OTHER_EXPENSE,
}

# Paid customer money for goods/services not yet delivered
PREPAYMENT_CATEGORIES = {Category.SALES, Category.SERVICES}

BILL_TYPES = {
    Category.MATERIALS: BillType.PURCHASE,
    Category.SHIPPING: BillType.SERVICE,
    Category.MARKETING: BillType.SERVICE,
    Category.MAINTENANCE: BillType.SERVICE,
}

if set(INCOME_CATEGORIES) | set(EXPENSE_CATEGORIES) != set(Category):
    raise RuntimeError("Every Category must map to an account")


@dataclass(frozen=True)
class PostingRule:
    """Resolved accounts for one general entry."""
    debit_account: str
    credit_account: str
    creates_receivable: bool = False
    creates_payable: bool = False


def category_account(kind: EntryKind, category: Category) -> str:
    """
    Return the revenue or expense-side account for a category.

    Raises:
        ValidationError: If the category does not belong to the entry kind
    """
    mapping = INCOME_CATEGORIES if kind == EntryKind.INCOME else EXPENSE_CATEGORIES
    try:
        return mapping[category]
    except KeyError:
        raise ValidationError(
            f"Category {category.value} is not valid for {kind.value} entries",
            category=category.value,
            kind=kind.value,
        )


def resolve_posting_rule(
    kind: EntryKind,
    category: Category,
    payment_status: PaymentStatus,
) -> PostingRule:
    """
    Choose both sides of a general entry.

    Decision table:
    - income, paid, sales/services  -> Dr bank / Cr deferred revenue
    - income, paid, other           -> Dr bank / Cr category account
    - income, unpaid                -> Dr receivable / Cr category account
    - expense, payroll              -> Dr category account / Cr accrued payroll
    - expense, paid                 -> Dr category account / Cr bank
    - expense, unpaid               -> Dr category account / Cr payable
    """
    account = category_account(kind, category)
    paid = payment_status == PaymentStatus.PAID

    if kind == EntryKind.INCOME:
        if not paid:
            return PostingRule(chart.RECEIVABLE, account, creates_receivable=True)
        if category in PREPAYMENT_CATEGORIES:
            return PostingRule(chart.BANK, chart.DEFERRED_REVENUE)
        return PostingRule(chart.BANK, account)

    # Payroll is accrued regardless of payment status
    if category == Category.PAYROLL:
        return PostingRule(account, chart.ACCRUED_PAYROLL)
    if paid:
        return PostingRule(account, chart.BANK)
    return PostingRule(account, chart.PAYABLE, creates_payable=True)


def bill_type_for(category: Category) -> BillType:
    return BILL_TYPES.get(category, BillType.EXPENSE)
