"""Tests for the posting engine: sales, COGS, general, transfer and adjusting entries."""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from storeledger.models.accounting import JournalEntry, Partner, Payable, Receivable
from storeledger.domain.accounting import chart
from storeledger.domain.accounting.categories import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    bill_type_for,
    resolve_posting_rule,
)
from storeledger.domain.accounting.enums import (
    BillType,
    Category,
    EntryKind,
    EntryType,
    OrderStatus,
    PartnerKind,
    PaymentMethod,
    PaymentStatus,
    SourceType,
)
from storeledger.domain.accounting.exceptions import StateError, ValidationError
from storeledger.domain.accounting.gl_service import delete_journal_entry
from storeledger.domain.accounting.inventory import record_purchase
from storeledger.domain.accounting.posting_service import (
    OrderItem,
    post_adjusting_entry,
    post_cogs_entry,
    post_general_entry,
    post_sale_entry,
    post_transfer_entry,
    sync_order_to_accounting,
)


def _amounts(entry: JournalEntry):
    return [(line.account_code, line.debit, line.credit) for line in entry.lines]


# Sale posting

def test_bank_transfer_sale_posts_bank_and_revenue(ledger: Session, make_order):
    """Bank transfer order of 500,000 posts Dr 1121 / Cr 511."""
    entry = post_sale_entry(ledger, make_order(total="500000"))

    assert entry.reference_no == "SO-1001"
    assert entry.entry_type == EntryType.SALE
    assert entry.source_type == SourceType.ORDER
    assert entry.source_id == "1001"
    assert entry.entry_date == date(2025, 3, 10)
    assert _amounts(entry) == [
        ("1121", Decimal("500000.00"), Decimal("0.00")),
        ("511", Decimal("0.00"), Decimal("500000.00")),
    ]
    assert ledger.query(Receivable).count() == 0


@pytest.mark.parametrize("method", [PaymentMethod.SEPAY, PaymentMethod.MOMO])
def test_gateway_payments_post_to_bank(ledger: Session, make_order, method):
    entry = post_sale_entry(ledger, make_order(payment_method=method))
    assert entry.lines[0].account_code == chart.BANK


def test_cod_sale_deferred_until_shipped(ledger: Session, make_order):
    order = make_order(total="300000", payment_method=PaymentMethod.COD, status=OrderStatus.CONFIRMED)
    assert post_sale_entry(ledger, order) is None
    assert ledger.query(JournalEntry).count() == 0


def test_cod_shipped_sale_opens_receivable(ledger: Session, make_order):
    """COD order of 300,000 shipped posts Dr 131 / Cr 511 and one receivable."""
    shipped_at = datetime(2025, 3, 12, 14, 0)
    order = make_order(
        total="300000",
        payment_method=PaymentMethod.COD,
        status=OrderStatus.SHIPPED,
        shipped_at=shipped_at,
        customer_id="C-77",
        customer_name="Lan Nguyen",
        customer_phone="0912345678",
    )

    entry = post_sale_entry(ledger, order)

    assert entry.entry_date == date(2025, 3, 12)
    assert [line.account_code for line in entry.lines] == ["131", "511"]
    assert entry.total_debit == Decimal("300000.00")

    receivable = ledger.query(Receivable).one()
    assert receivable.original_amount == Decimal("300000.00")
    assert receivable.remaining_amount == Decimal("300000.00")
    assert receivable.payment_status == PaymentStatus.UNPAID
    assert receivable.journal_entry_id == entry.id
    assert receivable.order_id == "1001"
    assert receivable.due_date == date(2025, 3, 12) + timedelta(days=7)

    partner = ledger.query(Partner).filter(Partner.id == receivable.partner_id).one()
    assert partner.kind == PartnerKind.CUSTOMER
    assert partner.external_ref == "C-77"
    assert entry.lines[0].partner_id == partner.id


def test_credit_sale_uses_payment_terms_and_default_customer(ledger: Session, make_order):
    entry = post_sale_entry(ledger, make_order(payment_method=PaymentMethod.CREDIT))

    receivable = ledger.query(Receivable).one()
    assert entry.lines[0].account_code == chart.RECEIVABLE
    assert receivable.due_date == date(2025, 3, 10) + timedelta(days=30)
    assert receivable.partner.is_default


def test_sale_posting_is_idempotent(ledger: Session, make_order):
    order = make_order()
    first = post_sale_entry(ledger, order)
    second = post_sale_entry(ledger, order)

    assert first.id == second.id
    assert ledger.query(JournalEntry).count() == 1


def test_cancelled_order_posts_nothing(ledger: Session, make_order):
    assert post_sale_entry(ledger, make_order(status=OrderStatus.CANCELLED)) is None


def test_non_positive_order_total_is_rejected(ledger: Session, make_order):
    with pytest.raises(ValidationError):
        post_sale_entry(ledger, make_order(total="0"))


# COGS posting

def test_cogs_uses_average_cost_and_decrements_stock(ledger: Session, make_order, products):
    order = make_order(
        status=OrderStatus.SHIPPED,
        shipped_at=datetime(2025, 3, 11, 8, 0),
        items=[OrderItem("TEE-01", 2), OrderItem("MUG-01", 3), OrderItem("GHOST", 1)],
    )

    entry = post_cogs_entry(ledger, order)

    # 2 x 120,000 average cost + 3 x 50,000 price fallback; unknown product skipped
    assert entry.reference_no == "COGS-1001"
    assert _amounts(entry) == [
        ("632", Decimal("390000.00"), Decimal("0.00")),
        ("156", Decimal("0.00"), Decimal("390000.00")),
    ]
    ledger.refresh(products["tee"])
    ledger.refresh(products["mug"])
    assert products["tee"].stock == 8
    assert products["mug"].stock == 0


def test_second_cogs_call_returns_existing_entry(ledger: Session, make_order, products):
    order = make_order(status=OrderStatus.SHIPPED, items=[OrderItem("TEE-01", 1)])

    first = post_cogs_entry(ledger, order)
    second = post_cogs_entry(ledger, order)

    assert first.id == second.id
    assert ledger.query(JournalEntry).filter(JournalEntry.entry_type == EntryType.COGS).count() == 1
    ledger.refresh(products["tee"])
    assert products["tee"].stock == 9


def test_cogs_entry_cannot_be_deleted_and_reposted(ledger: Session, make_order, products):
    order = make_order(status=OrderStatus.SHIPPED, items=[OrderItem("TEE-01", 2)])
    entry = post_cogs_entry(ledger, order)

    with pytest.raises(StateError):
        delete_journal_entry(ledger, entry.id)

    assert post_cogs_entry(ledger, order).id == entry.id
    ledger.refresh(products["tee"])
    assert products["tee"].stock == 8


def test_cogs_without_cost_is_rejected(ledger: Session, make_order, products):
    order = make_order(status=OrderStatus.SHIPPED, items=[OrderItem("TEE-01", 0)])
    with pytest.raises(ValidationError):
        post_cogs_entry(ledger, order)


def test_cogs_requires_accounts(db: Session, make_order):
    with pytest.raises(ValidationError):
        post_cogs_entry(db, make_order(status=OrderStatus.SHIPPED, items=[OrderItem("TEE-01", 1)]))


def test_record_purchase_reweights_average_cost(ledger: Session, products):
    product = record_purchase(ledger, "TEE-01", 10, Decimal("150000"))
    # (10 x 120,000 + 10 x 150,000) / 20
    assert product.stock == 20
    assert product.average_cost == Decimal("135000.00")


def test_sync_order_posts_by_status(ledger: Session, make_order, products):
    pending = sync_order_to_accounting(ledger, make_order(status=OrderStatus.PENDING))
    assert pending.sale_entry is None and pending.cogs_entry is None

    confirmed = sync_order_to_accounting(ledger, make_order(status=OrderStatus.CONFIRMED))
    assert confirmed.sale_entry is not None
    assert confirmed.cogs_entry is None

    shipped = sync_order_to_accounting(
        ledger,
        make_order(status=OrderStatus.SHIPPED, items=[OrderItem("TEE-01", 1)]),
    )
    assert shipped.sale_entry.id == confirmed.sale_entry.id
    assert shipped.cogs_entry is not None
    assert ledger.query(JournalEntry).count() == 2


# General entries

@pytest.mark.parametrize("kind,category,status,debit,credit", [
    (EntryKind.INCOME, Category.SALES, PaymentStatus.PAID, "1121", "3387"),
    (EntryKind.INCOME, Category.INVESTMENT, PaymentStatus.PAID, "1121", "711"),
    (EntryKind.INCOME, Category.SERVICES, PaymentStatus.UNPAID, "131", "511"),
    (EntryKind.EXPENSE, Category.PAYROLL, PaymentStatus.PAID, "642", "334"),
    (EntryKind.EXPENSE, Category.MARKETING, PaymentStatus.PAID, "641", "1121"),
    (EntryKind.EXPENSE, Category.MATERIALS, PaymentStatus.UNPAID, "156", "331"),
    (EntryKind.EXPENSE, Category.OTHER_EXPENSE, PaymentStatus.PAID, "811", "1121"),
])
def test_posting_rule_decision_table(kind, category, status, debit, credit):
    rule = resolve_posting_rule(kind, category, status)
    assert (rule.debit_account, rule.credit_account) == (debit, credit)


def test_every_category_has_an_account():
    assert set(INCOME_CATEGORIES) | set(EXPENSE_CATEGORIES) == set(Category)
    assert bill_type_for(Category.MATERIALS) == BillType.PURCHASE
    assert bill_type_for(Category.RENT) == BillType.EXPENSE


def test_category_of_wrong_kind_is_rejected(ledger: Session):
    with pytest.raises(ValidationError):
        post_general_entry(ledger, EntryKind.INCOME, Category.RENT, Decimal("100"), PaymentStatus.PAID)


def test_paid_expense_posts_without_debt(ledger: Session):
    posting = post_general_entry(
        ledger,
        EntryKind.EXPENSE,
        Category.RENT,
        Decimal("8000000"),
        PaymentStatus.PAID,
        entry_date=date(2025, 3, 1),
    )

    assert _amounts(posting.entry) == [
        ("642", Decimal("8000000.00"), Decimal("0.00")),
        ("1121", Decimal("0.00"), Decimal("8000000.00")),
    ]
    assert posting.entry.source_type == SourceType.GENERAL
    assert posting.receivable is None and posting.payable is None


def test_unpaid_expense_opens_payable(ledger: Session):
    posting = post_general_entry(
        ledger,
        EntryKind.EXPENSE,
        Category.SHIPPING,
        Decimal("450000"),
        PaymentStatus.UNPAID,
        partner_name="Fast Courier",
        partner_phone="0281234567",
        due_date=date(2025, 4, 15),
    )

    payable = ledger.query(Payable).one()
    assert posting.payable.id == payable.id
    assert payable.bill_type == BillType.SERVICE
    assert payable.remaining_amount == Decimal("450000.00")
    assert payable.partner.kind == PartnerKind.SUPPLIER
    assert posting.entry.lines[1].partner_id == payable.partner_id


def test_unpaid_income_opens_receivable(ledger: Session):
    posting = post_general_entry(
        ledger,
        EntryKind.INCOME,
        Category.SERVICES,
        Decimal("1200000"),
        PaymentStatus.UNPAID,
        partner_name="Acme Retail",
        due_date=date(2025, 4, 30),
    )
    assert posting.receivable.partner.kind == PartnerKind.CUSTOMER
    assert posting.entry.lines[0].partner_id == posting.receivable.partner_id


@pytest.mark.parametrize("extra", [
    {"due_date": date(2025, 4, 30)},
    {"partner_name": "Acme Retail"},
])
def test_unpaid_entries_need_partner_and_due_date(ledger: Session, extra):
    with pytest.raises(ValidationError):
        post_general_entry(ledger, EntryKind.EXPENSE, Category.RENT, Decimal("100"), PaymentStatus.UNPAID, **extra)


def test_partial_status_is_rejected(ledger: Session):
    with pytest.raises(ValidationError):
        post_general_entry(ledger, EntryKind.EXPENSE, Category.RENT, Decimal("100"), PaymentStatus.PARTIAL)


# Transfers and adjustments

def test_transfer_between_asset_accounts(ledger: Session):
    entry = post_transfer_entry(ledger, chart.BANK, chart.CASH, Decimal("2000000"), entry_date=date(2025, 3, 3))

    assert entry.entry_type == EntryType.TRANSFER
    assert _amounts(entry) == [
        ("111", Decimal("2000000.00"), Decimal("0.00")),
        ("1121", Decimal("0.00"), Decimal("2000000.00")),
    ]


@pytest.mark.parametrize("from_code,to_code,amount", [
    ("1121", "1121", "100"),
    ("1121", "511", "100"),
    ("1121", "111", "0"),
    ("1121", "999", "100"),
])
def test_invalid_transfers_are_rejected(ledger: Session, from_code, to_code, amount):
    with pytest.raises(ValidationError):
        post_transfer_entry(ledger, from_code, to_code, Decimal(amount))


def test_adjusting_entry_records_corrected_date(ledger: Session):
    entry = post_adjusting_entry(
        ledger,
        lines_list=[
            {"account_code": "642", "debit": 50000, "credit": 0},
            {"account_code": "1121", "debit": 0, "credit": 50000},
        ],
        adjusted_date=date(2025, 1, 31),
        entry_date=date(2025, 3, 5),
    )

    assert entry.entry_type == EntryType.ADJUSTING
    assert entry.reference_no.startswith("ADJ-202503-")
    assert entry.adjusted_date == date(2025, 1, 31)
    assert entry.entry_date == date(2025, 3, 5)
