"""Posting engine: turns business events into balanced journal entries."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.db.session import unit_of_work
from storeledger.models.accounting import JournalEntry, Receivable, Payable
from storeledger.models.inventory import Product
from storeledger.domain.accounting import chart
from storeledger.domain.accounting.categories import bill_type_for, resolve_posting_rule
from storeledger.domain.accounting.debt_service import create_payable, create_receivable
from storeledger.domain.accounting.enums import (
    AccountType,
    Category,
    EntryKind,
    EntryType,
    OrderStatus,
    PartnerKind,
    PaymentMethod,
    PaymentStatus,
    SourceType,
)
from storeledger.domain.accounting.exceptions import ValidationError
from storeledger.domain.accounting.gl_service import ZERO, create_journal_entry, find_entry_by_source, to_amount
from storeledger.domain.accounting.inventory import consume_stock, unit_cost
from storeledger.domain.accounting.partner_service import PartnerDirectory, validate_phone

logger = logging.getLogger(__name__)

# Paid up-front into the bank account
BANK_PAYMENT_METHODS = {PaymentMethod.BANK_TRANSFER, PaymentMethod.SEPAY, PaymentMethod.MOMO}

SHIPPED_STATUSES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Statuses at which a sale is recognised
SALE_STATUSES = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING} | SHIPPED_STATUSES


@dataclass
class OrderItem:
    product_id: str
    quantity: int
    name: str | None = None


@dataclass
class OrderSnapshot:
    """The part of an order the ledger needs to post it."""
    id: str
    total: Decimal
    payment_method: PaymentMethod
    status: OrderStatus
    created_at: datetime
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    shipped_at: datetime | None = None
    items: List[OrderItem] = field(default_factory=list)


@dataclass
class GeneralPosting:
    entry: JournalEntry
    receivable: Receivable | None = None
    payable: Payable | None = None


@dataclass
class OrderSync:
    sale_entry: JournalEntry | None = None
    cogs_entry: JournalEntry | None = None


def _line(account_code: str, debit: Any = ZERO, credit: Any = ZERO, **extra) -> Dict[str, Any]:
    return {"account_code": account_code, "debit": debit, "credit": credit, **extra}


def post_sale_entry(db: Session, order: OrderSnapshot) -> JournalEntry | None:
    """
    Post revenue for an order.

    Posting rules:
    - Bank transfer / SePay / MoMo: Debit Bank (1121), Credit Revenue (511)
    - COD not yet shipped: nothing is posted
    - COD shipped or delivered: Debit Receivable (131), Credit Revenue (511)
      and a receivable due ship date + COD grace period
    - Credit sale: Debit Receivable (131), Credit Revenue (511) and a
      receivable due order date + payment terms

    Args:
        db: Database session
        order: Order snapshot

    Returns:
        The sale JournalEntry (the existing one when already posted), or
        None when posting is deferred

    Raises:
        ValidationError: If the order total is not positive
    """
    total = to_amount(order.total)
    if total <= 0:
        raise ValidationError("Order total must be positive", order_id=order.id)

    settings = get_settings()

    with unit_of_work(db):
        existing = find_entry_by_source(db, SourceType.ORDER, order.id, entry_type=EntryType.SALE)
        if existing:
            logger.warning(f"Order {order.id} already has sale entry {existing.reference_no}")
            return existing

        if order.status == OrderStatus.CANCELLED:
            logger.info(f"Order {order.id} is cancelled; no sale posted")
            return None

        if order.payment_method in BANK_PAYMENT_METHODS:
            entry_date = order.created_at.date()
            debit_code = chart.BANK
            due_date = None
        elif order.payment_method == PaymentMethod.COD:
            if order.status not in SHIPPED_STATUSES:
                logger.info(f"COD order {order.id} not shipped yet; sale posting deferred")
                return None
            shipped_on = (order.shipped_at or datetime.utcnow()).date()
            entry_date = shipped_on
            debit_code = chart.RECEIVABLE
            due_date = shipped_on + timedelta(days=settings.cod_grace_days)
        else:
            entry_date = order.created_at.date()
            debit_code = chart.RECEIVABLE
            due_date = order.created_at.date() + timedelta(days=settings.default_payment_terms_days)

        partner = None
        if debit_code == chart.RECEIVABLE:
            directory = PartnerDirectory(db)
            if order.customer_name or order.customer_id:
                partner = directory.resolve(
                    PartnerKind.CUSTOMER,
                    order.customer_name or f"Customer {order.customer_id}",
                    phone=order.customer_phone,
                    external_ref=order.customer_id,
                )
            else:
                partner = directory.default_partner(PartnerKind.CUSTOMER)

        description = f"Sale - order {order.id} ({order.payment_method.value})"
        partner_fields = (
            {"partner_id": partner.id, "partner_kind": PartnerKind.CUSTOMER} if partner else {}
        )
        entry = create_journal_entry(
            db=db,
            entry_date=entry_date,
            memo=description,
            entry_type=EntryType.SALE,
            lines_list=[
                _line(debit_code, debit=total, description=description, **partner_fields),
                _line(chart.SALES_REVENUE, credit=total, description=description),
            ],
            reference_no=f"SO-{order.id}",
            source_type=SourceType.ORDER,
            source_id=order.id,
        )

        if partner:
            create_receivable(
                db,
                journal_entry=entry,
                partner=partner,
                amount=total,
                due_date=due_date,
                invoice_date=order.created_at.date(),
                order_id=order.id,
                description=description,
            )

    return entry


def post_cogs_entry(db: Session, order: OrderSnapshot) -> JournalEntry:
    """
    Post cost of goods sold for an order.

    Each line costs moving-average cost x quantity; product stock is
    decremented and floored at zero. Lines with unknown products or a
    non-positive quantity are skipped.

    Posting rules:
    - Debit COGS (632)
    - Credit Inventory (156)

    Returns:
        The COGS JournalEntry; the pre-existing one when already posted

    Raises:
        ValidationError: If 632/156 are missing or the total cost is not positive
    """
    with unit_of_work(db):
        existing = find_entry_by_source(
            db, SourceType.ORDER, order.id, account_code=chart.COGS
        )
        if existing:
            logger.warning(f"Order {order.id} already has COGS entry {existing.reference_no}")
            return existing

        chart.require_accounts(db, [chart.COGS, chart.INVENTORY])

        total_cogs = ZERO
        for item in order.items:
            if item.quantity <= 0:
                logger.warning(f"Skipping order {order.id} item {item.product_id} with quantity {item.quantity}")
                continue

            product = db.query(Product).filter(Product.id == item.product_id).first()
            if not product:
                logger.warning(f"Product {item.product_id} not found while costing order {order.id}")
                continue

            total_cogs += unit_cost(product) * item.quantity
            consume_stock(product, item.quantity)

        total_cogs = to_amount(total_cogs)
        if total_cogs <= 0:
            raise ValidationError(
                f"Order {order.id} has no cost to post",
                order_id=order.id,
                total_cogs=total_cogs,
            )

        description = f"COGS - order {order.id}"
        entry = create_journal_entry(
            db=db,
            entry_date=(order.shipped_at or datetime.utcnow()).date(),
            memo=description,
            entry_type=EntryType.COGS,
            lines_list=[
                _line(chart.COGS, debit=total_cogs, description=description),
                _line(chart.INVENTORY, credit=total_cogs, description=description),
            ],
            reference_no=f"COGS-{order.id}",
            source_type=SourceType.ORDER,
            source_id=order.id,
        )

    return entry


def post_general_entry(
    db: Session,
    kind: EntryKind,
    category: Category,
    amount: Decimal,
    payment_status: PaymentStatus,
    description: str | None = None,
    entry_date: date | None = None,
    partner_name: str | None = None,
    partner_phone: str | None = None,
    partner_ref: str | None = None,
    due_date: date | None = None,
    reference_no: str | None = None,
    created_by: str | None = None,
) -> GeneralPosting:
    """
    Post a rule-driven income or expense entry.

    Accounts come from the category mapping and the decision table in
    storeledger.domain.accounting.categories. Unpaid income opens a
    receivable, unpaid non-payroll expense opens a payable; both need a
    counterparty name and a due date.

    Raises:
        ValidationError: On a non-positive amount, a category of the wrong
            kind, a partial payment status, or missing debt details
    """
    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Amount must be positive", amount=amount)
    if payment_status not in (PaymentStatus.PAID, PaymentStatus.UNPAID):
        raise ValidationError(
            "General entries are either paid or unpaid",
            payment_status=payment_status.value,
        )
    partner_phone = validate_phone(partner_phone)

    rule = resolve_posting_rule(kind, category, payment_status)
    creates_debt = rule.creates_receivable or rule.creates_payable
    if creates_debt and not (partner_name or "").strip():
        raise ValidationError("Partner name is required for unpaid entries", category=category.value)
    if creates_debt and not due_date:
        raise ValidationError("Due date is required for unpaid entries", category=category.value)

    entry_date = entry_date or date.today()
    description = description or f"{kind.value.capitalize()} - {category.value}"

    with unit_of_work(db):
        partner = None
        partner_kind = PartnerKind.CUSTOMER if rule.creates_receivable else PartnerKind.SUPPLIER
        if creates_debt:
            partner = PartnerDirectory(db).resolve(
                partner_kind,
                partner_name,
                phone=partner_phone,
                external_ref=partner_ref,
            )

        partner_fields = {"partner_id": partner.id, "partner_kind": partner_kind} if partner else {}
        debit_fields = partner_fields if rule.creates_receivable else {}
        credit_fields = partner_fields if rule.creates_payable else {}

        entry = create_journal_entry(
            db=db,
            entry_date=entry_date,
            memo=description,
            entry_type=EntryType.MANUAL,
            lines_list=[
                _line(rule.debit_account, debit=amount, description=description, **debit_fields),
                _line(rule.credit_account, credit=amount, description=description, **credit_fields),
            ],
            reference_no=reference_no,
            source_type=SourceType.GENERAL,
            source_id=category.value,
            created_by=created_by,
        )

        posting = GeneralPosting(entry=entry)
        if rule.creates_receivable:
            posting.receivable = create_receivable(
                db,
                journal_entry=entry,
                partner=partner,
                amount=amount,
                due_date=due_date,
                description=description,
            )
        elif rule.creates_payable:
            posting.payable = create_payable(
                db,
                journal_entry=entry,
                partner=partner,
                amount=amount,
                due_date=due_date,
                bill_type=bill_type_for(category),
                description=description,
            )

    logger.info(
        f"Posted {kind.value} entry {entry.reference_no} for {category.value}: "
        f"Dr {rule.debit_account} / Cr {rule.credit_account} {amount}"
    )
    return posting


def post_transfer_entry(
    db: Session,
    from_code: str,
    to_code: str,
    amount: Decimal,
    entry_date: date | None = None,
    description: str | None = None,
    created_by: str | None = None,
) -> JournalEntry:
    """
    Move money between two asset accounts: Debit destination, Credit source.

    Raises:
        ValidationError: If the accounts are equal, missing or not assets,
            or the amount is not positive
    """
    amount = to_amount(amount)
    if from_code == to_code:
        raise ValidationError("Source and destination accounts must differ", account_code=from_code)
    if amount <= 0:
        raise ValidationError("Transfer amount must be positive", amount=amount)

    with unit_of_work(db):
        accounts = chart.require_accounts(db, [from_code, to_code])
        for code in (from_code, to_code):
            if accounts[code].account_type != AccountType.ASSET:
                raise ValidationError(
                    f"Account {code} is not an asset account",
                    account_code=code,
                )

        description = description or f"Transfer from {from_code} to {to_code}"
        entry = create_journal_entry(
            db=db,
            entry_date=entry_date or date.today(),
            memo=description,
            entry_type=EntryType.TRANSFER,
            lines_list=[
                _line(to_code, debit=amount, description=description),
                _line(from_code, credit=amount, description=description),
            ],
            created_by=created_by,
        )

    return entry


def post_adjusting_entry(
    db: Session,
    lines_list: List[Dict[str, Any]],
    adjusted_date: date,
    entry_date: date | None = None,
    memo: str | None = None,
    created_by: str | None = None,
) -> JournalEntry:
    """
    Post a free-form correcting entry tagged with the date of the error it fixes.

    The entry itself is dated today (or entry_date), so it can correct a
    period that is already closed.
    """
    if not adjusted_date:
        raise ValidationError("The date being corrected is required")

    entry = create_journal_entry(
        db=db,
        entry_date=entry_date or date.today(),
        memo=memo or f"Adjustment for {adjusted_date}",
        entry_type=EntryType.ADJUSTING,
        lines_list=lines_list,
        adjusted_date=adjusted_date,
        created_by=created_by,
    )
    return entry


def sync_order_to_accounting(db: Session, order: OrderSnapshot) -> OrderSync:
    """
    Order-status transition hook.

    Posts the sale once the order is confirmed (COD: once shipped) and the
    COGS once the order is shipped or delivered. Both postings are
    idempotent, so the hook can be called on every status change.
    """
    result = OrderSync()
    if order.status in (OrderStatus.PENDING, OrderStatus.CANCELLED):
        logger.info(f"Order {order.id} is {order.status.value}; nothing to post")
        return result

    with unit_of_work(db):
        if order.status in SALE_STATUSES:
            result.sale_entry = post_sale_entry(db, order)
        if order.status in SHIPPED_STATUSES:
            result.cogs_entry = post_cogs_entry(db, order)

    return result
