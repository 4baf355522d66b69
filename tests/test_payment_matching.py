"""Tests for matching payment notifications to open receivables."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from sqlalchemy.orm import Session

from storeledger.models.accounting import Receivable
from storeledger.domain.accounting.enums import PartnerKind, PaymentMethod, PaymentStatus
from storeledger.domain.accounting.partner_service import PartnerDirectory
from storeledger.domain.accounting.posting_service import post_sale_entry
from storeledger.services.payment_matching import (
    AmountWindowMatcher,
    ExactReferenceMatcher,
    FirstMatch,
    PaymentNotification,
    default_matcher,
)

RECEIVED_AT = datetime(2025, 3, 10, 12, 0)


@pytest.fixture
def open_receivable(ledger: Session):
    partner = PartnerDirectory(ledger).default_partner(PartnerKind.CUSTOMER)

    def _open_receivable(amount: str, created_at: datetime, order_id: str | None = None,
                         status: PaymentStatus = PaymentStatus.UNPAID) -> Receivable:
        remaining = Decimal("0") if status == PaymentStatus.PAID else Decimal(amount)
        receivable = Receivable(
            journal_entry_id=uuid4(),
            partner_id=partner.id,
            order_id=order_id,
            original_amount=Decimal(amount),
            remaining_amount=remaining,
            payment_status=status,
            invoice_date=created_at.date(),
            created_at=created_at,
        )
        ledger.add(receivable)
        ledger.commit()
        return receivable

    return _open_receivable


def _notification(amount: str, reference: str | None = None) -> PaymentNotification:
    return PaymentNotification(amount=Decimal(amount), received_at=RECEIVED_AT, reference=reference)


def test_exact_match_on_order_id(ledger: Session, open_receivable):
    target = open_receivable("250000", RECEIVED_AT - timedelta(days=3), order_id="3001")
    open_receivable("250000", RECEIVED_AT - timedelta(minutes=5), order_id="3002")

    assert ExactReferenceMatcher().match(ledger, _notification("1", reference="3001")).id == target.id


def test_exact_match_on_journal_reference(ledger: Session, make_order):
    order = make_order(order_id="4001", total="120000", payment_method=PaymentMethod.CREDIT,
                       customer_id="C-4", customer_name="Thu")
    post_sale_entry(ledger, order)

    receivable = ExactReferenceMatcher().match(ledger, _notification("120000", reference=" SO-4001 "))
    assert receivable is not None
    assert receivable.order_id == "4001"


def test_exact_match_ignores_paid_and_missing_references(ledger: Session, open_receivable):
    open_receivable("100000", RECEIVED_AT, order_id="5001", status=PaymentStatus.PAID)

    matcher = ExactReferenceMatcher()
    assert matcher.match(ledger, _notification("100000", reference="5001")) is None
    assert matcher.match(ledger, _notification("100000")) is None


def test_amount_window_picks_nearest_amount(ledger: Session, open_receivable):
    open_receivable("199500", RECEIVED_AT - timedelta(minutes=30))
    nearest = open_receivable("200100", RECEIVED_AT - timedelta(minutes=60))
    # Outside the lookback window
    open_receivable("200000", RECEIVED_AT - timedelta(hours=5))

    matcher = AmountWindowMatcher(tolerance=Decimal("1000"), lookback=timedelta(hours=2))
    assert matcher.match(ledger, _notification("200000")).id == nearest.id


def test_amount_window_ties_go_to_most_recent(ledger: Session, open_receivable):
    open_receivable("80000", RECEIVED_AT - timedelta(minutes=90))
    recent = open_receivable("80000", RECEIVED_AT - timedelta(minutes=10))

    matcher = AmountWindowMatcher(tolerance=Decimal("0"), lookback=timedelta(hours=2))
    assert matcher.match(ledger, _notification("80000")).id == recent.id


def test_amount_window_respects_tolerance(ledger: Session, open_receivable):
    open_receivable("150000", RECEIVED_AT - timedelta(minutes=10))

    matcher = AmountWindowMatcher(tolerance=Decimal("1000"), lookback=timedelta(hours=2))
    assert matcher.match(ledger, _notification("152000")) is None


def test_first_match_chains_strategies(ledger: Session, open_receivable):
    by_amount = open_receivable("90000", RECEIVED_AT - timedelta(minutes=10))
    by_reference = open_receivable("90000", RECEIVED_AT - timedelta(days=2), order_id="6001")

    chain = FirstMatch([ExactReferenceMatcher(), AmountWindowMatcher(tolerance=Decimal("0"))])
    assert chain.match(ledger, _notification("90000", reference="6001")).id == by_reference.id
    assert chain.match(ledger, _notification("90000", reference="nope")).id == by_amount.id


def test_default_matcher_without_heuristic(ledger: Session, open_receivable):
    open_receivable("70000", RECEIVED_AT - timedelta(minutes=10))

    assert isinstance(default_matcher(allow_heuristic=False), ExactReferenceMatcher)
    assert default_matcher(allow_heuristic=False).match(ledger, _notification("70000")) is None
    assert default_matcher().match(ledger, _notification("70000")) is not None
