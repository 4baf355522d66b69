"""Strategies that match incoming payment notifications to open receivables.

High-assurance call sites use ExactReferenceMatcher only; automated paths
can chain it with the AmountWindowMatcher heuristic.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Protocol, Sequence

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.models.accounting import JournalEntry, Receivable
from storeledger.domain.accounting.enums import PaymentStatus
from storeledger.domain.accounting.gl_service import to_amount

logger = structlog.get_logger()


@dataclass
class PaymentNotification:
    """A payment confirmation from the payment gateway or bank webhook."""
    amount: Decimal
    received_at: datetime
    reference: str | None = None
    description: str | None = None


class PaymentMatcher(Protocol):
    def match(self, db: Session, notification: PaymentNotification) -> Receivable | None:
        ...


def _open_receivables(db: Session):
    return db.query(Receivable).filter(
        Receivable.payment_status != PaymentStatus.PAID,
        Receivable.remaining_amount > 0,
    )


class ExactReferenceMatcher:
    """Match on the order id or the journal reference number of the receivable."""

    def match(self, db: Session, notification: PaymentNotification) -> Receivable | None:
        reference = (notification.reference or "").strip()
        if not reference:
            return None

        receivable = (
            _open_receivables(db)
            .outerjoin(JournalEntry, JournalEntry.id == Receivable.journal_entry_id)
            .filter(or_(Receivable.order_id == reference, JournalEntry.reference_no == reference))
            .order_by(Receivable.created_at)
            .first()
        )
        if receivable:
            logger.info("Exact reference match", reference=reference, receivable_id=str(receivable.id))
        return receivable


class AmountWindowMatcher:
    """
    Heuristic match on amount within a recent time window.

    Candidates are open receivables created within ``lookback`` before the
    notification whose remaining amount is within ``tolerance`` of the paid
    amount. The nearest amount wins; ties go to the most recent receivable.
    """

    def __init__(self, tolerance: Decimal | None = None, lookback: timedelta | None = None):
        settings = get_settings()
        self.tolerance = to_amount(
            settings.payment_match_tolerance if tolerance is None else tolerance
        )
        self.lookback = lookback or timedelta(minutes=settings.payment_match_lookback_minutes)

    def match(self, db: Session, notification: PaymentNotification) -> Receivable | None:
        amount = to_amount(notification.amount)
        window_start = notification.received_at - self.lookback

        candidates: List[Receivable] = (
            _open_receivables(db)
            .filter(
                Receivable.created_at >= window_start,
                Receivable.created_at <= notification.received_at,
                Receivable.remaining_amount >= amount - self.tolerance,
                Receivable.remaining_amount <= amount + self.tolerance,
            )
            .all()
        )
        if not candidates:
            logger.info("No amount-window match", amount=str(amount))
            return None

        best = min(
            candidates,
            key=lambda r: (abs(to_amount(r.remaining_amount) - amount), -r.created_at.timestamp()),
        )
        logger.info(
            "Amount-window match",
            amount=str(amount),
            receivable_id=str(best.id),
            candidates=len(candidates),
        )
        return best


class FirstMatch:
    """Try matchers in order and return the first hit."""

    def __init__(self, matchers: Sequence[PaymentMatcher]):
        self.matchers = list(matchers)

    def match(self, db: Session, notification: PaymentNotification) -> Receivable | None:
        for matcher in self.matchers:
            receivable = matcher.match(db, notification)
            if receivable:
                return receivable
        return None


def default_matcher(allow_heuristic: bool = True) -> PaymentMatcher:
    if not allow_heuristic:
        return ExactReferenceMatcher()
    return FirstMatch([ExactReferenceMatcher(), AmountWindowMatcher()])
