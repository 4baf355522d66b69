"""Accounts Receivable models."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import String, Date, Enum, ForeignKey, Numeric, CheckConstraint, Index, Uuid
from sqlalchemy.orm import mapped_column, Mapped, relationship

from storeledger.models.base import Base
from storeledger.models.accounting.partner import Partner
from storeledger.domain.accounting.enums import PaymentStatus


class Receivable(Base):
    """Amount owed to the business by a customer."""

    __tablename__ = "receivables"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Lookup reference only; deletion of the entry is guarded in the service layer
    journal_entry_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    partner_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("partners.id"), nullable=False)
    partner: Mapped[Partner] = relationship("Partner")
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    original_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        default=PaymentStatus.UNPAID,
        nullable=False
    )

    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("remaining_amount >= 0", name="check_receivable_remaining_non_negative"),
        CheckConstraint(
            "remaining_amount <= original_amount",
            name="check_receivable_remaining_within_original",
        ),
        Index("idx_receivables_journal_entry", "journal_entry_id"),
        Index("idx_receivables_status", "payment_status"),
    )
