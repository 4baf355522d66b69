"""Accounts Payable models."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import String, Date, Enum, ForeignKey, Numeric, CheckConstraint, Index, Uuid
from sqlalchemy.orm import mapped_column, Mapped, relationship

from storeledger.models.base import Base
from storeledger.models.accounting.partner import Partner
from storeledger.domain.accounting.enums import PaymentStatus, BillType


class Payable(Base):
    """Amount the business owes a supplier."""

    __tablename__ = "payables"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    journal_entry_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    partner_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("partners.id"), nullable=False)
    partner: Mapped[Partner] = relationship("Partner")
    bill_type: Mapped[BillType] = mapped_column(Enum(BillType), default=BillType.EXPENSE, nullable=False)

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
        CheckConstraint("remaining_amount >= 0", name="check_payable_remaining_non_negative"),
        CheckConstraint(
            "remaining_amount <= original_amount",
            name="check_payable_remaining_within_original",
        ),
        Index("idx_payables_journal_entry", "journal_entry_id"),
        Index("idx_payables_status", "payment_status"),
    )
