"""Accounting period model."""

from datetime import datetime, date
from uuid import uuid4, UUID
from sqlalchemy import String, Date, DateTime, Enum, CheckConstraint, Uuid
from sqlalchemy.orm import mapped_column, Mapped

from storeledger.models.base import Base
from storeledger.domain.accounting.enums import PeriodStatus


class AccountingPeriod(Base):
    """Accounting period. Closed is terminal."""

    __tablename__ = "accounting_periods"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    lock_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[PeriodStatus] = mapped_column(
        Enum(PeriodStatus),
        default=PeriodStatus.OPEN,
        nullable=False
    )
    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_period_range"),
    )
