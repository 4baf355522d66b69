"""Fixed asset and depreciation history models."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import (
    String,
    Date,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    CheckConstraint,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import mapped_column, Mapped, relationship

from storeledger.models.base import Base
from storeledger.domain.accounting.enums import AssetStatus


class FixedAsset(Base):
    """Fixed asset depreciated straight-line over its useful life."""

    __tablename__ = "fixed_assets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    asset_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    original_cost: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    useful_life: Mapped[int] = mapped_column(Integer, nullable=False)  # months

    accumulated_depreciation: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    book_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    status: Mapped[AssetStatus] = mapped_column(
        Enum(AssetStatus),
        default=AssetStatus.ACTIVE,
        nullable=False
    )
    journal_entry_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    history: Mapped[list["DepreciationRecord"]] = relationship(
        "DepreciationRecord",
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="DepreciationRecord.month",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("useful_life > 0", name="check_useful_life_positive"),
        CheckConstraint(
            "accumulated_depreciation <= original_cost",
            name="check_accumulated_within_cost",
        ),
    )

    def has_depreciation_for(self, month: str) -> bool:
        return any(record.month == month for record in self.history)


class DepreciationRecord(Base):
    """One month of depreciation posted for an asset."""

    __tablename__ = "depreciation_records"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    asset_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("fixed_assets.id", ondelete="CASCADE"),
        nullable=False
    )
    asset: Mapped[FixedAsset] = relationship("FixedAsset", back_populates="history")

    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    journal_entry_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("asset_id", "month", name="uq_depreciation_asset_month"),
    )
