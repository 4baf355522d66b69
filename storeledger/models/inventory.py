"""Inventory slice touched by COGS posting."""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, CheckConstraint
from sqlalchemy.orm import mapped_column, Mapped

from storeledger.models.base import Base


class Product(Base):
    """Product stock and moving-average unit cost."""

    __tablename__ = "products"

    # Catalog id owned by the store
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    average_cost: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_stock_non_negative"),
    )
