"""Partner (customer/supplier) model."""

from datetime import datetime
from uuid import uuid4, UUID
from sqlalchemy import String, Boolean, Enum, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import mapped_column, Mapped

from storeledger.models.base import Base
from storeledger.domain.accounting.enums import PartnerKind


class Partner(Base):
    """Counterparty of a receivable or payable."""

    __tablename__ = "partners"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    kind: Mapped[PartnerKind] = mapped_column(Enum(PartnerKind), nullable=False)

    # Stable identifier supplied by the caller (e.g. the store's customer id)
    external_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Synthetic placeholder identity
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("kind", "external_ref", name="uq_partners_kind_external_ref"),
        Index("idx_partners_kind_name", "kind", "name"),
    )
