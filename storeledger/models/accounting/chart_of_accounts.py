"""Chart of Accounts model."""

from datetime import datetime
from uuid import uuid4, UUID
from sqlalchemy import String, Integer, Enum, Index, Uuid
from sqlalchemy.orm import mapped_column, Mapped

from storeledger.models.base import Base
from storeledger.domain.accounting.enums import AccountType, AccountStatus


class Account(Base):
    """Chart of Accounts model. Accounts are addressed by their code."""

    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    parent_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus),
        default=AccountStatus.ACTIVE,
        nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        Index("idx_accounts_type", "account_type"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
