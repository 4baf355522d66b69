"""Journal Entry and Journal Line models."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import (
    String,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    CheckConstraint,
    Index,
    Uuid,
)
from sqlalchemy.orm import mapped_column, Mapped, relationship

from storeledger.models.base import Base
from storeledger.domain.accounting.enums import (
    EntryType,
    SourceType,
    JournalStatus,
    PartnerKind,
)


class JournalEntry(Base):
    """Journal Entry model. Owns its lines."""

    __tablename__ = "journal_entries"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    reference_no: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    memo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    entry_type: Mapped[EntryType] = mapped_column(Enum(EntryType), nullable=False)

    # Back-reference to the business object that triggered the posting
    source_type: Mapped[SourceType | None] = mapped_column(Enum(SourceType), nullable=True)
    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Date of the error an adjusting entry corrects
    adjusted_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[JournalStatus] = mapped_column(
        Enum(JournalStatus),
        default=JournalStatus.POSTED,
        nullable=False
    )
    posted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Relationships
    lines: Mapped[list["JournalLine"]] = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_no",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        Index("idx_journal_entries_date", "entry_date"),
        Index("idx_journal_entries_source", "source_type", "source_id"),
    )

    @property
    def total_debit(self) -> Decimal:
        return sum((Decimal(line.debit) for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((Decimal(line.credit) for line in self.lines), Decimal("0"))


class JournalLine(Base):
    """Journal Line model."""

    __tablename__ = "journal_lines"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    journal_entry_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False
    )

    # Relationship
    entry: Mapped[JournalEntry] = relationship("JournalEntry", back_populates="lines")

    line_no: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    account_code: Mapped[str] = mapped_column(String(20), nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)

    partner_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    partner_kind: Mapped[PartnerKind | None] = mapped_column(Enum(PartnerKind), nullable=True)

    __table_args__ = (
        CheckConstraint("debit >= 0", name="check_debit_non_negative"),
        CheckConstraint("credit >= 0", name="check_credit_non_negative"),
        Index("idx_journal_lines_account", "account_code"),
        Index("idx_journal_lines_entry", "journal_entry_id"),
    )
