"""Accounting domain module."""

from .enums import (
    AccountType,
    AccountStatus,
    EntryType,
    SourceType,
    JournalStatus,
    PaymentStatus,
    PeriodStatus,
    PartnerKind,
    DebtKind,
    EntryKind,
    Category,
    PaymentMethod,
    OrderStatus,
    AssetStatus,
    BillType,
)
from .exceptions import (
    LedgerError,
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)

__all__ = [
    "AccountType",
    "AccountStatus",
    "EntryType",
    "SourceType",
    "JournalStatus",
    "PaymentStatus",
    "PeriodStatus",
    "PartnerKind",
    "DebtKind",
    "EntryKind",
    "Category",
    "PaymentMethod",
    "OrderStatus",
    "AssetStatus",
    "BillType",
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StateError",
]
