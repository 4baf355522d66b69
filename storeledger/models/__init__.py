"""Database models."""

from .base import Base
from .accounting import (
    Account,
    JournalEntry,
    JournalLine,
    Receivable,
    Payable,
    FixedAsset,
    DepreciationRecord,
    AccountingPeriod,
    Partner,
)
from .inventory import Product

__all__ = [
    "Base",
    "Account",
    "JournalEntry",
    "JournalLine",
    "Receivable",
    "Payable",
    "FixedAsset",
    "DepreciationRecord",
    "AccountingPeriod",
    "Partner",
    "Product",
]
