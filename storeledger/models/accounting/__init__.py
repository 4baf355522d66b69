"""Accounting models."""

from .chart_of_accounts import Account
from .journal_entry import JournalEntry, JournalLine
from .partner import Partner
from .ar import Receivable
from .ap import Payable
from .fixed_asset import FixedAsset, DepreciationRecord
from .period import AccountingPeriod

__all__ = [
    "Account",
    "JournalEntry",
    "JournalLine",
    "Partner",
    "Receivable",
    "Payable",
    "FixedAsset",
    "DepreciationRecord",
    "AccountingPeriod",
]
