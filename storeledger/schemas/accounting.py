"""Chart of accounts and journal entry schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from storeledger.domain.accounting.enums import (
    AccountType,
    AccountStatus,
    EntryType,
    SourceType,
    JournalStatus,
    PartnerKind,
)


class AccountCreate(BaseModel):
    """Schema for creating an account."""
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    account_type: AccountType
    parent_code: Optional[str] = Field(default=None, max_length=20)
    level: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = Field(default=None, max_length=500)


class AccountUpdate(BaseModel):
    """Schema for updating an account."""
    name: Optional[str] = Field(default=None, max_length=200)
    account_type: Optional[AccountType] = None
    status: Optional[AccountStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class AccountResponse(BaseModel):
    """Schema for account response."""
    id: UUID
    code: str
    name: str
    account_type: AccountType
    level: int
    parent_code: Optional[str] = None
    status: AccountStatus
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class JournalLineIn(BaseModel):
    """A journal line in a create/update request."""
    account_code: str = Field(..., min_length=1, max_length=20)
    debit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=500)
    partner_id: Optional[UUID] = None
    partner_kind: Optional[PartnerKind] = None


class JournalLineResponse(BaseModel):
    """Schema for journal line response."""
    id: UUID
    line_no: int
    account_code: str
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None
    partner_id: Optional[UUID] = None
    partner_kind: Optional[PartnerKind] = None

    class Config:
        from_attributes = True


class JournalEntryCreate(BaseModel):
    """Schema for creating a manual journal entry."""
    entry_date: date
    memo: Optional[str] = Field(default=None, max_length=500)
    reference_no: Optional[str] = Field(default=None, max_length=64)
    lines: List[JournalLineIn] = Field(..., min_length=2)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_by: Optional[str] = Field(default=None, max_length=100)


class JournalEntryUpdate(BaseModel):
    """Schema for editing a journal entry."""
    entry_date: Optional[date] = None
    memo: Optional[str] = Field(default=None, max_length=500)
    lines: Optional[List[JournalLineIn]] = Field(default=None, min_length=2)
    notes: Optional[str] = Field(default=None, max_length=1000)


class JournalEntryResponse(BaseModel):
    """Schema for journal entry response."""
    id: UUID
    reference_no: str
    entry_date: date
    memo: Optional[str] = None
    entry_type: EntryType
    source_type: Optional[SourceType] = None
    source_id: Optional[str] = None
    adjusted_date: Optional[date] = None
    status: JournalStatus
    posted_at: datetime
    created_by: Optional[str] = None
    notes: Optional[str] = None
    lines: List[JournalLineResponse]

    class Config:
        from_attributes = True
