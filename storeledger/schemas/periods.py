"""Accounting period schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from storeledger.domain.accounting.enums import PeriodStatus
from storeledger.schemas.accounting import JournalEntryResponse


class PeriodCreate(BaseModel):
    """Schema for creating an accounting period."""
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    notes: Optional[str] = Field(default=None, max_length=500)


class PeriodResponse(BaseModel):
    """Schema for accounting period response."""
    id: UUID
    name: str
    start_date: date
    end_date: date
    lock_date: Optional[date] = None
    status: PeriodStatus
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ClosePeriodRequest(BaseModel):
    period_id: UUID
    lock_date: Optional[date] = None
    closed_by: Optional[str] = Field(default=None, max_length=100)


class ClosePeriodResponse(BaseModel):
    """Result of closing a period."""
    period: PeriodResponse
    total_revenue: Decimal
    total_expense: Decimal
    net_profit: Decimal
    entries: List[JournalEntryResponse]
