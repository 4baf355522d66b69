"""Receivable and payable schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from storeledger.domain.accounting.enums import BillType, PaymentStatus
from storeledger.schemas.accounting import JournalEntryResponse


class ReceivableResponse(BaseModel):
    """Schema for receivable response."""
    id: UUID
    journal_entry_id: UUID
    partner_id: UUID
    order_id: Optional[str] = None
    original_amount: Decimal
    remaining_amount: Decimal
    payment_status: PaymentStatus
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PayableResponse(BaseModel):
    """Schema for payable response."""
    id: UUID
    journal_entry_id: UUID
    partner_id: UUID
    bill_type: BillType
    original_amount: Decimal
    remaining_amount: Decimal
    payment_status: PaymentStatus
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DebtCreate(BaseModel):
    """Open a debt for a journal entry posted without one."""
    journal_entry_id: UUID
    partner_id: Optional[UUID] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    due_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=500)


class PayableCreate(DebtCreate):
    bill_type: BillType = BillType.EXPENSE


class PaymentCreate(BaseModel):
    """Payment against a receivable or payable."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: Optional[date] = None
    cash_account_code: str = Field(default="1121", max_length=20)
    post_entry: bool = True


class PaymentResponse(BaseModel):
    """Result of applying a payment."""
    debt_id: UUID
    applied_amount: Decimal
    remaining_amount: Decimal
    payment_status: PaymentStatus
    journal_entry: Optional[JournalEntryResponse] = None


class PaymentNotificationIn(BaseModel):
    """Payment confirmation from the payment gateway."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    received_at: Optional[datetime] = None
    reference: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    allow_heuristic: bool = False


class AgingItem(BaseModel):
    id: UUID
    partner_id: UUID
    partner_name: Optional[str] = None
    due_date: date
    days_overdue: int
    bucket: str
    original_amount: Decimal
    remaining_amount: Decimal


class AgingResponse(BaseModel):
    """Aging report response."""
    kind: str
    as_of: date
    buckets: Dict[str, Decimal]
    total: Decimal
    items: List[AgingItem]
