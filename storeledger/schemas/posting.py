"""Posting engine request and response schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from storeledger.domain.accounting.enums import (
    AssetStatus,
    Category,
    EntryKind,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from storeledger.domain.accounting.posting_service import OrderItem, OrderSnapshot
from storeledger.schemas.accounting import JournalEntryResponse, JournalLineIn


class OrderItemIn(BaseModel):
    """An order line."""
    product_id: str = Field(..., max_length=64)
    quantity: int
    name: Optional[str] = None


class OrderIn(BaseModel):
    """Order snapshot sent by the order workflow."""
    id: str = Field(..., min_length=1, max_length=56)
    total: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod
    status: OrderStatus
    created_at: datetime
    shipped_at: Optional[datetime] = None
    customer_id: Optional[str] = Field(default=None, max_length=100)
    customer_name: Optional[str] = Field(default=None, max_length=200)
    customer_phone: Optional[str] = Field(default=None, pattern=r"^[0-9]{10,11}$")
    items: List[OrderItemIn] = Field(default_factory=list)

    def to_snapshot(self) -> OrderSnapshot:
        return OrderSnapshot(
            id=self.id,
            total=self.total,
            payment_method=self.payment_method,
            status=self.status,
            created_at=self.created_at,
            shipped_at=self.shipped_at,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            items=[
                OrderItem(product_id=i.product_id, quantity=i.quantity, name=i.name)
                for i in self.items
            ],
        )


class OrderPostingResponse(BaseModel):
    """Result of posting an order."""
    order_id: str
    posted: bool
    journal_entry: Optional[JournalEntryResponse] = None
    message: str


class OrderSyncResponse(BaseModel):
    """Entries posted by an order status change."""
    order_id: str
    status: OrderStatus
    sale_entry: Optional[JournalEntryResponse] = None
    cogs_entry: Optional[JournalEntryResponse] = None


class GeneralEntryCreate(BaseModel):
    """Rule-driven income/expense entry."""
    kind: EntryKind
    category: Category
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_status: PaymentStatus = PaymentStatus.PAID
    description: Optional[str] = Field(default=None, max_length=500)
    entry_date: Optional[date] = None
    partner_name: Optional[str] = Field(default=None, max_length=200)
    partner_phone: Optional[str] = Field(default=None, pattern=r"^[0-9]{10,11}$")
    partner_ref: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[date] = None
    reference_no: Optional[str] = Field(default=None, max_length=64)
    created_by: Optional[str] = Field(default=None, max_length=100)


class GeneralEntryResponse(BaseModel):
    """Posted general entry with the debt it opened, if any."""
    journal_entry: JournalEntryResponse
    receivable_id: Optional[UUID] = None
    payable_id: Optional[UUID] = None


class TransferCreate(BaseModel):
    """Internal transfer between two asset accounts."""
    from_account: str = Field(..., max_length=20)
    to_account: str = Field(..., max_length=20)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    entry_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=500)
    created_by: Optional[str] = Field(default=None, max_length=100)


class StockPurchaseIn(BaseModel):
    """Goods received for a product."""
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0, decimal_places=2)


class ProductStockResponse(BaseModel):
    id: str
    name: str
    stock: int
    average_cost: Optional[Decimal] = None

    class Config:
        from_attributes = True


class AdjustingEntryCreate(BaseModel):
    """Correcting entry for an earlier date."""
    adjusted_date: date
    entry_date: Optional[date] = None
    memo: Optional[str] = Field(default=None, max_length=500)
    lines: List[JournalLineIn] = Field(..., min_length=2)
    created_by: Optional[str] = Field(default=None, max_length=100)


class FixedAssetCreate(BaseModel):
    """Schema for registering a fixed asset."""
    asset_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    original_cost: Decimal = Field(..., gt=0, decimal_places=2)
    purchase_date: date
    useful_life: int = Field(..., gt=0, description="Useful life in months")
    purchase_account_code: str = Field(default="1121", max_length=20)
    created_by: Optional[str] = Field(default=None, max_length=100)


class DepreciationRecordResponse(BaseModel):
    month: str
    amount: Decimal
    journal_entry_id: UUID

    class Config:
        from_attributes = True


class FixedAssetResponse(BaseModel):
    """Schema for fixed asset response."""
    id: UUID
    asset_code: str
    name: str
    original_cost: Decimal
    purchase_date: date
    useful_life: int
    accumulated_depreciation: Decimal
    book_value: Decimal
    status: AssetStatus
    journal_entry_id: Optional[UUID] = None
    history: List[DepreciationRecordResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class DepreciationRequest(BaseModel):
    month: Optional[str] = Field(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")


class DepreciationRunResponse(BaseModel):
    """Result of a depreciation batch."""
    month: str
    total_amount: Decimal
    posted: List[Dict[str, Any]]
    skipped: List[Dict[str, Any]]
