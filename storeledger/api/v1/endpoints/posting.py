"""Posting engine API endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import inventory, posting_service
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.accounting import JournalEntryResponse
from storeledger.schemas.posting import (
    AdjustingEntryCreate,
    GeneralEntryCreate,
    GeneralEntryResponse,
    OrderIn,
    OrderPostingResponse,
    OrderSyncResponse,
    ProductStockResponse,
    StockPurchaseIn,
    TransferCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/post-entry", response_model=GeneralEntryResponse, status_code=status.HTTP_201_CREATED)
def post_entry(
    entry_data: GeneralEntryCreate,
    db: Session = Depends(get_db),
) -> GeneralEntryResponse:
    """
    Post a rule-driven income or expense entry.

    The category picks the revenue/expense account; payment status picks
    the offsetting cash, receivable, payable, deferred revenue or accrued
    payroll account. Unpaid entries open a receivable or payable.
    """
    try:
        posting = posting_service.post_general_entry(
            db,
            kind=entry_data.kind,
            category=entry_data.category,
            amount=entry_data.amount,
            payment_status=entry_data.payment_status,
            description=entry_data.description,
            entry_date=entry_data.entry_date,
            partner_name=entry_data.partner_name,
            partner_phone=entry_data.partner_phone,
            partner_ref=entry_data.partner_ref,
            due_date=entry_data.due_date,
            reference_no=entry_data.reference_no,
            created_by=entry_data.created_by,
        )
        return GeneralEntryResponse(
            journal_entry=JournalEntryResponse.model_validate(posting.entry),
            receivable_id=posting.receivable.id if posting.receivable else None,
            payable_id=posting.payable.id if posting.payable else None,
        )

    except LedgerError as e:
        logger.error(f"Could not post {entry_data.kind.value} entry: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("posting entry", e)


@router.post("/post-sale", response_model=OrderPostingResponse)
def post_sale(
    order_data: OrderIn,
    db: Session = Depends(get_db),
) -> OrderPostingResponse:
    """Post revenue for an order. Idempotent per order."""
    try:
        entry = posting_service.post_sale_entry(db, order_data.to_snapshot())
        if not entry:
            return OrderPostingResponse(
                order_id=order_data.id,
                posted=False,
                message="Sale posting deferred until the order ships",
            )
        return OrderPostingResponse(
            order_id=order_data.id,
            posted=True,
            journal_entry=JournalEntryResponse.model_validate(entry),
            message=f"Sale posted as {entry.reference_no}",
        )

    except LedgerError as e:
        logger.error(f"Could not post sale for order {order_data.id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"posting sale for order {order_data.id}", e)


@router.post("/post-cogs", response_model=OrderPostingResponse)
def post_cogs(
    order_data: OrderIn,
    db: Session = Depends(get_db),
) -> OrderPostingResponse:
    """Post cost of goods sold for an order. A repeated call returns the first entry."""
    try:
        entry = posting_service.post_cogs_entry(db, order_data.to_snapshot())
        return OrderPostingResponse(
            order_id=order_data.id,
            posted=True,
            journal_entry=JournalEntryResponse.model_validate(entry),
            message=f"COGS posted as {entry.reference_no}",
        )

    except LedgerError as e:
        logger.error(f"Could not post COGS for order {order_data.id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"posting COGS for order {order_data.id}", e)


@router.post("/sync-order", response_model=OrderSyncResponse)
def sync_order(
    order_data: OrderIn,
    db: Session = Depends(get_db),
) -> OrderSyncResponse:
    """Order status-change hook: posts whatever the new status requires."""
    try:
        result = posting_service.sync_order_to_accounting(db, order_data.to_snapshot())
        return OrderSyncResponse(
            order_id=order_data.id,
            status=order_data.status,
            sale_entry=JournalEntryResponse.model_validate(result.sale_entry) if result.sale_entry else None,
            cogs_entry=JournalEntryResponse.model_validate(result.cogs_entry) if result.cogs_entry else None,
        )

    except LedgerError as e:
        logger.error(f"Could not sync order {order_data.id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"syncing order {order_data.id}", e)


@router.post("/internal-transfer", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def internal_transfer(
    transfer_data: TransferCreate,
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    """Move money between two asset accounts."""
    try:
        entry = posting_service.post_transfer_entry(
            db,
            from_code=transfer_data.from_account,
            to_code=transfer_data.to_account,
            amount=transfer_data.amount,
            entry_date=transfer_data.entry_date,
            description=transfer_data.description,
            created_by=transfer_data.created_by,
        )
        return JournalEntryResponse.model_validate(entry)

    except LedgerError as e:
        logger.error(f"Could not post transfer: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("posting transfer", e)


@router.post("/adjusting-entry", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def adjusting_entry(
    entry_data: AdjustingEntryCreate,
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    """Post a correcting entry for an earlier, possibly closed, date."""
    try:
        entry = posting_service.post_adjusting_entry(
            db,
            lines_list=[line.model_dump() for line in entry_data.lines],
            adjusted_date=entry_data.adjusted_date,
            entry_date=entry_data.entry_date,
            memo=entry_data.memo,
            created_by=entry_data.created_by,
        )
        return JournalEntryResponse.model_validate(entry)

    except LedgerError as e:
        logger.error(f"Could not post adjusting entry: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("posting adjusting entry", e)


@router.post("/products/{product_id}/purchases", response_model=ProductStockResponse)
def receive_stock(
    product_id: str,
    purchase: StockPurchaseIn,
    db: Session = Depends(get_db),
) -> ProductStockResponse:
    """Receive stock and re-weight the product's moving-average cost used for COGS."""
    try:
        product = inventory.record_purchase(db, product_id, purchase.quantity, purchase.unit_cost)
        return ProductStockResponse.model_validate(product)

    except LedgerError as e:
        logger.error(f"Could not receive stock for {product_id}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"receiving stock for {product_id}", e)
