"""Fixed asset registration and straight-line monthly depreciation."""

import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any
from uuid import UUID

from sqlalchemy.orm import Session

from storeledger.db.session import unit_of_work
from storeledger.models.accounting import FixedAsset, DepreciationRecord
from storeledger.domain.accounting import chart
from storeledger.domain.accounting.enums import AssetStatus, EntryType, SourceType
from storeledger.domain.accounting.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)
from storeledger.domain.accounting.gl_service import (
    CENT,
    ZERO,
    create_journal_entry,
    find_entry_by_reference,
    to_amount,
)

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@dataclass
class DepreciationRun:
    month: str
    total_amount: Decimal = ZERO
    posted: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)


def parse_month(month: str | None) -> tuple[str, date, date]:
    """Return (YYYY-MM, first day, last day); defaults to the current month."""
    if month is None:
        month = date.today().strftime("%Y-%m")
    if not MONTH_PATTERN.match(month):
        raise ValidationError("Month must be formatted YYYY-MM", month=month)
    year, month_no = int(month[:4]), int(month[5:])
    last_day = calendar.monthrange(year, month_no)[1]
    return month, date(year, month_no, 1), date(year, month_no, last_day)


def depreciation_reference(month: str, asset_code: str) -> str:
    return f"DEP-{month}-{asset_code}"


def monthly_depreciation(asset: FixedAsset) -> Decimal:
    """
    Straight-line amount for one month, capped at the remaining book value.

    The last month of the useful life takes whatever book value is left, so
    rounding never leaves a residue.
    """
    book_value = to_amount(asset.book_value)
    if len(asset.history) + 1 >= asset.useful_life:
        return book_value
    straight_line = (Decimal(asset.original_cost) / asset.useful_life).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    return min(straight_line, book_value)


def register_fixed_asset(
    db: Session,
    asset_code: str,
    name: str,
    original_cost: Decimal,
    purchase_date: date,
    useful_life: int,
    purchase_account_code: str = chart.BANK,
    created_by: str | None = None,
) -> FixedAsset:
    """
    Register a fixed asset and post its acquisition.

    Posting rules:
    - Debit Fixed Assets (211)
    - Credit the purchase account (must already exist)

    Raises:
        ValidationError: On a non-positive cost or useful life, or a missing
            purchase account
        ConflictError: If the asset code is taken
    """
    original_cost = to_amount(original_cost)
    if original_cost <= 0:
        raise ValidationError("Asset cost must be positive", asset_code=asset_code)
    if useful_life <= 0:
        raise ValidationError("Useful life must be a positive number of months", asset_code=asset_code)

    with unit_of_work(db):
        if db.query(FixedAsset.id).filter(FixedAsset.asset_code == asset_code).first():
            raise ConflictError(f"Asset code {asset_code} already exists", asset_code=asset_code)
        chart.require_accounts(db, [purchase_account_code])

        asset = FixedAsset(
            asset_code=asset_code,
            name=name,
            original_cost=original_cost,
            purchase_date=purchase_date,
            useful_life=useful_life,
            accumulated_depreciation=ZERO,
            book_value=original_cost,
            status=AssetStatus.ACTIVE,
        )
        db.add(asset)
        db.flush()

        description = f"Acquisition of {asset_code} - {name}"
        entry = create_journal_entry(
            db=db,
            entry_date=purchase_date,
            memo=description,
            entry_type=EntryType.PURCHASE,
            lines_list=[
                {"account_code": chart.FIXED_ASSET, "debit": original_cost, "credit": ZERO,
                 "description": description},
                {"account_code": purchase_account_code, "debit": ZERO, "credit": original_cost,
                 "description": description},
            ],
            source_type=SourceType.FIXED_ASSET,
            source_id=str(asset.id),
            created_by=created_by,
        )
        asset.journal_entry_id = entry.id
        db.flush()

    logger.info(f"Registered fixed asset {asset_code} cost={original_cost} life={useful_life}m")
    return asset


def get_fixed_asset(db: Session, asset_id: UUID) -> FixedAsset:
    asset = db.query(FixedAsset).filter(FixedAsset.id == asset_id).first()
    if not asset:
        raise NotFoundError(f"Fixed asset {asset_id} not found", asset_id=asset_id)
    return asset


def list_fixed_assets(db: Session, status: AssetStatus | None = None) -> List[FixedAsset]:
    query = db.query(FixedAsset)
    if status:
        query = query.filter(FixedAsset.status == status)
    return query.order_by(FixedAsset.asset_code).all()


def depreciate_asset(db: Session, asset: FixedAsset, month: str) -> DepreciationRecord:
    """
    Post one month of depreciation for a single asset.

    Posting rules:
    - Debit Depreciation expense (642)
    - Credit Accumulated depreciation (214)

    Raises:
        StateError: If the month was already depreciated or the asset is
            not depreciable
    """
    month, first_day, _ = parse_month(month)
    reference_no = depreciation_reference(month, asset.asset_code)

    with unit_of_work(db):
        if asset.has_depreciation_for(month) or find_entry_by_reference(db, reference_no):
            raise StateError(
                f"Asset {asset.asset_code} is already depreciated for {month}",
                asset_id=asset.id,
                month=month,
            )
        if asset.status != AssetStatus.ACTIVE:
            raise StateError(
                f"Asset {asset.asset_code} is {asset.status.value}",
                asset_id=asset.id,
            )

        amount = monthly_depreciation(asset)
        if amount <= 0:
            raise StateError(
                f"Asset {asset.asset_code} has no remaining book value",
                asset_id=asset.id,
            )

        description = f"Depreciation {month} - {asset.asset_code} {asset.name}"
        entry = create_journal_entry(
            db=db,
            entry_date=first_day,
            memo=description,
            entry_type=EntryType.DEPRECIATION,
            lines_list=[
                {"account_code": chart.ADMIN_EXPENSE, "debit": amount, "credit": ZERO,
                 "description": description},
                {"account_code": chart.ACCUMULATED_DEPRECIATION, "debit": ZERO, "credit": amount,
                 "description": description},
            ],
            reference_no=reference_no,
            source_type=SourceType.FIXED_ASSET,
            source_id=str(asset.id),
        )

        asset.accumulated_depreciation = to_amount(asset.accumulated_depreciation) + amount
        asset.book_value = to_amount(asset.original_cost) - asset.accumulated_depreciation
        if asset.book_value <= 0:
            asset.status = AssetStatus.FULLY_DEPRECIATED

        record = DepreciationRecord(month=month, amount=amount, journal_entry_id=entry.id)
        asset.history.append(record)
        db.flush()

    return record


def post_depreciation_entry(db: Session, target_month: str | None = None) -> DepreciationRun:
    """
    Depreciate every eligible active asset for a month.

    Assets already depreciated for the month, fully depreciated, or bought
    after the month are skipped, so the run can be repeated safely. The
    whole batch commits or rolls back together.

    Args:
        db: Database session
        target_month: "YYYY-MM"; defaults to the current month

    Returns:
        DepreciationRun listing posted and skipped assets
    """
    month, _, last_day = parse_month(target_month)
    run = DepreciationRun(month=month)

    with unit_of_work(db):
        assets = (
            db.query(FixedAsset)
            .filter(FixedAsset.status == AssetStatus.ACTIVE)
            .order_by(FixedAsset.asset_code)
            .all()
        )

        for asset in assets:
            reason = None
            if asset.purchase_date > last_day:
                reason = "purchased_after_month"
            elif asset.has_depreciation_for(month):
                reason = "already_depreciated"
            elif find_entry_by_reference(db, depreciation_reference(month, asset.asset_code)):
                reason = "already_posted"
            elif monthly_depreciation(asset) <= 0:
                asset.status = AssetStatus.FULLY_DEPRECIATED
                reason = "fully_depreciated"

            if reason:
                run.skipped.append({"asset_code": asset.asset_code, "reason": reason})
                continue

            record = depreciate_asset(db, asset, month)
            run.total_amount += record.amount
            run.posted.append({
                "asset_code": asset.asset_code,
                "amount": record.amount,
                "journal_entry_id": record.journal_entry_id,
                "book_value": to_amount(asset.book_value),
            })

    logger.info(
        f"Depreciation run {month}: posted={len(run.posted)} skipped={len(run.skipped)} "
        f"total={run.total_amount}"
    )
    return run
