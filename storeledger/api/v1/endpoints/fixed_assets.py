"""Fixed asset and depreciation API endpoints."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeledger.api.v1.errors import internal_error, ledger_http_exception
from storeledger.db.dependencies import get_db
from storeledger.domain.accounting import depreciation_service
from storeledger.domain.accounting.enums import AssetStatus
from storeledger.domain.accounting.exceptions import LedgerError
from storeledger.schemas.posting import (
    DepreciationRequest,
    DepreciationRunResponse,
    FixedAssetCreate,
    FixedAssetResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/fixed-assets", response_model=List[FixedAssetResponse])
def list_fixed_assets(
    asset_status: Optional[AssetStatus] = None,
    db: Session = Depends(get_db),
) -> List[FixedAssetResponse]:
    assets = depreciation_service.list_fixed_assets(db, status=asset_status)
    return [FixedAssetResponse.model_validate(a) for a in assets]


@router.post("/fixed-assets", response_model=FixedAssetResponse, status_code=status.HTTP_201_CREATED)
def create_fixed_asset(
    asset_data: FixedAssetCreate,
    db: Session = Depends(get_db),
) -> FixedAssetResponse:
    """Register a fixed asset and post Dr 211 / Cr purchase account."""
    try:
        asset = depreciation_service.register_fixed_asset(
            db,
            asset_code=asset_data.asset_code,
            name=asset_data.name,
            original_cost=asset_data.original_cost,
            purchase_date=asset_data.purchase_date,
            useful_life=asset_data.useful_life,
            purchase_account_code=asset_data.purchase_account_code,
            created_by=asset_data.created_by,
        )
        return FixedAssetResponse.model_validate(asset)

    except LedgerError as e:
        logger.error(f"Could not register asset {asset_data.asset_code}: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error(f"registering asset {asset_data.asset_code}", e)


@router.get("/fixed-assets/{asset_id}", response_model=FixedAssetResponse)
def get_fixed_asset(
    asset_id: UUID,
    db: Session = Depends(get_db),
) -> FixedAssetResponse:
    try:
        return FixedAssetResponse.model_validate(depreciation_service.get_fixed_asset(db, asset_id))
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("/depreciation/calculate", response_model=DepreciationRunResponse)
def calculate_depreciation(
    request: DepreciationRequest,
    db: Session = Depends(get_db),
) -> DepreciationRunResponse:
    """
    Run monthly depreciation for every active asset.

    Safe to repeat: assets already depreciated for the month are skipped.
    """
    try:
        run = depreciation_service.post_depreciation_entry(db, request.month)
        return DepreciationRunResponse(
            month=run.month,
            total_amount=run.total_amount,
            posted=run.posted,
            skipped=run.skipped,
        )

    except LedgerError as e:
        logger.error(f"Depreciation run failed: {str(e)}")
        raise ledger_http_exception(e)
    except Exception as e:
        raise internal_error("calculating depreciation", e)
