"""Celery tasks for scheduled ledger jobs."""

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

import structlog
from celery import shared_task
from sqlalchemy.orm import Session

from ..db.session import SessionLocal
from ..domain.accounting.debt_service import sync_debts_from_ledger
from ..domain.accounting.depreciation_service import post_depreciation_entry
from ..domain.accounting.enums import DebtKind
from ..domain.accounting.exceptions import LedgerError, ValidationError
from ..domain.accounting.period_service import close_period
from ..services.notifications import get_event_publisher

logger = structlog.get_logger()


def get_db() -> Session:
    """Get database session."""
    return SessionLocal()


def previous_month(today: Optional[date] = None) -> str:
    """YYYY-MM of the month before ``today``."""
    today = today or date.today()
    return (today.replace(day=1) - timedelta(days=1)).strftime("%Y-%m")


@shared_task
def calculate_depreciation_task(month: Optional[str] = None):
    """
    Post monthly depreciation for every active asset.

    Run by Celery Beat early each month for the month that just ended.
    Re-running is harmless: assets already depreciated are skipped.
    Failures are not retried; rerun the task for the month once fixed.
    """
    month = month or previous_month()
    db = get_db()

    try:
        logger.info("Starting depreciation run", month=month)
        run = post_depreciation_entry(db, month)
        logger.info(
            "Depreciation run finished",
            month=run.month,
            posted=len(run.posted),
            skipped=len(run.skipped),
            total=str(run.total_amount),
        )
        return {
            "month": run.month,
            "posted": len(run.posted),
            "skipped": len(run.skipped),
            "total_amount": str(run.total_amount),
        }

    except LedgerError as e:
        # Business rule failures are not retried
        logger.error("Depreciation run rejected", month=month, **e.to_dict())
        return {"month": month, "status": "rejected", "error": e.to_dict()}
    except Exception as e:
        logger.error("Depreciation run failed", month=month, error=str(e))
        raise
    finally:
        db.close()


@shared_task
def close_period_task(period_id: str, lock_date: Optional[str] = None, closed_by: Optional[str] = None):
    """Close an accounting period in the background."""
    db = get_db()

    try:
        logger.info("Closing accounting period", period_id=period_id)
        result = close_period(
            db,
            UUID(period_id),
            lock_date=date.fromisoformat(lock_date) if lock_date else None,
            closed_by=closed_by,
        )
        payload = {
            "period_id": str(result.period.id),
            "lock_date": str(result.period.lock_date),
            "total_revenue": str(result.total_revenue),
            "total_expense": str(result.total_expense),
            "net_profit": str(result.net_profit),
        }
        get_event_publisher().publish("period.closed", payload)
        logger.info("Accounting period closed", **payload)
        return payload

    except LedgerError as e:
        logger.error("Period close rejected", period_id=period_id, **e.to_dict())
        return {"period_id": period_id, "status": "rejected", "error": e.to_dict()}
    except Exception as e:
        logger.error("Period close failed", period_id=period_id, error=str(e))
        raise
    finally:
        db.close()


@shared_task
def sync_debts_task(debt_kind: str = DebtKind.RECEIVABLE.value):
    """Open debts for ledger entries on 131/331 that were posted without one."""
    db = get_db()

    try:
        if debt_kind not in {kind.value for kind in DebtKind}:
            raise ValidationError(f"Unknown debt kind {debt_kind}", debt_kind=debt_kind)

        logger.info("Syncing debts from the ledger", debt_kind=debt_kind)
        result = sync_debts_from_ledger(db, DebtKind(debt_kind))
        payload = {
            "debt_kind": debt_kind,
            "created": len(result.created),
            "skipped": result.skipped,
        }
        logger.info("Debt sync finished", **payload)
        return payload

    except LedgerError as e:
        logger.error("Debt sync rejected", debt_kind=debt_kind, **e.to_dict())
        return {"debt_kind": debt_kind, "status": "rejected", "error": e.to_dict()}
    except Exception as e:
        logger.error("Debt sync failed", debt_kind=debt_kind, error=str(e))
        raise
    finally:
        db.close()
