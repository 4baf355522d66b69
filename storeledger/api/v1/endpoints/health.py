from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, text
from sqlalchemy.orm import Session

from storeledger.db.dependencies import get_db
from storeledger.core.config import get_settings
from storeledger.models.accounting import Account

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    database: str
    chart_of_accounts: str
    broker: str


def _chart_status(db: Session) -> str:
    count = db.query(func.count(Account.id)).scalar() or 0
    return f"{count} accounts" if count else "not seeded"


@router.get("", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Check the ledger database, the chart of accounts and the task broker."""
    settings = get_settings()

    # Database check
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
        chart_status = _chart_status(db)
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        chart_status = "unknown"

    # Broker check (depreciation and closing jobs run through it)
    try:
        import redis
        r = redis.from_url(settings.redis_url, socket_connect_timeout=1)
        r.ping()
        broker_status = "healthy"
    except Exception as e:
        broker_status = f"unhealthy: {str(e)}"

    ledger_ready = db_status == "healthy" and chart_status != "not seeded"
    return HealthResponse(
        status="healthy" if ledger_ready and broker_status == "healthy" else "degraded",
        database=db_status,
        chart_of_accounts=chart_status,
        broker=broker_status,
    )


@router.get("/ready", response_model=dict)
def readiness_check(db: Session = Depends(get_db)):
    """Ready once the database answers and the chart of accounts is loaded."""
    try:
        if _chart_status(db) == "not seeded":
            return {"status": "not_ready", "reason": "chart of accounts not seeded"}
        return {"status": "ready"}
    except Exception:
        return {"status": "not_ready"}


@router.get("/live", response_model=dict)
def liveness_check():
    """Liveness check."""
    return {"status": "alive"}
