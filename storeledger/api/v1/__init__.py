from fastapi import APIRouter

from .endpoints import accounts, journal_entries, posting, fixed_assets, periods, debts, reports, health, websocket

api_router = APIRouter()

api_router.include_router(accounts.router, prefix="/accounting", tags=["chart-of-accounts"])
api_router.include_router(journal_entries.router, prefix="/accounting", tags=["journal-entries"])
api_router.include_router(posting.router, prefix="/accounting", tags=["posting"])
api_router.include_router(fixed_assets.router, prefix="/accounting", tags=["fixed-assets"])
api_router.include_router(periods.router, prefix="/accounting", tags=["periods"])
api_router.include_router(debts.router, prefix="/accounting", tags=["receivables-payables"])
api_router.include_router(reports.router, prefix="/accounting", tags=["reports"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(websocket.router, prefix="/ws", tags=["websocket"])
