import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storeledger.core.config import get_settings

settings = get_settings()

app = FastAPI(
    title=settings.project_name,
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
from storeledger.api.v1 import api_router
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.project_name,
        "docs": "/docs",
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """Create tables and seed the chart of accounts."""
    logging.basicConfig(level=logging.INFO)

    from storeledger.db.session import SessionLocal, engine
    from storeledger.domain.accounting.chart import seed_chart_of_accounts
    from storeledger.models import Base

    Base.metadata.create_all(bind=engine)

    if settings.seed_chart_on_startup:
        db = SessionLocal()
        try:
            created = seed_chart_of_accounts(db)
            logging.info(f"Chart of accounts ready ({created} accounts created)")
        finally:
            db.close()
