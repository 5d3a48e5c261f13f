"""
Voucher Ledger – FastAPI application entry point.

Run with:
    uvicorn voucher_ledger.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlmodel import Session

from voucher_ledger.api.account_routes import account_router
from voucher_ledger.api.report_routes import report_router
from voucher_ledger.api.routes import router
from voucher_ledger.api.voucher_routes import voucher_router
from voucher_ledger.core.config import settings
from voucher_ledger.core.database import create_db_and_tables, engine
from voucher_ledger.core.exceptions import (
    LedgerError,
    ledger_exception_handler,
    validation_exception_handler,
)
from voucher_ledger.core.logging import setup_logging
from voucher_ledger.services.seed import seed_default_chart


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting Voucher Ledger backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    if settings.SEED_DEFAULT_CHART:
        with Session(engine) as session:
            seed_default_chart(session)
    yield
    logger.info("Voucher Ledger backend shut down")


app = FastAPI(
    title="Voucher Ledger API",
    description="Double-entry vouchers, account balances and financial statements",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LedgerError, ledger_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(router)
app.include_router(voucher_router)
app.include_router(report_router)
app.include_router(account_router)


@app.get("/")
def root():
    return {"message": "Voucher Ledger API", "docs": "/docs"}
