"""
Service-level routes.

Endpoints:
  GET  /api/health
  GET  /api/voucher-types
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from voucher_ledger.core.database import get_session
from voucher_ledger.models.voucher import Voucher, VoucherType
from voucher_ledger.schemas.responses import HealthResponse

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(select(Voucher).limit(1))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status)


@router.get("/voucher-types")
def voucher_types():
    """Voucher types for form dropdowns, with whether a counter entry is synthesized."""
    return [
        {"value": int(t), "label": f"{t.label} Voucher", "counter_side": t.counter_side}
        for t in VoucherType
    ]
