"""
Voucher API routes.

Endpoints:
  GET    /api/vouchers
  POST   /api/vouchers
  GET    /api/vouchers/{id}
  POST   /api/vouchers/{id}/approve
  POST   /api/vouchers/{id}/clear-post-dated
  DELETE /api/vouchers/{id}
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from voucher_ledger.api.deps import get_current_user_id
from voucher_ledger.core.database import get_session
from voucher_ledger.schemas.requests import ClearPostDatedIn, VoucherCreate
from voucher_ledger.schemas.responses import (
    MessageResponse,
    VoucherDetail,
    VoucherEnvelope,
    VoucherListResponse,
)
from voucher_ledger.services import lifecycle, vouchers

voucher_router = APIRouter(prefix="/api/vouchers", tags=["vouchers"])


@voucher_router.get("", response_model=VoucherListResponse)
def list_vouchers(
    voucher_no: Optional[int] = Query(default=None, alias="voucherNo"),
    voucher_type: Optional[int] = Query(default=None, alias="type", ge=1, le=7),
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    is_approved: Optional[bool] = Query(default=None, alias="isApproved"),
    is_post_dated: Optional[int] = Query(default=None, alias="isPostDated", ge=0, le=1),
    coa_account_id: Optional[int] = Query(default=None, alias="coaAccountId"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    items = vouchers.list_vouchers(
        session,
        user_id,
        voucher_no=voucher_no,
        voucher_type=voucher_type,
        date_from=date_from,
        date_to=date_to,
        is_approved=is_approved,
        is_post_dated=is_post_dated,
        coa_account_id=coa_account_id,
    )
    return VoucherListResponse(total=len(items), vouchers=[p.to_detail() for p in items])


@voucher_router.post("", response_model=VoucherEnvelope)
def create_voucher(
    body: VoucherCreate,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    posted = vouchers.create_voucher(session, body, user_id)
    return VoucherEnvelope(message="Voucher created successfully", voucher=posted.to_detail())


@voucher_router.get("/{voucher_id}", response_model=VoucherDetail)
def get_voucher(
    voucher_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return vouchers.get_voucher(session, voucher_id, user_id).to_detail()


@voucher_router.post("/{voucher_id}/approve", response_model=VoucherEnvelope)
def toggle_approval(
    voucher_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    posted = lifecycle.toggle_approval(session, voucher_id, user_id)
    message = (
        "Voucher approved successfully"
        if posted.voucher.is_approved
        else "Voucher unapproved successfully"
    )
    return VoucherEnvelope(message=message, voucher=posted.to_detail())


@voucher_router.post("/{voucher_id}/clear-post-dated", response_model=VoucherEnvelope)
def clear_post_dated(
    voucher_id: int,
    body: ClearPostDatedIn,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    posted = lifecycle.clear_post_dated(session, voucher_id, user_id, body.date)
    return VoucherEnvelope(
        message="Post-dated voucher cleared successfully", voucher=posted.to_detail()
    )


@voucher_router.delete("/{voucher_id}", response_model=MessageResponse)
def delete_voucher(
    voucher_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    lifecycle.delete_voucher(session, voucher_id, user_id)
    return MessageResponse(message="Voucher deleted successfully")
