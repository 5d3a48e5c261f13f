"""
Chart of accounts routes.

Endpoints:
  GET   /api/accounts
  POST  /api/accounts
  PUT   /api/accounts/{id}
  POST  /api/accounts/{id}/toggle-status
  GET   /api/accounts/{id}/ledger
  GET   /api/accounts/cash
  GET   /api/accounts/bank
  GET   /api/accounts/groups
  POST  /api/accounts/groups
  GET   /api/accounts/groups/{id}/sub-groups
  POST  /api/accounts/sub-groups
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from voucher_ledger.api.deps import get_current_user_id
from voucher_ledger.core.database import get_session
from voucher_ledger.schemas.requests import (
    CoaAccountCreate,
    CoaAccountUpdate,
    CoaGroupCreate,
    CoaSubGroupCreate,
)
from voucher_ledger.schemas.responses import (
    AccountLedger,
    CoaAccountRead,
    CoaGroupRead,
    CoaSubGroupRead,
    GroupTree,
)
from voucher_ledger.services import balances, chart

account_router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@account_router.get("", response_model=list[CoaAccountRead])
def list_accounts(
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    coa_group_id: Optional[int] = Query(default=None, alias="coaGroupId"),
    coa_sub_group_id: Optional[int] = Query(default=None, alias="coaSubGroupId"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.list_accounts(session, user_id, is_active, coa_group_id, coa_sub_group_id)


@account_router.post("", response_model=CoaAccountRead)
def create_account(
    body: CoaAccountCreate,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.create_account(session, body, user_id)


@account_router.get("/cash", response_model=list[CoaAccountRead])
def cash_accounts(
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.cash_accounts(session, user_id)


@account_router.get("/bank", response_model=list[CoaAccountRead])
def bank_accounts(
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.bank_accounts(session, user_id)


@account_router.get("/groups", response_model=list[GroupTree])
def chart_tree(
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.chart_tree(session, user_id)


@account_router.post("/groups", response_model=CoaGroupRead)
def create_group(
    body: CoaGroupCreate,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.create_group(session, body, user_id)


@account_router.get("/groups/{group_id}/sub-groups", response_model=list[CoaSubGroupRead])
def list_sub_groups(
    group_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.list_sub_groups(session, group_id, user_id)


@account_router.post("/sub-groups", response_model=CoaSubGroupRead)
def create_sub_group(
    body: CoaSubGroupCreate,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.create_sub_group(session, body, user_id)


@account_router.put("/{account_id}", response_model=CoaAccountRead)
def update_account(
    account_id: int,
    body: CoaAccountUpdate,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.update_account(session, account_id, body, user_id)


@account_router.post("/{account_id}/toggle-status", response_model=CoaAccountRead)
def toggle_account_status(
    account_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return chart.toggle_account_status(session, account_id, user_id)


@account_router.get("/{account_id}/ledger", response_model=AccountLedger)
def account_ledger(
    account_id: int,
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return balances.account_ledger(session, account_id, user_id, date_from, date_to)
