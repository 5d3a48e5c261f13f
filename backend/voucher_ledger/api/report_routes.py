"""
Financial report routes.

Endpoints:
  POST /api/reports/daily-closing
  GET  /api/reports/balance-sheet
  GET  /api/reports/trial-balance
  GET  /api/reports/general-journal
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from voucher_ledger.api.deps import get_current_user_id
from voucher_ledger.core.database import get_session
from voucher_ledger.schemas.requests import DailyClosingIn
from voucher_ledger.schemas.responses import (
    BalanceSheet,
    DailyClosingReport,
    GeneralJournal,
    TrialBalance,
)
from voucher_ledger.services import reports

report_router = APIRouter(prefix="/api/reports", tags=["reports"])


@report_router.post("/daily-closing", response_model=DailyClosingReport)
def daily_closing(
    body: DailyClosingIn,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    account_ids = [a.id for a in body.coa_accounts] if body.coa_accounts else None
    return reports.daily_closing(session, body.date, user_id, account_ids)


@report_router.get("/balance-sheet", response_model=BalanceSheet)
def balance_sheet(
    as_of: date = Query(alias="date"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return reports.balance_sheet(session, as_of, user_id)


@report_router.get("/trial-balance", response_model=TrialBalance)
def trial_balance(
    date_from: date = Query(alias="from"),
    date_to: date = Query(alias="to"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return reports.trial_balance(session, date_from, date_to, user_id)


@report_router.get("/general-journal", response_model=GeneralJournal)
def general_journal(
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    return reports.general_journal(session, date_from, date_to, user_id)
