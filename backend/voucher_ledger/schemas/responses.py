"""Pydantic response schemas for API endpoints."""
from __future__ import annotations

import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict

from voucher_ledger.models.chart import Classification


class _ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"


# ── Chart of accounts ─────────────────────────────────────────────────────────


class CoaGroupRead(_ORMModel):
    id: int
    code: str
    name: str
    parent: Classification
    user_id: Optional[str]
    is_active: bool


class CoaSubGroupRead(_ORMModel):
    id: int
    coa_group_id: int
    code: str
    name: str
    type: Optional[str]
    user_id: Optional[str]
    is_active: bool


class CoaAccountRead(_ORMModel):
    id: int
    coa_group_id: int
    coa_sub_group_id: int
    code: str
    name: str
    description: Optional[str]
    user_id: Optional[str]
    is_active: bool
    is_default: bool


class SubGroupTree(CoaSubGroupRead):
    accounts: list[CoaAccountRead] = []


class GroupTree(CoaGroupRead):
    sub_groups: list[SubGroupTree] = []


# ── Vouchers ──────────────────────────────────────────────────────────────────


class AccountSummary(_ORMModel):
    id: int
    name: str
    code: str


class VoucherSummary(_ORMModel):
    id: int
    voucher_no: int
    type: int
    name: Optional[str]


class TransactionRead(_ORMModel):
    id: int
    voucher_id: int
    coa_account_id: int
    debit: float
    credit: float
    balance: float
    description: Optional[str]
    date: dt.date
    user_id: str
    is_approved: bool
    deleted_at: Optional[dt.datetime]


class VoucherRead(_ORMModel):
    id: int
    voucher_no: int
    type: int
    date: dt.date
    name: Optional[str]
    total_amount: float
    is_approved: bool
    is_post_dated: int
    cheque_no: Optional[str]
    cheque_date: Optional[dt.date]
    cleared_date: Optional[dt.date]
    is_auto: bool
    user_id: str
    generated_at: dt.datetime
    deleted_at: Optional[dt.datetime]


class VoucherDetail(VoucherRead):
    transactions: list[TransactionRead] = []


class VoucherEnvelope(BaseModel):
    status: str = "ok"
    message: str
    voucher: VoucherDetail


class VoucherListResponse(BaseModel):
    total: int
    vouchers: list[VoucherDetail]


class MessageResponse(BaseModel):
    status: str = "ok"
    message: str


# ── Ledger ────────────────────────────────────────────────────────────────────


class LedgerLine(BaseModel):
    transaction_id: int
    date: dt.date
    voucher: VoucherSummary
    description: Optional[str]
    debit: float
    credit: float
    running_balance: float


class AccountLedger(BaseModel):
    account: AccountSummary
    opening_balance: float
    closing_balance: float
    transactions: list[LedgerLine]


# ── Reports ───────────────────────────────────────────────────────────────────


class OpeningBalance(BaseModel):
    account_id: int
    account_name: str
    opening_bal: float


class MovementAmount(BaseModel):
    transaction_id: int
    amount: float


class MovementGroup(BaseModel):
    """One voucher's movements on one cash/bank account for the day."""

    voucher_id: int
    voucher_no: str  # "V<no>"
    account_id: int
    account: str
    description: str
    transactions: list[MovementAmount]
    total: float


class DailyClosingReport(BaseModel):
    date: dt.date
    coa_accounts: list[AccountSummary]
    opening_balances: list[OpeningBalance]
    debit_transactions: list[MovementGroup]
    credit_transactions: list[MovementGroup]


class BalanceSheetLine(BaseModel):
    id: int
    name: str
    code: str
    balance: float
    sub_group: str
    group: str


class BalanceSheet(BaseModel):
    as_of: dt.date
    assets: list[BalanceSheetLine]
    liabilities: list[BalanceSheetLine]
    capital: list[BalanceSheetLine]
    revenue: float
    expense: float
    cost: float
    net_profit: float


class TrialBalanceLine(BaseModel):
    id: int
    name: str
    code: str
    debit: float
    credit: float
    balance: float
    group: str
    sub_group: str


class TrialBalance(BaseModel):
    date_from: dt.date
    date_to: dt.date
    assets: list[TrialBalanceLine]
    liabilities: list[TrialBalanceLine]
    capital: list[TrialBalanceLine]
    revenues: list[TrialBalanceLine]
    expenses: list[TrialBalanceLine]
    cost: list[TrialBalanceLine]
    total_debit: float
    total_credit: float


class JournalLine(BaseModel):
    id: int
    date: dt.date
    debit: float
    credit: float
    description: Optional[str]
    user_id: str
    voucher: VoucherSummary
    coa_account: AccountSummary


class GeneralJournal(BaseModel):
    date_from: Optional[dt.date]
    date_to: Optional[dt.date]
    entries: list[JournalLine]
