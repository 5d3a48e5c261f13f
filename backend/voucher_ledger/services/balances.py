"""
Balance calculator: signed account balances derived from the transaction log.

A transaction counts towards a balance only when it is approved, not deleted,
and its voucher is neither post-dated (cheque pending) nor deleted. Balances
are computed on demand; `account_balances` aggregates many accounts in one
grouped query so reports do not issue one query per account.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from sqlmodel import Session, col, func, select

from voucher_ledger.models.voucher import Voucher, VoucherTransaction
from voucher_ledger.schemas.responses import (
    AccountLedger,
    AccountSummary,
    LedgerLine,
    VoucherSummary,
)
from voucher_ledger.services.chart import get_account


def reportable(stmt, user_id: Optional[str] = None):
    """Apply the reportable-transaction filter to a statement joined to Voucher."""
    stmt = stmt.where(
        VoucherTransaction.is_approved == True,  # noqa: E712
        col(VoucherTransaction.deleted_at).is_(None),
        Voucher.is_post_dated == 0,
        col(Voucher.deleted_at).is_(None),
    )
    if user_id is not None:
        stmt = stmt.where(VoucherTransaction.user_id == user_id)
    return stmt


def account_balance(
    session: Session, account_id: int, user_id: str, as_of: Optional[date] = None
) -> float:
    return account_balances(session, [account_id], user_id, as_of)[account_id]


def account_balances(
    session: Session,
    account_ids: Iterable[int],
    user_id: str,
    as_of: Optional[date] = None,
) -> dict[int, float]:
    """Balance (debit − credit) per account as of `as_of` inclusive; 0.0 when no entries."""
    ids = list(dict.fromkeys(account_ids))
    if not ids:
        return {}

    stmt = (
        select(
            VoucherTransaction.coa_account_id,
            func.coalesce(func.sum(VoucherTransaction.debit), 0.0),
            func.coalesce(func.sum(VoucherTransaction.credit), 0.0),
        )
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .where(col(VoucherTransaction.coa_account_id).in_(ids))
        .group_by(VoucherTransaction.coa_account_id)
    )
    stmt = reportable(stmt, user_id)
    if as_of is not None:
        stmt = stmt.where(VoucherTransaction.date <= as_of)

    balances = {account_id: 0.0 for account_id in ids}
    for account_id, debit, credit in session.exec(stmt):
        balances[account_id] = round(float(debit) - float(credit), 2)
    return balances


def account_ledger(
    session: Session,
    account_id: int,
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> AccountLedger:
    """
    Statement of one account: opening balance strictly before `date_from`,
    the reportable entries in range with a running balance derived on read,
    and the closing balance as of `date_to` (today when omitted).
    """
    account = get_account(session, account_id, user_id)

    opening = 0.0
    if date_from is not None:
        opening = account_balance(session, account_id, user_id, date_from - timedelta(days=1))

    stmt = (
        select(VoucherTransaction, Voucher)
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .where(VoucherTransaction.coa_account_id == account_id)
    )
    stmt = reportable(stmt, user_id)
    if date_from is not None:
        stmt = stmt.where(VoucherTransaction.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(VoucherTransaction.date <= date_to)
    stmt = stmt.order_by(VoucherTransaction.date, VoucherTransaction.id)

    running = opening
    lines = []
    for txn, voucher in session.exec(stmt):
        running = round(running + txn.debit - txn.credit, 2)
        lines.append(
            LedgerLine(
                transaction_id=txn.id,
                date=txn.date,
                voucher=VoucherSummary.model_validate(voucher),
                description=txn.description,
                debit=txn.debit,
                credit=txn.credit,
                running_balance=running,
            )
        )

    closing = account_balance(session, account_id, user_id, date_to or date.today())
    return AccountLedger(
        account=AccountSummary.model_validate(account),
        opening_balance=opening,
        closing_balance=closing,
        transactions=lines,
    )
