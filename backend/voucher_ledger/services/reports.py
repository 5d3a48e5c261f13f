"""
Financial reports composed from the chart, the balance calculator and the
transaction log. Every function here is a read.

Each report section is one query: balances are aggregated for all accounts at
once with GROUP BY rather than per account.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from loguru import logger
from sqlmodel import Session, col, func, select

from voucher_ledger.core.exceptions import NotFoundError, ValidationError
from voucher_ledger.models.chart import Classification, CoaAccount, CoaGroup, CoaSubGroup
from voucher_ledger.models.voucher import Voucher, VoucherTransaction
from voucher_ledger.schemas.responses import (
    AccountSummary,
    BalanceSheet,
    BalanceSheetLine,
    DailyClosingReport,
    GeneralJournal,
    JournalLine,
    MovementAmount,
    MovementGroup,
    OpeningBalance,
    TrialBalance,
    TrialBalanceLine,
    VoucherSummary,
)
from voucher_ledger.services.balances import account_balances, reportable
from voucher_ledger.services.chart import accounts_of_type, get_accounts, visible_to


def _classified_accounts(session: Session, user_id: str, active_parents: bool = True):
    """(account, sub_group, group) for every active account; optionally only under active sub-groups and groups.

    Groups are filtered by owner; a sub-group is reached through a visible
    account and is only checked for being active.
    """
    stmt = (
        select(CoaAccount, CoaSubGroup, CoaGroup)
        .join(CoaSubGroup, CoaAccount.coa_sub_group_id == CoaSubGroup.id)
        .join(CoaGroup, CoaAccount.coa_group_id == CoaGroup.id)
        .where(
            visible_to(CoaAccount, user_id),
            visible_to(CoaGroup, user_id),
            CoaAccount.is_active == True,  # noqa: E712
        )
        .order_by(CoaGroup.code, CoaSubGroup.code, CoaAccount.code)
    )
    if active_parents:
        stmt = stmt.where(
            CoaSubGroup.is_active == True,  # noqa: E712
            CoaGroup.is_active == True,  # noqa: E712
        )
    return session.exec(stmt).all()


# ── Daily closing ─────────────────────────────────────────────────────────────


def _group_movements(rows, accounts: dict[int, CoaAccount], side: str) -> list[MovementGroup]:
    groups: dict[tuple[int, int], MovementGroup] = {}
    for txn, voucher in rows:
        amount = getattr(txn, side)
        if amount <= 0:
            continue
        key = (txn.coa_account_id, voucher.id)
        group = groups.get(key)
        if group is None:
            group = groups[key] = MovementGroup(
                voucher_id=voucher.id,
                voucher_no=voucher.formatted_no,
                account_id=txn.coa_account_id,
                account=accounts[txn.coa_account_id].name,
                description=txn.description or voucher.name or "",
                transactions=[],
                total=0.0,
            )
        group.transactions.append(MovementAmount(transaction_id=txn.id, amount=amount))
        group.total = round(group.total + amount, 2)
    return list(groups.values())


def daily_closing(
    session: Session,
    day: date,
    user_id: str,
    account_ids: Optional[list[int]] = None,
) -> DailyClosingReport:
    """
    Cash/bank position for one day: each account's opening balance (as of the
    previous day) and the day's debit and credit movements, grouped by voucher.
    Defaults to every active cash and bank account the user can see.
    """
    if account_ids:
        found = get_accounts(session, account_ids, user_id)
        missing = [i for i in dict.fromkeys(account_ids) if i not in found]
        if missing:
            raise NotFoundError("Account", missing[0] if len(missing) == 1 else missing)
        accounts = [found[i] for i in dict.fromkeys(account_ids)]
    else:
        accounts = accounts_of_type(session, user_id)

    by_id = {a.id: a for a in accounts}
    opening = account_balances(session, by_id, user_id, day - timedelta(days=1))

    rows = []
    if by_id:
        stmt = (
            select(VoucherTransaction, Voucher)
            .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
            .where(
                col(VoucherTransaction.coa_account_id).in_(list(by_id)),
                VoucherTransaction.date == day,
            )
            .order_by(VoucherTransaction.date, Voucher.id, VoucherTransaction.id)
        )
        rows = session.exec(reportable(stmt, user_id)).all()
    # Account order first, then the order vouchers appeared in
    order = {account_id: i for i, account_id in enumerate(by_id)}
    rows = sorted(rows, key=lambda r: order[r[0].coa_account_id])

    logger.debug(f"Daily closing {day} for {user_id}: {len(accounts)} accounts, {len(rows)} entries")
    return DailyClosingReport(
        date=day,
        coa_accounts=[AccountSummary.model_validate(a) for a in accounts],
        opening_balances=[
            OpeningBalance(account_id=a.id, account_name=a.name, opening_bal=opening[a.id])
            for a in accounts
        ],
        debit_transactions=_group_movements(rows, by_id, "debit"),
        credit_transactions=_group_movements(rows, by_id, "credit"),
    )


# ── Balance sheet ─────────────────────────────────────────────────────────────


def balance_sheet(session: Session, as_of: date, user_id: str) -> BalanceSheet:
    """
    Assets, liabilities and capital listed per account; revenues, expenses and
    cost only as totals. net_profit = revenue − expense − cost.
    """
    rows = _classified_accounts(session, user_id)
    balances = account_balances(session, (a.id for a, _, _ in rows), user_id, as_of)

    listed: dict[Classification, list[BalanceSheetLine]] = {
        Classification.ASSETS: [],
        Classification.LIABILITIES: [],
        Classification.CAPITAL: [],
    }
    totals = {
        Classification.REVENUES: 0.0,
        Classification.EXPENSES: 0.0,
        Classification.COST: 0.0,
    }
    for account, sub_group, group in rows:
        balance = balances[account.id]
        if group.parent in listed:
            listed[group.parent].append(
                BalanceSheetLine(
                    id=account.id,
                    name=account.name,
                    code=account.code,
                    balance=balance,
                    sub_group=sub_group.name,
                    group=group.name,
                )
            )
        elif group.parent in totals:
            totals[group.parent] += balance

    revenue = round(totals[Classification.REVENUES], 2)
    expense = round(totals[Classification.EXPENSES], 2)
    cost = round(totals[Classification.COST], 2)
    logger.debug(f"Balance sheet as of {as_of} for {user_id}: {len(rows)} accounts")
    return BalanceSheet(
        as_of=as_of,
        assets=listed[Classification.ASSETS],
        liabilities=listed[Classification.LIABILITIES],
        capital=listed[Classification.CAPITAL],
        revenue=revenue,
        expense=expense,
        cost=cost,
        net_profit=round(revenue - expense - cost, 2),
    )


# ── Trial balance ─────────────────────────────────────────────────────────────

_TB_SECTIONS = {
    Classification.ASSETS: "assets",
    Classification.LIABILITIES: "liabilities",
    Classification.CAPITAL: "capital",
    Classification.REVENUES: "revenues",
    Classification.EXPENSES: "expenses",
    Classification.COST: "cost",
}


def trial_balance(
    session: Session, date_from: date, date_to: date, user_id: str
) -> TrialBalance:
    """Debit and credit totals per active account over [date_from, date_to]."""
    if date_from > date_to:
        raise ValidationError(
            "Invalid date range", {"from": f"{date_from} is after to {date_to}"}
        )

    rows = _classified_accounts(session, user_id, active_parents=False)
    stmt = (
        select(
            VoucherTransaction.coa_account_id,
            func.coalesce(func.sum(VoucherTransaction.debit), 0.0),
            func.coalesce(func.sum(VoucherTransaction.credit), 0.0),
        )
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .where(
            VoucherTransaction.date >= date_from,
            VoucherTransaction.date <= date_to,
        )
        .group_by(VoucherTransaction.coa_account_id)
    )
    sums = {
        account_id: (round(float(dr), 2), round(float(cr), 2))
        for account_id, dr, cr in session.exec(reportable(stmt, user_id))
    }

    sections: dict[str, list[TrialBalanceLine]] = {name: [] for name in _TB_SECTIONS.values()}
    total_debit = total_credit = 0.0
    for account, sub_group, group in rows:
        debit, credit = sums.get(account.id, (0.0, 0.0))
        total_debit += debit
        total_credit += credit
        sections[_TB_SECTIONS[group.parent]].append(
            TrialBalanceLine(
                id=account.id,
                name=account.name,
                code=account.code,
                debit=debit,
                credit=credit,
                balance=round(debit - credit, 2),
                group=group.name,
                sub_group=sub_group.name,
            )
        )

    return TrialBalance(
        date_from=date_from,
        date_to=date_to,
        total_debit=round(total_debit, 2),
        total_credit=round(total_credit, 2),
        **sections,
    )


# ── General journal ───────────────────────────────────────────────────────────


def general_journal(
    session: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    user_id: Optional[str] = None,
) -> GeneralJournal:
    """Every reportable entry in date order, optionally limited to a range and a user."""
    if date_from and date_to and date_from > date_to:
        raise ValidationError(
            "Invalid date range", {"from": f"{date_from} is after to {date_to}"}
        )

    stmt = (
        select(VoucherTransaction, Voucher, CoaAccount)
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .join(CoaAccount, VoucherTransaction.coa_account_id == CoaAccount.id)
    )
    stmt = reportable(stmt, user_id)
    if date_from:
        stmt = stmt.where(VoucherTransaction.date >= date_from)
    if date_to:
        stmt = stmt.where(VoucherTransaction.date <= date_to)
    stmt = stmt.order_by(VoucherTransaction.date, Voucher.id, VoucherTransaction.id)

    entries = [
        JournalLine(
            id=txn.id,
            date=txn.date,
            debit=txn.debit,
            credit=txn.credit,
            description=txn.description,
            user_id=txn.user_id,
            voucher=VoucherSummary.model_validate(voucher),
            coa_account=AccountSummary.model_validate(account),
        )
        for txn, voucher, account in session.exec(stmt)
    ]
    return GeneralJournal(date_from=date_from, date_to=date_to, entries=entries)
