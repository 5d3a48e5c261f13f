"""
Ledger writer and voucher queries.

`create_voucher` validates everything before touching the database, then
writes the voucher and all of its entries in one session transaction:

  1. reserve the next number for the voucher type,
  2. insert the voucher (unapproved, post-dated when a cheque is given),
  3. insert one entry per line with its balance snapshot,
  4. insert the counter-account entry for Receipt/Payment vouchers.

Either everything commits or nothing does. Numbers come from a per-type
counter row locked for the rest of the transaction. A numbering conflict (two writers
starting a new counter row at once) rolls the attempt back and starts over
after a short random pause, up to VOUCHER_NO_MAX_RETRIES attempts.
"""
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from voucher_ledger.core.config import settings
from voucher_ledger.core.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from voucher_ledger.models.voucher import CounterSide, Voucher, VoucherTransaction, VoucherType
from voucher_ledger.schemas.requests import VoucherCreate
from voucher_ledger.schemas.responses import TransactionRead, VoucherDetail
from voucher_ledger.services.balances import account_balances
from voucher_ledger.services.chart import get_account, get_accounts
from voucher_ledger.services.numbering import reserve_voucher_no


@dataclass
class PlannedEntry:
    account_id: int
    debit: float
    credit: float
    description: Optional[str] = None
    is_counter: bool = False


@dataclass
class PostedVoucher:
    voucher: Voucher
    transactions: list[VoucherTransaction] = field(default_factory=list)

    def to_detail(self) -> VoucherDetail:
        detail = VoucherDetail.model_validate(self.voucher)
        detail.transactions = [TransactionRead.model_validate(t) for t in self.transactions]
        return detail


def _money(value: float) -> float:
    return round(float(value), 2)


# ── Validation / planning (no writes) ─────────────────────────────────────────


def _voucher_type(value: int) -> VoucherType:
    try:
        return VoucherType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown voucher type {value}", {"type": "must be between 1 and 7"}
        ) from None


def plan_entries(
    session: Session, data: VoucherCreate, user_id: str
) -> tuple[VoucherType, list[PlannedEntry]]:
    """Check the voucher and return the entries to write, counter entry included."""
    vtype = _voucher_type(data.type)
    fields: dict[str, str] = {}

    if data.total_amount is None or data.total_amount <= 0:
        fields["totalAmount"] = "must be greater than 0"
    if not data.lines:
        fields["list"] = "at least one entry is required"
    if fields:
        raise ValidationError("Invalid voucher", fields)

    accounts = get_accounts(session, (line.account.id for line in data.lines), user_id)
    entries: list[PlannedEntry] = []
    for i, line in enumerate(data.lines):
        account = accounts.get(line.account.id)
        if account is None or not account.is_active:
            fields[f"list.{i}.account.id"] = (
                f"account {line.account.id} does not exist or is inactive"
            )
        if line.dr < 0 or line.cr < 0:
            fields[f"list.{i}"] = "dr and cr must be >= 0"
        elif line.dr == 0 and line.cr == 0:
            fields[f"list.{i}"] = "entry must carry a debit or a credit"
        entries.append(
            PlannedEntry(
                account_id=line.account.id,
                debit=_money(line.dr),
                credit=_money(line.cr),
                description=line.description,
            )
        )
    if fields:
        raise ValidationError("Invalid voucher entries", fields)

    side = vtype.counter_side
    if side is not None and data.account is not None:
        counter = get_account(session, data.account.id, user_id)
        if not counter.is_active:
            raise ValidationError(
                "Counter account is inactive", {"account.id": f"account {counter.id} is inactive"}
            )
        # The counter entry carries the total, so the lines must net to it on the other side
        lines_dr = _money(sum(e.debit for e in entries))
        lines_cr = _money(sum(e.credit for e in entries))
        net = lines_cr - lines_dr if side == CounterSide.DEBIT else lines_dr - lines_cr
        if _money(net) != _money(data.total_amount):
            raise ValidationError(
                "Entries do not add up to the voucher total",
                {"totalAmount": f"{_money(data.total_amount)} != entries {_money(net)}"},
            )
        amount = _money(data.total_amount)
        entries.append(
            PlannedEntry(
                account_id=counter.id,
                debit=amount if side == CounterSide.DEBIT else 0.0,
                credit=amount if side == CounterSide.CREDIT else 0.0,
                is_counter=True,
            )
        )
    elif data.account is not None:
        logger.debug(f"{vtype.label} voucher ignores counter account {data.account.id}")

    total_dr = _money(sum(e.debit for e in entries))
    total_cr = _money(sum(e.credit for e in entries))
    if total_dr != total_cr:
        raise ValidationError(
            "Unbalanced voucher: debits must equal credits",
            {"list": f"debit {total_dr} != credit {total_cr}"},
        )
    if total_dr != _money(data.total_amount):
        raise ValidationError(
            "Entries do not add up to the voucher total",
            {"totalAmount": f"{_money(data.total_amount)} != entries {total_dr}"},
        )
    return vtype, entries


# ── Writes ────────────────────────────────────────────────────────────────────


def _write_voucher(
    session: Session,
    data: VoucherCreate,
    vtype: VoucherType,
    entries: list[PlannedEntry],
    user_id: str,
    is_auto: bool,
) -> PostedVoucher:
    voucher = Voucher(
        voucher_no=0,
        type=int(vtype),
        date=data.date,
        name=data.name,
        total_amount=_money(data.total_amount),
        is_approved=False,
        is_post_dated=1 if data.cheque_no else 0,
        cheque_no=data.cheque_no,
        cheque_date=data.cheque_date,
        is_auto=is_auto,
        user_id=user_id,
    )
    # First write of the transaction: holds the counter lock until commit, so the
    # balance snapshot below cannot interleave with another writer on this type
    reserve_voucher_no(session, voucher)

    prior = account_balances(session, (e.account_id for e in entries), user_id, data.date)
    transactions = []
    for entry in entries:
        description = entry.description
        if entry.is_counter:
            description = f"{vtype.label} Voucher {voucher.voucher_no}"
        txn = VoucherTransaction(
            voucher_id=voucher.id,
            coa_account_id=entry.account_id,
            debit=entry.debit,
            credit=entry.credit,
            balance=_money(prior[entry.account_id] + entry.debit - entry.credit),
            description=description,
            date=data.date,
            user_id=user_id,
            is_approved=False,
        )
        session.add(txn)
        transactions.append(txn)
    session.flush()
    return PostedVoucher(voucher=voucher, transactions=transactions)


def create_voucher(
    session: Session, data: VoucherCreate, user_id: str, is_auto: bool = False
) -> PostedVoucher:
    vtype, entries = plan_entries(session, data, user_id)

    attempts = max(1, settings.VOUCHER_NO_MAX_RETRIES)
    for attempt in range(1, attempts + 1):
        try:
            posted = _write_voucher(session, data, vtype, entries, user_id, is_auto)
            session.commit()
        except ConflictError:
            session.rollback()
            logger.warning(
                f"{vtype.label} voucher numbering conflict, attempt {attempt}/{attempts}"
            )
            if attempt < attempts:
                time.sleep(random.uniform(0, settings.VOUCHER_NO_RETRY_BACKOFF * attempt))
            continue
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"{vtype.label} voucher write rolled back: {exc}")
            raise StorageError("Voucher could not be saved") from exc

        session.refresh(posted.voucher)
        for txn in posted.transactions:
            session.refresh(txn)
        logger.info(
            f"{vtype.label} voucher {posted.voucher.formatted_no} created by {user_id}: "
            f"{len(posted.transactions)} entries, total {posted.voucher.total_amount}"
        )
        return posted

    raise StorageError(
        f"Could not reserve a {vtype.label} voucher number after {attempts} attempts",
        {"type": int(vtype)},
    )


# ── Reads ─────────────────────────────────────────────────────────────────────


def _transactions_for(
    session: Session, voucher_ids: list[int]
) -> dict[int, list[VoucherTransaction]]:
    by_voucher: dict[int, list[VoucherTransaction]] = {vid: [] for vid in voucher_ids}
    if not voucher_ids:
        return by_voucher
    rows = session.exec(
        select(VoucherTransaction)
        .where(col(VoucherTransaction.voucher_id).in_(voucher_ids))
        .order_by(VoucherTransaction.id)
    ).all()
    for txn in rows:
        by_voucher[txn.voucher_id].append(txn)
    return by_voucher


def get_live_voucher(session: Session, voucher_id: int, user_id: str) -> Voucher:
    """The user's voucher, unless it does not exist or is soft-deleted."""
    voucher = session.exec(
        select(Voucher).where(
            Voucher.id == voucher_id,
            Voucher.user_id == user_id,
            col(Voucher.deleted_at).is_(None),
        )
    ).first()
    if not voucher:
        raise NotFoundError("Voucher", voucher_id)
    return voucher


def get_voucher(session: Session, voucher_id: int, user_id: str) -> PostedVoucher:
    voucher = get_live_voucher(session, voucher_id, user_id)
    return PostedVoucher(voucher, _transactions_for(session, [voucher.id])[voucher.id])


def list_vouchers(
    session: Session,
    user_id: str,
    voucher_no: Optional[int] = None,
    voucher_type: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    is_approved: Optional[bool] = None,
    is_post_dated: Optional[int] = None,
    coa_account_id: Optional[int] = None,
) -> list[PostedVoucher]:
    stmt = select(Voucher).where(
        Voucher.user_id == user_id, col(Voucher.deleted_at).is_(None)
    )
    if voucher_no is not None:
        stmt = stmt.where(Voucher.voucher_no == voucher_no)
    if voucher_type is not None:
        stmt = stmt.where(Voucher.type == voucher_type)
    if date_from:
        stmt = stmt.where(Voucher.date >= date_from)
    if date_to:
        stmt = stmt.where(Voucher.date <= date_to)
    if is_approved is not None:
        stmt = stmt.where(Voucher.is_approved == is_approved)
    if is_post_dated is not None:
        stmt = stmt.where(Voucher.is_post_dated == is_post_dated)
    if coa_account_id is not None:
        stmt = stmt.where(
            col(Voucher.id).in_(
                select(VoucherTransaction.voucher_id).where(
                    VoucherTransaction.coa_account_id == coa_account_id
                )
            )
        )
    stmt = stmt.order_by(col(Voucher.date).desc(), col(Voucher.id).desc())

    vouchers = session.exec(stmt).all()
    by_voucher = _transactions_for(session, [v.id for v in vouchers])
    return [PostedVoucher(v, by_voucher[v.id]) for v in vouchers]
