"""
Voucher lifecycle: approval toggle, post-dated clearing, soft delete.

A voucher and its entries move together. Each operation goes through
`_transition`, which changes the voucher and cascades to the entries inside
one session transaction; a failure anywhere rolls back both.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from voucher_ledger.core.exceptions import InvalidOperationError, StorageError
from voucher_ledger.models.voucher import Voucher, VoucherTransaction
from voucher_ledger.services.vouchers import PostedVoucher, get_live_voucher


def _cascade(
    session: Session, voucher_id: int, changes: dict[str, Any], include_deleted: bool = False
) -> list[VoucherTransaction]:
    stmt = select(VoucherTransaction).where(VoucherTransaction.voucher_id == voucher_id)
    if not include_deleted:
        stmt = stmt.where(col(VoucherTransaction.deleted_at).is_(None))
    children = list(session.exec(stmt.order_by(VoucherTransaction.id)).all())
    for txn in children:
        for k, v in changes.items():
            setattr(txn, k, v)
        session.add(txn)
    session.flush()
    return children


def _transition(
    session: Session,
    voucher: Voucher,
    action: str,
    voucher_changes: dict[str, Any],
    entry_changes: dict[str, Any],
    include_deleted: bool = False,
) -> PostedVoucher:
    voucher_id = voucher.id
    try:
        for k, v in voucher_changes.items():
            setattr(voucher, k, v)
        session.add(voucher)
        session.flush()
        children = _cascade(session, voucher_id, entry_changes, include_deleted)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Voucher {voucher_id} {action} rolled back: {exc}")
        raise StorageError(f"Voucher {voucher_id} could not be updated") from exc

    session.refresh(voucher)
    for txn in children:
        session.refresh(txn)
    logger.info(f"Voucher {voucher.formatted_no} (type {voucher.type}) {action}")
    return PostedVoucher(voucher, children)


def toggle_approval(session: Session, voucher_id: int, user_id: str) -> PostedVoucher:
    voucher = get_live_voucher(session, voucher_id, user_id)
    approved = not voucher.is_approved
    return _transition(
        session,
        voucher,
        "approved" if approved else "unapproved",
        {"is_approved": approved},
        {"is_approved": approved},
    )


def clear_post_dated(
    session: Session, voucher_id: int, user_id: str, cleared_date: date
) -> PostedVoucher:
    """Mark the cheque cleared; entries move to `cleared_date` and start counting."""
    voucher = get_live_voucher(session, voucher_id, user_id)
    return _transition(
        session,
        voucher,
        f"cleared on {cleared_date.isoformat()}",
        {"is_post_dated": 0, "cleared_date": cleared_date},
        {"date": cleared_date},
    )


def delete_voucher(session: Session, voucher_id: int, user_id: str) -> PostedVoucher:
    voucher = get_live_voucher(session, voucher_id, user_id)
    if voucher.is_auto:
        raise InvalidOperationError(
            "Cannot delete auto-generated voucher", {"voucher_id": voucher_id}
        )
    deleted_at = datetime.now(timezone.utc)
    return _transition(
        session,
        voucher,
        "deleted",
        {"deleted_at": deleted_at},
        {"deleted_at": deleted_at},
        include_deleted=True,
    )
