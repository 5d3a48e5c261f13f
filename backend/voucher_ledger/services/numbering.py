"""
Voucher numbering, scoped per voucher type.

Numbers come from one `voucher_sequences` counter row per type. The row is
incremented with an UPDATE as the first write of the create transaction, so
concurrent writers for the same type queue on its lock (row lock on
PostgreSQL, the database write lock on SQLite) instead of racing on max + 1.
The increment is rolled back with the voucher, so a failed create does not
consume a number. Soft-deleted vouchers keep their numbers.

The counter row for a type is created on first use from the current maximum.
Two writers creating it at the same time collide on its primary key; the
loser gets a ConflictError and the ledger writer retries, this time through
the UPDATE path. The (type, voucher_no) unique constraint on `vouchers` stays
as a backstop.
"""
from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from voucher_ledger.core.exceptions import ConflictError
from voucher_ledger.models.voucher import Voucher, VoucherSequence


def _max_voucher_no(session: Session, voucher_type: int) -> int:
    current = session.exec(
        select(func.max(Voucher.voucher_no)).where(Voucher.type == voucher_type)
    ).one()
    return current or 0


def next_voucher_no(session: Session, voucher_type: int) -> int:
    """The number the next voucher of this type will get. Read only, takes no lock."""
    last = session.exec(
        select(VoucherSequence.last_no).where(VoucherSequence.type == voucher_type)
    ).first()
    if last is None:
        last = _max_voucher_no(session, voucher_type)
    return last + 1


def allocate_voucher_no(session: Session, voucher_type: int) -> int:
    """Increment the type's counter inside the caller's transaction and return the new value."""
    bumped = session.execute(
        update(VoucherSequence)
        .where(VoucherSequence.type == voucher_type)
        .values(last_no=VoucherSequence.last_no + 1)
        .execution_options(synchronize_session=False)
    )
    if bumped.rowcount:
        return session.exec(
            select(VoucherSequence.last_no)
            .where(VoucherSequence.type == voucher_type)
            .with_for_update()
        ).one()

    # First voucher of this type since the counter table was created
    value = _max_voucher_no(session, voucher_type) + 1
    session.add(VoucherSequence(type=voucher_type, last_no=value))
    try:
        session.flush()
    except IntegrityError as exc:
        logger.warning(f"Voucher counter for type {voucher_type} created concurrently")
        raise ConflictError(
            f"Voucher counter for type {voucher_type} already exists", {"type": voucher_type}
        ) from exc
    logger.debug(f"Voucher counter for type {voucher_type} started at {value}")
    return value


def reserve_voucher_no(session: Session, voucher: Voucher) -> Voucher:
    """Assign the next number to an unsaved voucher and flush it."""
    voucher.voucher_no = allocate_voucher_no(session, voucher.type)
    session.add(voucher)
    try:
        session.flush()
    except IntegrityError as exc:
        logger.warning(
            f"Voucher number {voucher.voucher_no} for type {voucher.type} already taken"
        )
        raise ConflictError(
            f"Voucher number {voucher.voucher_no} already taken",
            {"type": voucher.type, "voucher_no": voucher.voucher_no},
        ) from exc
    return voucher
