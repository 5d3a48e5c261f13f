"""SQLModel models for vouchers and their ledger entries."""
import datetime as dt
from enum import Enum, IntEnum
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from voucher_ledger.models.chart import utcnow


class CounterSide(str, Enum):
    """Side the synthesized counter-account entry posts to."""

    DEBIT = "debit"
    CREDIT = "credit"


class VoucherType(IntEnum):
    RECEIPT = 1
    PAYMENT = 2
    PURCHASE = 3
    SALES = 4
    CONTRA = 5
    JOURNAL = 6
    EXTENDED_JOURNAL = 7

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def counter_side(self) -> Optional[str]:
        """
        Entry synthesis strategy. Receipt brings money into the counter
        (cash/bank) account, Payment takes it out; every other type must
        state both sides explicitly in its lines.
        """
        return _COUNTER_SIDES.get(self)


_LABELS = {
    VoucherType.RECEIPT: "Receipt",
    VoucherType.PAYMENT: "Payment",
    VoucherType.PURCHASE: "Purchase",
    VoucherType.SALES: "Sales",
    VoucherType.CONTRA: "Contra",
    VoucherType.JOURNAL: "Journal",
    VoucherType.EXTENDED_JOURNAL: "Extended Journal",
}

_COUNTER_SIDES = {
    VoucherType.RECEIPT: CounterSide.DEBIT,
    VoucherType.PAYMENT: CounterSide.CREDIT,
}


class Voucher(SQLModel, table=True):
    """One accounting document; exclusively owns its VoucherTransaction rows."""

    __tablename__ = "vouchers"
    __table_args__ = (UniqueConstraint("type", "voucher_no", name="uq_voucher_type_no"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    voucher_no: int = Field(index=True)
    type: int = Field(index=True)
    date: dt.date = Field(index=True)
    name: Optional[str] = None
    total_amount: float = Field(default=0.0)

    is_approved: bool = Field(default=False, index=True)
    # 1 while the backing cheque is pending clearance
    is_post_dated: int = Field(default=0, index=True)
    cheque_no: Optional[str] = None
    cheque_date: Optional[dt.date] = None
    cleared_date: Optional[dt.date] = None

    # System-generated; cannot be deleted
    is_auto: bool = Field(default=False)

    user_id: str = Field(index=True)
    generated_at: dt.datetime = Field(default_factory=utcnow)
    deleted_at: Optional[dt.datetime] = Field(default=None, index=True)

    @property
    def formatted_no(self) -> str:
        return f"V{self.voucher_no}"


class VoucherTransaction(SQLModel, table=True):
    """A single debit or credit posting against one account."""

    __tablename__ = "voucher_transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    voucher_id: int = Field(foreign_key="vouchers.id", index=True)
    coa_account_id: int = Field(foreign_key="coa_accounts.id", index=True)

    debit: float = Field(default=0.0)
    credit: float = Field(default=0.0)
    # Account balance snapshot taken when the entry was written
    balance: float = Field(default=0.0)
    description: Optional[str] = None
    date: dt.date = Field(index=True)

    user_id: str = Field(index=True)
    is_approved: bool = Field(default=False, index=True)
    deleted_at: Optional[dt.datetime] = Field(default=None, index=True)


class VoucherSequence(SQLModel, table=True):
    """Last number handed out per voucher type; the row is locked while a voucher is written."""

    __tablename__ = "voucher_sequences"

    type: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    last_no: int = Field(default=0)
