from voucher_ledger.models.chart import Classification, CoaAccount, CoaGroup, CoaSubGroup
from voucher_ledger.models.voucher import (
    CounterSide,
    Voucher,
    VoucherSequence,
    VoucherTransaction,
    VoucherType,
)

__all__ = [
    "Classification",
    "CoaAccount",
    "CoaGroup",
    "CoaSubGroup",
    "CounterSide",
    "Voucher",
    "VoucherSequence",
    "VoucherTransaction",
    "VoucherType",
]
