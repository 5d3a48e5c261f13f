"""Pydantic request bodies. Field names are snake_case; clients send camelCase."""
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from voucher_ledger.models.chart import Classification


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountRef(_CamelModel):
    id: int


class VoucherLineIn(_CamelModel):
    account: AccountRef
    dr: float = 0.0
    cr: float = 0.0
    description: Optional[str] = None


class VoucherCreate(_CamelModel):
    """
    Body of POST /api/vouchers.

    Amount and balance rules are checked by the ledger writer, not here, so
    every domain failure comes back in the same error shape.
    """

    type: int
    date: dt.date
    total_amount: float
    name: Optional[str] = None
    # Counter (cash/bank) account for Receipt and Payment vouchers
    account: Optional[AccountRef] = None
    lines: List[VoucherLineIn] = Field(default_factory=list, alias="list")
    cheque_no: Optional[str] = None
    cheque_date: Optional[dt.date] = None


class ClearPostDatedIn(_CamelModel):
    date: dt.date


class DailyClosingIn(_CamelModel):
    date: dt.date
    coa_accounts: Optional[List[AccountRef]] = None


class CoaGroupCreate(_CamelModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    parent: Classification


class CoaSubGroupCreate(_CamelModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    coa_group_id: int
    type: Optional[str] = None


class CoaAccountCreate(_CamelModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    coa_group_id: int
    coa_sub_group_id: int
    description: Optional[str] = None


class CoaAccountUpdate(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = Field(default=None, min_length=1)
    coa_group_id: Optional[int] = None
    coa_sub_group_id: Optional[int] = None
    description: Optional[str] = None
