"""
Shared pytest fixtures.

Every test gets its own SQLite file so nothing leaks between tests; the chart
fixture seeds the default global chart plus a few extra accounts.
"""
import os
import sys
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pytest
from sqlmodel import Session, SQLModel, select

# Settings are read at import time – configure before the package is imported
os.environ["LOG_FILE"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Ensure the package is importable when running pytest from the repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from voucher_ledger.core.database import build_engine  # noqa: E402
from voucher_ledger.models.chart import CoaAccount, CoaSubGroup  # noqa: E402
from voucher_ledger.models.voucher import VoucherType  # noqa: E402
from voucher_ledger.schemas.requests import VoucherCreate  # noqa: E402
from voucher_ledger.services import lifecycle, vouchers  # noqa: E402
from voucher_ledger.services.seed import seed_default_chart  # noqa: E402

USER = "user-1"
OTHER_USER = "user-2"


@dataclass
class Chart:
    cash: int
    bank: int
    inventory: int
    sales: int
    payable: int
    capital: int
    rent: int
    cogs: int


@pytest.fixture()
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


def _add_account(session: Session, sub_code: str, code: str, name: str, user_id=None) -> int:
    sub_group = session.exec(select(CoaSubGroup).where(CoaSubGroup.code == sub_code)).one()
    account = CoaAccount(
        code=code,
        name=name,
        coa_group_id=sub_group.coa_group_id,
        coa_sub_group_id=sub_group.id,
        user_id=user_id,
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account.id


@pytest.fixture()
def chart(session) -> Chart:
    seed_default_chart(session)
    by_code = {a.code: a.id for a in session.exec(select(CoaAccount)).all()}
    return Chart(
        cash=by_code["1001-001"],
        bank=by_code["1002-001"],
        inventory=by_code["1003-001"],
        sales=by_code["4001-001"],
        payable=_add_account(session, "2001", "2001-001", "Supplier A"),
        capital=_add_account(session, "3001", "3001-001", "Owner Capital"),
        rent=_add_account(session, "5001", "5001-001", "Rent"),
        cogs=_add_account(session, "6001", "6001-001", "Purchases Cost"),
    )


@pytest.fixture()
def add_account(session):
    """Create an extra account under an existing sub-group code."""

    def _add(sub_code: str, code: str, name: str, user_id: Optional[str] = None) -> int:
        return _add_account(session, sub_code, code, name, user_id)

    return _add


def make_voucher(
    session: Session,
    vtype: VoucherType,
    day: date,
    total: float,
    lines: list[tuple[int, float, float]],
    account: Optional[int] = None,
    user_id: str = USER,
    approve: bool = False,
    **extra,
):
    """Create a voucher from (account_id, dr, cr) tuples, optionally approving it."""
    data = VoucherCreate(
        type=int(vtype),
        date=day,
        total_amount=total,
        account={"id": account} if account is not None else None,
        lines=[{"account": {"id": a}, "dr": dr, "cr": cr} for a, dr, cr in lines],
        **extra,
    )
    posted = vouchers.create_voucher(session, data, user_id)
    if approve:
        posted = lifecycle.toggle_approval(session, posted.voucher.id, user_id)
    return posted
