"""SQLModel models for the chart of accounts (groups, sub-groups, accounts)."""
from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Classification(str, Enum):
    """Top-level classification carried by every CoaGroup (its `parent`)."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    CAPITAL = "Capital"
    REVENUES = "Revenues"
    EXPENSES = "Expenses"
    COST = "Cost"


class CoaGroup(SQLModel, table=True):
    """First level of the chart, e.g. "Current Assets" under Assets."""

    __tablename__ = "coa_groups"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True)
    name: str
    parent: Classification = Field(index=True)
    # NULL = shared by every user
    user_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class CoaSubGroup(SQLModel, table=True):
    """Second level; `type` marks cash and bank sub-groups for daily closing."""

    __tablename__ = "coa_sub_groups"

    id: Optional[int] = Field(default=None, primary_key=True)
    coa_group_id: int = Field(foreign_key="coa_groups.id", index=True)
    code: str = Field(index=True)
    name: str
    type: Optional[str] = Field(default=None, index=True)  # cash, bank, inventory …
    user_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class CoaAccount(SQLModel, table=True):
    """Leaf account that ledger entries post against. Never deleted, only deactivated."""

    __tablename__ = "coa_accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    coa_group_id: int = Field(foreign_key="coa_groups.id", index=True)
    coa_sub_group_id: int = Field(foreign_key="coa_sub_groups.id", index=True)
    code: str = Field(index=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    user_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    # Seeded accounts the user may not edit or deactivate
    is_default: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
