"""
Chart of accounts store: Group → SubGroup → Account.

Every read goes through `visible_to()` so a user sees their own rows plus the
global (user_id NULL) chart, the same filter the balance and report paths use.
Accounts are never deleted here, only deactivated.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy import or_
from sqlmodel import Session, col, select

from voucher_ledger.core.exceptions import InvalidOperationError, NotFoundError, ValidationError
from voucher_ledger.models.chart import CoaAccount, CoaGroup, CoaSubGroup
from voucher_ledger.schemas.requests import (
    CoaAccountCreate,
    CoaAccountUpdate,
    CoaGroupCreate,
    CoaSubGroupCreate,
)
from voucher_ledger.schemas.responses import (
    CoaAccountRead,
    GroupTree,
    SubGroupTree,
)

CASH_BANK_TYPES = ("cash", "bank")


def visible_to(model, user_id: str):
    """Owned by `user_id` OR global."""
    return or_(model.user_id == user_id, col(model.user_id).is_(None))


# ── Accounts ──────────────────────────────────────────────────────────────────


def get_account(session: Session, account_id: int, user_id: str) -> CoaAccount:
    account = session.exec(
        select(CoaAccount).where(CoaAccount.id == account_id, visible_to(CoaAccount, user_id))
    ).first()
    if not account:
        raise NotFoundError("Account", account_id)
    return account


def get_accounts(
    session: Session, account_ids: Iterable[int], user_id: str
) -> dict[int, CoaAccount]:
    """Visible accounts by id; ids that are missing or foreign are simply absent."""
    ids = set(account_ids)
    if not ids:
        return {}
    rows = session.exec(
        select(CoaAccount).where(col(CoaAccount.id).in_(ids), visible_to(CoaAccount, user_id))
    ).all()
    return {a.id: a for a in rows}


def list_accounts(
    session: Session,
    user_id: str,
    is_active: Optional[bool] = None,
    coa_group_id: Optional[int] = None,
    coa_sub_group_id: Optional[int] = None,
) -> list[CoaAccount]:
    stmt = select(CoaAccount).where(visible_to(CoaAccount, user_id))
    if is_active is not None:
        stmt = stmt.where(CoaAccount.is_active == is_active)
    if coa_group_id:
        stmt = stmt.where(CoaAccount.coa_group_id == coa_group_id)
    if coa_sub_group_id:
        stmt = stmt.where(CoaAccount.coa_sub_group_id == coa_sub_group_id)
    return list(session.exec(stmt.order_by(CoaAccount.code)).all())


def accounts_of_type(
    session: Session, user_id: str, types: Iterable[str] = CASH_BANK_TYPES
) -> list[CoaAccount]:
    """Active accounts whose active sub-group has one of `types` (cash, bank …)."""
    stmt = (
        select(CoaAccount)
        .join(CoaSubGroup, CoaAccount.coa_sub_group_id == CoaSubGroup.id)
        .where(
            visible_to(CoaAccount, user_id),
            CoaAccount.is_active == True,  # noqa: E712
            CoaSubGroup.is_active == True,  # noqa: E712
            col(CoaSubGroup.type).in_(list(types)),
        )
        .order_by(CoaAccount.code)
    )
    return list(session.exec(stmt).all())


def cash_accounts(session: Session, user_id: str) -> list[CoaAccount]:
    return accounts_of_type(session, user_id, ("cash",))


def bank_accounts(session: Session, user_id: str) -> list[CoaAccount]:
    return accounts_of_type(session, user_id, ("bank",))


def _check_code_free(
    session: Session, code: str, owner: Optional[str], exclude_id: Optional[int] = None
) -> None:
    """Account codes are unique per owner (a user, or the global chart)."""
    stmt = select(CoaAccount).where(CoaAccount.code == code)
    if owner is None:
        stmt = stmt.where(col(CoaAccount.user_id).is_(None))
    else:
        stmt = stmt.where(CoaAccount.user_id == owner)
    if exclude_id is not None:
        stmt = stmt.where(CoaAccount.id != exclude_id)
    if session.exec(stmt).first():
        raise ValidationError("Account code already exists", {"code": f"{code} is already in use"})


def _check_placement(
    session: Session, coa_group_id: int, coa_sub_group_id: int, user_id: str
) -> CoaSubGroup:
    """The sub-group must be visible and sit under the given group."""
    sub_group = _get_sub_group(session, coa_sub_group_id, user_id)
    if sub_group.coa_group_id != coa_group_id:
        raise ValidationError(
            "Sub-group does not belong to the given group",
            {"coaSubGroupId": f"sub-group {sub_group.id} is not under group {coa_group_id}"},
        )
    return sub_group


def create_account(session: Session, data: CoaAccountCreate, user_id: str) -> CoaAccount:
    _check_code_free(session, data.code, user_id)
    _check_placement(session, data.coa_group_id, data.coa_sub_group_id, user_id)

    account = CoaAccount(**data.model_dump(), user_id=user_id)
    session.add(account)
    session.commit()
    session.refresh(account)
    logger.info(f"Account {account.code} '{account.name}' created for {user_id}")
    return account


def update_account(
    session: Session, account_id: int, data: CoaAccountUpdate, user_id: str
) -> CoaAccount:
    account = get_account(session, account_id, user_id)
    if account.is_default:
        raise InvalidOperationError("Cannot update default account")

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "code" in changes and changes["code"] != account.code:
        _check_code_free(session, changes["code"], account.user_id, exclude_id=account.id)
    if "coa_group_id" in changes or "coa_sub_group_id" in changes:
        # Moving an account: its group must stay the one its sub-group sits under
        _check_placement(
            session,
            changes.get("coa_group_id", account.coa_group_id),
            changes.get("coa_sub_group_id", account.coa_sub_group_id),
            user_id,
        )

    for k, v in changes.items():
        setattr(account, k, v)
    account.updated_at = datetime.now(timezone.utc)
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


def toggle_account_status(session: Session, account_id: int, user_id: str) -> CoaAccount:
    account = get_account(session, account_id, user_id)
    if account.is_default:
        raise InvalidOperationError("Cannot deactivate default account")

    account.is_active = not account.is_active
    account.updated_at = datetime.now(timezone.utc)
    session.add(account)
    session.commit()
    session.refresh(account)
    logger.info(
        f"Account {account.code} {'activated' if account.is_active else 'deactivated'}"
    )
    return account


# ── Groups ────────────────────────────────────────────────────────────────────


def _get_sub_group(session: Session, sub_group_id: int, user_id: str) -> CoaSubGroup:
    sub_group = session.exec(
        select(CoaSubGroup).where(
            CoaSubGroup.id == sub_group_id, visible_to(CoaSubGroup, user_id)
        )
    ).first()
    if not sub_group:
        raise NotFoundError("Sub-group", sub_group_id)
    return sub_group


def create_group(session: Session, data: CoaGroupCreate, user_id: Optional[str]) -> CoaGroup:
    group = CoaGroup(name=data.name, code=data.code, parent=data.parent, user_id=user_id)
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


def create_sub_group(
    session: Session, data: CoaSubGroupCreate, user_id: Optional[str]
) -> CoaSubGroup:
    group = session.exec(
        select(CoaGroup).where(CoaGroup.id == data.coa_group_id)
    ).first()
    if not group or (group.user_id is not None and group.user_id != user_id):
        raise NotFoundError("Group", data.coa_group_id)

    sub_group = CoaSubGroup(
        name=data.name,
        code=data.code,
        coa_group_id=group.id,
        type=data.type or None,
        user_id=user_id,
    )
    session.add(sub_group)
    session.commit()
    session.refresh(sub_group)
    return sub_group


def list_sub_groups(session: Session, coa_group_id: int, user_id: str) -> list[CoaSubGroup]:
    stmt = (
        select(CoaSubGroup)
        .where(
            CoaSubGroup.coa_group_id == coa_group_id,
            CoaSubGroup.is_active == True,  # noqa: E712
            visible_to(CoaSubGroup, user_id),
        )
        .order_by(CoaSubGroup.code)
    )
    return list(session.exec(stmt).all())


def chart_tree(session: Session, user_id: str) -> list[GroupTree]:
    """Active groups with their active sub-groups and active accounts, three queries total."""
    groups = session.exec(
        select(CoaGroup)
        .where(CoaGroup.is_active == True, visible_to(CoaGroup, user_id))  # noqa: E712
        .order_by(CoaGroup.code)
    ).all()
    sub_groups = session.exec(
        select(CoaSubGroup)
        .where(CoaSubGroup.is_active == True, visible_to(CoaSubGroup, user_id))  # noqa: E712
        .order_by(CoaSubGroup.code)
    ).all()
    accounts = list_accounts(session, user_id, is_active=True)

    accounts_by_sub: dict[int, list[CoaAccountRead]] = {}
    for a in accounts:
        accounts_by_sub.setdefault(a.coa_sub_group_id, []).append(
            CoaAccountRead.model_validate(a)
        )

    subs_by_group: dict[int, list[SubGroupTree]] = {}
    for s in sub_groups:
        node = SubGroupTree.model_validate(s)
        node.accounts = accounts_by_sub.get(s.id, [])
        subs_by_group.setdefault(s.coa_group_id, []).append(node)

    tree = []
    for g in groups:
        node = GroupTree.model_validate(g)
        node.sub_groups = subs_by_group.get(g.id, [])
        tree.append(node)
    return tree
