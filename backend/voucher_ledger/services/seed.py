"""
Default global chart of accounts.

Idempotent find-or-create keyed on codes, so it can run on every startup
(SEED_DEFAULT_CHART=true) without duplicating rows.
"""
from __future__ import annotations

from loguru import logger
from sqlmodel import Session, col, select

from voucher_ledger.models.chart import Classification, CoaAccount, CoaGroup, CoaSubGroup

# group code: (name, classification, [(sub code, sub name, type, [(account code, name, is_default)])])
DEFAULT_CHART = {
    "1000": ("Assets", Classification.ASSETS, [
        ("1001", "Cash", "cash", [("1001-001", "Main Cash Account", True)]),
        ("1002", "Bank", "bank", [("1002-001", "Main Bank Account", True)]),
        ("1003", "Inventory", "inventory", [("1003-001", "Inventory Account", False)]),
    ]),
    "2000": ("Liabilities", Classification.LIABILITIES, [
        ("2001", "Accounts Payable", "payable", []),
    ]),
    "3000": ("Capital", Classification.CAPITAL, [
        ("3001", "Capital", None, []),
    ]),
    "4000": ("Revenues", Classification.REVENUES, [
        ("4001", "Sales", None, [("4001-001", "Sales Revenue", False)]),
    ]),
    "5000": ("Expenses", Classification.EXPENSES, [
        ("5001", "Operating Expenses", None, []),
    ]),
    "6000": ("Cost", Classification.COST, [
        ("6001", "Cost of Goods Sold", None, []),
    ]),
}


def _global(model):
    return col(model.user_id).is_(None)


def seed_default_chart(session: Session) -> int:
    """Create any missing global groups, sub-groups and accounts. Returns rows created."""
    created = 0
    for group_code, (group_name, parent, sub_groups) in DEFAULT_CHART.items():
        group = session.exec(
            select(CoaGroup).where(CoaGroup.code == group_code, _global(CoaGroup))
        ).first()
        if not group:
            group = CoaGroup(code=group_code, name=group_name, parent=parent)
            session.add(group)
            session.flush()
            created += 1

        for sub_code, sub_name, sub_type, accounts in sub_groups:
            sub_group = session.exec(
                select(CoaSubGroup).where(
                    CoaSubGroup.code == sub_code,
                    CoaSubGroup.coa_group_id == group.id,
                    _global(CoaSubGroup),
                )
            ).first()
            if not sub_group:
                sub_group = CoaSubGroup(
                    code=sub_code, name=sub_name, type=sub_type, coa_group_id=group.id
                )
                session.add(sub_group)
                session.flush()
                created += 1

            for account_code, account_name, is_default in accounts:
                exists = session.exec(
                    select(CoaAccount).where(
                        CoaAccount.code == account_code, _global(CoaAccount)
                    )
                ).first()
                if exists:
                    continue
                session.add(
                    CoaAccount(
                        code=account_code,
                        name=account_name,
                        coa_group_id=group.id,
                        coa_sub_group_id=sub_group.id,
                        is_default=is_default,
                    )
                )
                created += 1

    session.commit()
    if created:
        logger.info(f"Default chart of accounts seeded: {created} rows created")
    return created
