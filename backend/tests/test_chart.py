"""Unit tests for the chart of accounts store and the default chart seed."""
import pytest
from sqlmodel import select

from conftest import OTHER_USER, USER
from voucher_ledger.core.exceptions import InvalidOperationError, NotFoundError, ValidationError
from voucher_ledger.models.chart import Classification, CoaAccount, CoaGroup, CoaSubGroup
from voucher_ledger.schemas.requests import (
    CoaAccountCreate,
    CoaAccountUpdate,
    CoaGroupCreate,
    CoaSubGroupCreate,
)
from voucher_ledger.services import chart as coa
from voucher_ledger.services.seed import seed_default_chart


def _sub_group(session, code):
    return session.exec(select(CoaSubGroup).where(CoaSubGroup.code == code)).one()


class TestVisibility:
    def test_sees_own_and_global_accounts(self, session, chart, add_account):
        mine = add_account("5001", "5001-100", "Fuel", user_id=USER)
        theirs = add_account("5001", "5001-200", "Travel", user_id=OTHER_USER)

        ids = {a.id for a in coa.list_accounts(session, USER)}
        assert mine in ids
        assert chart.cash in ids
        assert theirs not in ids

    def test_foreign_account_not_found(self, session, chart, add_account):
        theirs = add_account("5001", "5001-200", "Travel", user_id=OTHER_USER)
        with pytest.raises(NotFoundError):
            coa.get_account(session, theirs, USER)

    def test_get_accounts_drops_invisible_ids(self, session, chart, add_account):
        theirs = add_account("5001", "5001-200", "Travel", user_id=OTHER_USER)
        found = coa.get_accounts(session, [chart.cash, theirs, 4040], USER)
        assert set(found) == {chart.cash}

    def test_filters(self, session, chart):
        rent = session.get(CoaAccount, chart.rent)
        assert [a.id for a in coa.list_accounts(session, USER, coa_sub_group_id=rent.coa_sub_group_id)] == [
            chart.rent
        ]
        coa.toggle_account_status(session, chart.rent, USER)
        inactive = coa.list_accounts(session, USER, is_active=False)
        assert [a.id for a in inactive] == [chart.rent]


class TestCashAndBank:
    def test_cash_and_bank_accounts(self, session, chart):
        assert [a.id for a in coa.cash_accounts(session, USER)] == [chart.cash]
        assert [a.id for a in coa.bank_accounts(session, USER)] == [chart.bank]
        assert [a.id for a in coa.accounts_of_type(session, USER)] == [chart.cash, chart.bank]

    def test_inactive_sub_group_excluded(self, session, chart):
        sub_group = _sub_group(session, "1002")
        sub_group.is_active = False
        session.add(sub_group)
        session.commit()
        assert coa.bank_accounts(session, USER) == []


class TestAccountWrites:
    def test_create_account(self, session, chart):
        sub_group = _sub_group(session, "5001")
        account = coa.create_account(
            session,
            CoaAccountCreate(
                name="Utilities",
                code="5001-300",
                coa_group_id=sub_group.coa_group_id,
                coa_sub_group_id=sub_group.id,
            ),
            USER,
        )
        assert account.user_id == USER
        assert account.is_active is True
        assert account.is_default is False

    def test_duplicate_code_rejected(self, session, chart):
        sub_group = _sub_group(session, "5001")
        data = CoaAccountCreate(
            name="Utilities",
            code="5001-300",
            coa_group_id=sub_group.coa_group_id,
            coa_sub_group_id=sub_group.id,
        )
        coa.create_account(session, data, USER)
        with pytest.raises(ValidationError) as exc:
            coa.create_account(session, data, USER)
        assert "code" in exc.value.fields
        # codes are per user
        assert coa.create_account(session, data, OTHER_USER).user_id == OTHER_USER

    def test_sub_group_must_belong_to_group(self, session, chart):
        expenses = _sub_group(session, "5001")
        cash = _sub_group(session, "1001")
        with pytest.raises(ValidationError):
            coa.create_account(
                session,
                CoaAccountCreate(
                    name="Odd",
                    code="X-1",
                    coa_group_id=cash.coa_group_id,
                    coa_sub_group_id=expenses.id,
                ),
                USER,
            )

    def test_update_account(self, session, chart):
        account = coa.update_account(
            session, chart.rent, CoaAccountUpdate(name="Office Rent"), USER
        )
        assert account.name == "Office Rent"
        assert account.code == "5001-001"

    def test_move_to_sub_group_of_another_group_rejected(self, session, chart):
        capital = _sub_group(session, "3001")
        with pytest.raises(ValidationError) as exc:
            coa.update_account(
                session, chart.rent, CoaAccountUpdate(coa_sub_group_id=capital.id), USER
            )
        assert "coaSubGroupId" in exc.value.fields
        session.rollback()
        assert session.get(CoaAccount, chart.rent).coa_sub_group_id == _sub_group(session, "5001").id

    def test_move_with_matching_group(self, session, chart):
        capital = _sub_group(session, "3001")
        account = coa.update_account(
            session,
            chart.rent,
            CoaAccountUpdate(coa_group_id=capital.coa_group_id, coa_sub_group_id=capital.id),
            USER,
        )
        assert account.coa_sub_group_id == capital.id
        assert account.coa_group_id == capital.coa_group_id

    def test_unknown_group_rejected(self, session, chart):
        with pytest.raises(ValidationError) as exc:
            coa.update_account(session, chart.rent, CoaAccountUpdate(coa_group_id=999999), USER)
        assert "coaSubGroupId" in exc.value.fields

    def test_unknown_sub_group_not_found(self, session, chart):
        with pytest.raises(NotFoundError):
            coa.update_account(session, chart.rent, CoaAccountUpdate(coa_sub_group_id=999999), USER)

    def test_duplicate_code_rejected_on_update(self, session, chart):
        with pytest.raises(ValidationError) as exc:
            coa.update_account(session, chart.rent, CoaAccountUpdate(code="6001-001"), USER)
        assert "code" in exc.value.fields
        # keeping its own code is not a clash
        same = coa.update_account(session, chart.rent, CoaAccountUpdate(code="5001-001"), USER)
        assert same.code == "5001-001"

    def test_default_accounts_are_locked(self, session, chart):
        with pytest.raises(InvalidOperationError):
            coa.toggle_account_status(session, chart.cash, USER)
        with pytest.raises(InvalidOperationError):
            coa.update_account(session, chart.bank, CoaAccountUpdate(name="Renamed"), USER)
        assert session.get(CoaAccount, chart.cash).is_active is True

    def test_toggle_status_flips(self, session, chart):
        assert coa.toggle_account_status(session, chart.rent, USER).is_active is False
        assert coa.toggle_account_status(session, chart.rent, USER).is_active is True


class TestGroups:
    def test_create_group_and_sub_group(self, session, chart):
        group = coa.create_group(
            session,
            CoaGroupCreate(name="Other Assets", code="1100", parent=Classification.ASSETS),
            USER,
        )
        sub_group = coa.create_sub_group(
            session,
            CoaSubGroupCreate(name="Petty Cash", code="1101", coa_group_id=group.id, type="cash"),
            USER,
        )
        assert [s.id for s in coa.list_sub_groups(session, group.id, USER)] == [sub_group.id]
        assert coa.list_sub_groups(session, group.id, OTHER_USER) == []

    def test_sub_group_under_foreign_group(self, session, chart):
        group = coa.create_group(
            session,
            CoaGroupCreate(name="Private", code="9000", parent=Classification.EXPENSES),
            OTHER_USER,
        )
        with pytest.raises(NotFoundError):
            coa.create_sub_group(
                session,
                CoaSubGroupCreate(name="Nope", code="9001", coa_group_id=group.id),
                USER,
            )

    def test_chart_tree(self, session, chart):
        tree = coa.chart_tree(session, USER)
        assert [g.code for g in tree] == ["1000", "2000", "3000", "4000", "5000", "6000"]
        assets = tree[0]
        assert assets.parent == Classification.ASSETS
        assert [s.code for s in assets.sub_groups] == ["1001", "1002", "1003"]
        assert [a.code for a in assets.sub_groups[0].accounts] == ["1001-001"]


class TestSeed:
    def test_seed_is_idempotent(self, session):
        created = seed_default_chart(session)
        assert created > 0
        assert seed_default_chart(session) == 0
        assert len(session.exec(select(CoaGroup)).all()) == 6

    def test_seeded_defaults(self, session):
        seed_default_chart(session)
        defaults = session.exec(
            select(CoaAccount).where(CoaAccount.is_default == True)  # noqa: E712
        ).all()
        assert sorted(a.code for a in defaults) == ["1001-001", "1002-001"]
        assert all(a.user_id is None for a in defaults)
