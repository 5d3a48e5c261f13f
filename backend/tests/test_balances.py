"""Unit tests for reportable balances and the account ledger."""
from datetime import date

import pytest
from sqlmodel import select

from conftest import OTHER_USER, USER, make_voucher
from voucher_ledger.core.exceptions import NotFoundError
from voucher_ledger.models.voucher import VoucherTransaction, VoucherType
from voucher_ledger.services import lifecycle
from voucher_ledger.services.balances import account_balance, account_balances, account_ledger


def _receipt(session, chart, day, amount, approve=True, user_id=USER, **extra):
    return make_voucher(
        session,
        VoucherType.RECEIPT,
        day,
        amount,
        [(chart.sales, 0, amount)],
        account=chart.cash,
        user_id=user_id,
        approve=approve,
        **extra,
    )


class TestAccountBalance:
    def test_no_entries_is_zero(self, session, chart):
        assert account_balance(session, chart.cash, USER) == 0.0

    def test_only_approved_entries_count(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        _receipt(session, chart, date(2024, 1, 2), 50, approve=False)
        assert account_balance(session, chart.cash, USER) == 100
        assert account_balance(session, chart.sales, USER) == -100

    def test_post_dated_excluded_until_cleared(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        pending = _receipt(session, chart, date(2024, 1, 2), 70, cheque_no="CHQ-1")
        assert pending.voucher.is_approved is True
        assert account_balance(session, chart.cash, USER) == 100

        lifecycle.clear_post_dated(session, pending.voucher.id, USER, date(2024, 1, 5))
        assert account_balance(session, chart.cash, USER) == 170
        # counted from the cleared date forward
        assert account_balance(session, chart.cash, USER, date(2024, 1, 4)) == 100

    def test_as_of_is_inclusive(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        _receipt(session, chart, date(2024, 1, 3), 40)
        assert account_balance(session, chart.cash, USER, date(2023, 12, 31)) == 0
        assert account_balance(session, chart.cash, USER, date(2024, 1, 1)) == 100
        assert account_balance(session, chart.cash, USER, date(2024, 1, 2)) == 100
        assert account_balance(session, chart.cash, USER, date(2024, 1, 3)) == 140

    def test_deleted_voucher_excluded(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        doomed = _receipt(session, chart, date(2024, 1, 1), 30)
        lifecycle.delete_voucher(session, doomed.voucher.id, USER)
        assert account_balance(session, chart.cash, USER) == 100

    def test_scoped_to_user(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        _receipt(session, chart, date(2024, 1, 1), 900, user_id=OTHER_USER)
        assert account_balance(session, chart.cash, USER) == 100
        assert account_balance(session, chart.cash, OTHER_USER) == 900

    def test_unapproving_removes_contribution(self, session, chart):
        posted = _receipt(session, chart, date(2024, 1, 1), 100)
        lifecycle.toggle_approval(session, posted.voucher.id, USER)
        assert account_balance(session, chart.cash, USER) == 0

    def test_unapproved_entry_on_approved_voucher_excluded(self, session, chart):
        posted = _receipt(session, chart, date(2024, 1, 1), 100)
        txn = session.exec(
            select(VoucherTransaction).where(
                VoucherTransaction.voucher_id == posted.voucher.id,
                VoucherTransaction.coa_account_id == chart.cash,
            )
        ).one()
        txn.is_approved = False
        session.add(txn)
        session.commit()
        assert account_balance(session, chart.cash, USER) == 0
        assert account_balance(session, chart.sales, USER) == -100


class TestAccountBalances:
    def test_batch_matches_single_lookups(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        make_voucher(
            session, VoucherType.PAYMENT, date(2024, 1, 2), 30, [(chart.rent, 30, 0)],
            account=chart.cash, approve=True,
        )
        ids = [chart.cash, chart.sales, chart.rent, chart.bank]
        batch = account_balances(session, ids, USER, date(2024, 1, 31))
        assert batch == {
            i: account_balance(session, i, USER, date(2024, 1, 31)) for i in ids
        }
        assert batch[chart.cash] == 70
        assert batch[chart.rent] == 30
        assert batch[chart.bank] == 0.0

    def test_empty_ids(self, session, chart):
        assert account_balances(session, [], USER) == {}


class TestAccountLedger:
    def test_opening_running_and_closing(self, session, chart):
        _receipt(session, chart, date(2024, 1, 1), 100)
        _receipt(session, chart, date(2024, 1, 5), 50)
        make_voucher(
            session, VoucherType.PAYMENT, date(2024, 1, 6), 20, [(chart.rent, 20, 0)],
            account=chart.cash, approve=True,
        )
        _receipt(session, chart, date(2024, 2, 1), 10)

        ledger = account_ledger(
            session, chart.cash, USER, date(2024, 1, 2), date(2024, 1, 31)
        )
        assert ledger.account.id == chart.cash
        assert ledger.opening_balance == 100
        assert [line.running_balance for line in ledger.transactions] == [150, 130]
        assert [(line.voucher.type, line.voucher.voucher_no) for line in ledger.transactions] == [
            (int(VoucherType.RECEIPT), 2),
            (int(VoucherType.PAYMENT), 1),
        ]
        assert ledger.closing_balance == 130

    def test_opening_excludes_from_date(self, session, chart):
        _receipt(session, chart, date(2024, 1, 2), 100)
        ledger = account_ledger(session, chart.cash, USER, date(2024, 1, 2), date(2024, 1, 2))
        assert ledger.opening_balance == 0
        assert len(ledger.transactions) == 1

    def test_unknown_account(self, session, chart):
        with pytest.raises(NotFoundError):
            account_ledger(session, 987654, USER)
