"""Tests for the wallet ledger."""

from decimal import Decimal

import pytest

from app.errors import InsufficientFunds, InvalidArgument
from app.extensions import db
from app.models import Wallet
from app.models.enums import TransactionType
from app.services import LedgerService
from tests.conftest import make_user


@pytest.fixture
def wallet(app):
    user = make_user()
    return LedgerService.get_or_create_wallet(user.id)


class TestWallet:
    def test_get_or_create_is_idempotent(self, app):
        user = make_user()
        first = LedgerService.get_or_create_wallet(user.id)
        second = LedgerService.get_or_create_wallet(user.id)
        assert first.id == second.id
        assert first.balance == Decimal("0.00")


class TestRecordTransaction:
    def test_entries_chain_balances(self, wallet):
        credit = LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, "100")
        debit = LedgerService.record_transaction(wallet.id, TransactionType.DEBIT, "30.50")

        assert credit.balance_before == Decimal("0.00")
        assert credit.balance_after == Decimal("100.00")
        assert debit.balance_before == Decimal("100.00")
        assert debit.balance_after == Decimal("69.50")
        assert db.session.get(Wallet, wallet.id).balance == Decimal("69.50")

    def test_replay_matches_balance(self, wallet):
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 500)
        LedgerService.record_transaction(wallet.id, TransactionType.COMMISSION_DEDUCTION, 100)
        LedgerService.record_transaction(wallet.id, TransactionType.REFUND, 25)
        LedgerService.record_transaction(wallet.id, TransactionType.WITHDRAWAL, 200)

        current = db.session.get(Wallet, wallet.id)
        assert LedgerService.replay_balance(wallet.id) == current.balance == Decimal("225.00")
        assert current.total_earnings == Decimal("400.00")
        assert current.total_withdrawn == Decimal("200.00")
        assert current.total_refunded == Decimal("25.00")

    def test_overdraft_is_rejected_without_side_effects(self, wallet):
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 50)
        with pytest.raises(InsufficientFunds):
            LedgerService.record_transaction(wallet.id, TransactionType.WITHDRAWAL, "50.01")

        assert db.session.get(Wallet, wallet.id).balance == Decimal("50.00")
        assert len(LedgerService.history(wallet.id)) == 1

    @pytest.mark.parametrize("amount", [0, -5, "abc"])
    def test_rejects_non_positive_amounts(self, wallet, amount):
        with pytest.raises(InvalidArgument):
            LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, amount)

    def test_rejects_unknown_type(self, wallet):
        with pytest.raises(InvalidArgument):
            LedgerService.record_transaction(wallet.id, "bonus", 10)

    def test_list_transactions_newest_first(self, wallet):
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 10)
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 20)
        entries = LedgerService.list_transactions(wallet.id, limit=1)
        assert [e.amount for e in entries] == [Decimal("20.00")]


class TestAudit:
    def test_clean_trail_has_no_problems(self, wallet):
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 80)
        LedgerService.record_transaction(wallet.id, TransactionType.DEBIT, 30)
        assert LedgerService.audit_wallet(wallet.id) == []

    def test_detects_balance_drift(self, wallet):
        LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 80)
        Wallet.query.filter_by(id=wallet.id).update({Wallet.balance: Decimal("90.00")})
        db.session.commit()

        problems = LedgerService.audit_wallet(wallet.id)
        assert len(problems) == 1
        assert "90.00" in problems[0]
