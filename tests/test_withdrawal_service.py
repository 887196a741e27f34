"""Tests for maid withdrawals."""

from decimal import Decimal

import pytest

from app.errors import Forbidden, InsufficientFunds, InvalidArgument, InvalidTransition
from app.models.enums import TransactionType, WithdrawalStatus
from app.services import LedgerService, WithdrawalService
from tests.conftest import make_admin, make_maid, make_user


@pytest.fixture
def funded_maid(app):
    user, maid = make_maid()
    wallet = LedgerService.get_or_create_wallet(user.id)
    LedgerService.record_transaction(wallet.id, TransactionType.CREDIT, 400)
    return user, wallet


class TestRequest:
    def test_pending_requests_reserve_balance(self, funded_maid):
        user, _ = funded_maid
        WithdrawalService.request_withdrawal(user, 300, bank_ifsc="sbin0001234")
        with pytest.raises(InsufficientFunds):
            WithdrawalService.request_withdrawal(user, "100.01")
        assert len(WithdrawalService.list_for_maid(user)) == 1

    def test_customers_cannot_withdraw(self, app):
        with pytest.raises(Forbidden):
            WithdrawalService.request_withdrawal(make_user(), 10)

    def test_rejects_zero(self, funded_maid):
        user, _ = funded_maid
        with pytest.raises(InvalidArgument):
            WithdrawalService.request_withdrawal(user, 0)


class TestProcess:
    def test_approve_posts_withdrawal(self, funded_maid):
        user, wallet = funded_maid
        request = WithdrawalService.request_withdrawal(user, 300)
        admin = make_admin()

        WithdrawalService.approve(admin, request.id)
        assert request.status == WithdrawalStatus.COMPLETED.value
        assert request.approved_by == admin.id
        assert request.processed_at is not None
        current = LedgerService.get_wallet_for_user(user.id)
        assert current.balance == Decimal("100.00")
        assert current.total_withdrawn == Decimal("300.00")
        assert LedgerService.audit_wallet(wallet.id) == []

        with pytest.raises(InvalidTransition):
            WithdrawalService.approve(admin, request.id)

    def test_reject_keeps_balance(self, funded_maid):
        user, _ = funded_maid
        request = WithdrawalService.request_withdrawal(user, 300)
        WithdrawalService.reject(make_admin(), request.id, "Bank details mismatch")

        assert request.status == WithdrawalStatus.REJECTED.value
        assert LedgerService.get_wallet_for_user(user.id).balance == Decimal("400.00")
        assert WithdrawalService.list_pending() == []

    def test_only_admins_process(self, funded_maid):
        user, _ = funded_maid
        request = WithdrawalService.request_withdrawal(user, 50)
        with pytest.raises(Forbidden):
            WithdrawalService.approve(user, request.id)
