from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.errors import InsufficientFunds, InvalidArgument, NotFound
from app.extensions import db
from app.models import Wallet, WalletTransaction
from app.models.base import enum_value
from app.models.enums import TransactionType
from app.services.pricing import CENT, to_decimal
from app.services.unit_of_work import atomic

CREDIT_TYPES = {TransactionType.CREDIT.value, TransactionType.REFUND.value}
DEBIT_TYPES = {
    TransactionType.DEBIT.value,
    TransactionType.WITHDRAWAL.value,
    TransactionType.COMMISSION_DEDUCTION.value,
}


def _money(value):
    return Decimal(str(value or 0)).quantize(CENT)


class LedgerService:
    @staticmethod
    def signed_amount(transaction_type, amount):
        if transaction_type in CREDIT_TYPES:
            return amount
        return -amount

    @staticmethod
    def ensure_wallet(user_id):
        """Fetch or stage the user's wallet inside the caller's transaction."""
        wallet = Wallet.query.filter_by(user_id=user_id).first()
        if wallet:
            return wallet
        wallet = Wallet(
            user_id=user_id,
            balance=Decimal("0.00"),
            total_earnings=Decimal("0.00"),
            total_withdrawn=Decimal("0.00"),
            total_refunded=Decimal("0.00"),
        )
        db.session.add(wallet)
        db.session.flush()
        return wallet

    @staticmethod
    def get_or_create_wallet(user_id):
        try:
            with atomic():
                wallet = LedgerService.ensure_wallet(user_id)
        except IntegrityError:
            # Another request created it first.
            wallet = Wallet.query.filter_by(user_id=user_id).first()
            if not wallet:
                raise
        return wallet

    @staticmethod
    def get_wallet_for_user(user_id):
        wallet = Wallet.query.filter_by(user_id=user_id).first()
        if not wallet:
            raise NotFound("Wallet not found.")
        return wallet

    @staticmethod
    def post(wallet_id, transaction_type, amount, description=None, booking_id=None, payment_id=None):
        """Append one ledger entry and move the wallet balance, without committing.

        The wallet row is locked for the rest of the caller's transaction, so the
        balance read here is the one the entry is written against.
        """
        transaction_type = enum_value(TransactionType, transaction_type, "transaction type")
        amount = to_decimal(amount, "Amount").quantize(CENT)
        if amount <= 0:
            raise InvalidArgument("Amount must be positive.")

        wallet = Wallet.query.filter_by(id=wallet_id).with_for_update().populate_existing().first()
        if not wallet:
            raise NotFound("Wallet not found.")

        balance_before = _money(wallet.balance)
        balance_after = balance_before + LedgerService.signed_amount(transaction_type, amount)
        if balance_after < 0:
            raise InsufficientFunds(
                f"Insufficient wallet balance: {balance_before} available, {amount} requested."
            )

        entry = WalletTransaction(
            wallet_id=wallet.id,
            user_id=wallet.user_id,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            booking_id=booking_id,
            payment_id=payment_id,
            balance_before=balance_before,
            balance_after=balance_after,
        )
        wallet.balance = balance_after
        if transaction_type == TransactionType.CREDIT.value:
            wallet.total_earnings = _money(wallet.total_earnings) + amount
        elif transaction_type == TransactionType.COMMISSION_DEDUCTION.value:
            wallet.total_earnings = _money(wallet.total_earnings) - amount
        elif transaction_type == TransactionType.WITHDRAWAL.value:
            wallet.total_withdrawn = _money(wallet.total_withdrawn) + amount
        elif transaction_type == TransactionType.REFUND.value:
            wallet.total_refunded = _money(wallet.total_refunded) + amount

        db.session.add(entry)
        db.session.flush()
        return entry

    @staticmethod
    def record_transaction(wallet_id, transaction_type, amount, description=None, booking_id=None, payment_id=None):
        with atomic():
            entry = LedgerService.post(
                wallet_id,
                transaction_type,
                amount,
                description=description,
                booking_id=booking_id,
                payment_id=payment_id,
            )
        return entry

    @staticmethod
    def history(wallet_id):
        return (
            WalletTransaction.query.filter_by(wallet_id=wallet_id)
            .order_by(WalletTransaction.created_at.asc(), WalletTransaction.id.asc())
            .all()
        )

    @staticmethod
    def list_transactions(wallet_id, limit=50, offset=0):
        return (
            WalletTransaction.query.filter_by(wallet_id=wallet_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def replay_balance(wallet_id):
        total = Decimal("0.00")
        for entry in LedgerService.history(wallet_id):
            total += LedgerService.signed_amount(entry.transaction_type, _money(entry.amount))
        return total

    @staticmethod
    def audit_wallet(wallet_id):
        """Return a list of human-readable inconsistencies; empty when the trail is sound."""
        wallet = db.session.get(Wallet, wallet_id)
        if not wallet:
            raise NotFound("Wallet not found.")

        problems = []
        running = Decimal("0.00")
        for entry in LedgerService.history(wallet_id):
            before = _money(entry.balance_before)
            after = _money(entry.balance_after)
            if before != running:
                problems.append(f"Entry {entry.id}: balance_before {before} != running total {running}.")
            expected = before + LedgerService.signed_amount(entry.transaction_type, _money(entry.amount))
            if after != expected:
                problems.append(f"Entry {entry.id}: balance_after {after} != {expected}.")
            running = after
        if running != _money(wallet.balance):
            problems.append(f"Wallet balance {_money(wallet.balance)} != ledger total {running}.")
        return problems
