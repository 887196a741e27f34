from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from app.errors import Forbidden, InsufficientFunds, InvalidArgument, InvalidTransition, NotFound
from app.extensions import db
from app.models import Maid, WithdrawalRequest
from app.models.base import utcnow
from app.models.enums import NotificationType, TransactionType, UserRole, WithdrawalStatus
from app.services.ledger_service import LedgerService
from app.services.notification_service import NotificationService
from app.services.pricing import CENT, to_decimal
from app.services.unit_of_work import atomic


class WithdrawalService:
    @staticmethod
    def _maid_for(actor):
        if actor.role != UserRole.MAID.value:
            raise Forbidden("Only maids can withdraw earnings.")
        maid = Maid.query.filter_by(user_id=actor.id).first()
        if not maid:
            raise NotFound("Maid profile not found.")
        return maid

    @staticmethod
    def _pending_total(wallet_id):
        total = (
            db.session.query(func.coalesce(func.sum(WithdrawalRequest.amount), 0))
            .filter(WithdrawalRequest.wallet_id == wallet_id)
            .filter(WithdrawalRequest.status == WithdrawalStatus.PENDING.value)
            .scalar()
        )
        return Decimal(str(total or 0)).quantize(CENT)

    @staticmethod
    def request_withdrawal(actor, amount, bank_account_number=None, bank_ifsc=None, bank_name=None):
        maid = WithdrawalService._maid_for(actor)
        amount = to_decimal(amount, "Amount").quantize(CENT)
        if amount <= 0:
            raise InvalidArgument("Amount must be positive.")

        wallet = LedgerService.get_or_create_wallet(actor.id)
        available = Decimal(str(wallet.balance)) - WithdrawalService._pending_total(wallet.id)
        if amount > available:
            raise InsufficientFunds(f"Only {available} is available for withdrawal.")

        request = WithdrawalRequest(
            maid_id=maid.id,
            wallet_id=wallet.id,
            amount=amount,
            bank_account_number=(bank_account_number or "").strip() or None,
            bank_ifsc=(bank_ifsc or "").strip().upper() or None,
            bank_name=(bank_name or "").strip() or None,
            status=WithdrawalStatus.PENDING,
        )
        with atomic():
            db.session.add(request)
        return request

    @staticmethod
    def list_for_maid(actor):
        maid = WithdrawalService._maid_for(actor)
        return (
            WithdrawalRequest.query.filter_by(maid_id=maid.id)
            .order_by(WithdrawalRequest.created_at.desc(), WithdrawalRequest.id.desc())
            .all()
        )

    @staticmethod
    def list_pending():
        return (
            WithdrawalRequest.query.filter_by(status=WithdrawalStatus.PENDING.value)
            .order_by(WithdrawalRequest.created_at.asc(), WithdrawalRequest.id.asc())
            .all()
        )

    @staticmethod
    def _pending_request(admin, request_id):
        if not admin.is_admin:
            raise Forbidden("Only admins can process withdrawals.")
        request = db.session.get(WithdrawalRequest, request_id)
        if not request:
            raise NotFound("Withdrawal request not found.")
        if request.status != WithdrawalStatus.PENDING.value:
            raise InvalidTransition(f"Withdrawal request is already {request.status}.")
        return request

    @staticmethod
    def approve(admin, request_id):
        request = WithdrawalService._pending_request(admin, request_id)
        with atomic():
            changed = (
                WithdrawalRequest.query.filter_by(id=request.id, status=WithdrawalStatus.PENDING.value)
                .update(
                    {
                        WithdrawalRequest.status: WithdrawalStatus.COMPLETED.value,
                        WithdrawalRequest.approved_by: admin.id,
                        WithdrawalRequest.processed_at: utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            if not changed:
                raise InvalidTransition("Withdrawal request changed concurrently.")
            LedgerService.post(
                request.wallet_id,
                TransactionType.WITHDRAWAL,
                request.amount,
                description=f"Withdrawal request #{request.id}",
            )
            db.session.expire(request)

        current_app.logger.info("Withdrawal %s approved by admin %s.", request.id, admin.id)
        NotificationService.notify(
            request.maid.user_id,
            NotificationType.PAYMENT_RECEIVED,
            "Withdrawal Processed",
            f"Your withdrawal of {request.amount} has been processed.",
            {"withdrawalId": request.id},
        )
        return request

    @staticmethod
    def reject(admin, request_id, reason):
        reason = (reason or "").strip()
        if not reason:
            raise InvalidArgument("A rejection reason is required.")
        request = WithdrawalService._pending_request(admin, request_id)
        with atomic():
            request.status = WithdrawalStatus.REJECTED
            request.rejection_reason = reason
            request.approved_by = admin.id
            request.processed_at = utcnow()

        NotificationService.notify(
            request.maid.user_id,
            NotificationType.ADMIN_NOTIFICATION,
            "Withdrawal Rejected",
            f"Your withdrawal of {request.amount} was rejected: {reason}",
            {"withdrawalId": request.id},
        )
        return request
