from flask import current_app

from app.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound
from app.extensions import db
from app.models import Booking, Payment
from app.models.enums import BookingStatus, NotificationType, PaymentMethod, PaymentStatus
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService
from app.services.unit_of_work import atomic

GATEWAY_METHODS = {PaymentMethod.RAZORPAY.value, PaymentMethod.STRIPE.value}
PAYABLE_STATUSES = {PaymentStatus.PENDING.value, PaymentStatus.FAILED.value}
CLOSED_BOOKING_STATUSES = {BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value}


class PaymentService:
    """Payment bookkeeping. Gateway capture is stubbed: confirmation is trusted as reported."""

    @staticmethod
    def _owned_payment(customer, payment_id):
        payment = db.session.get(Payment, payment_id)
        if not payment:
            raise NotFound("Payment not found.")
        if payment.customer_id != customer.id:
            raise Forbidden("Forbidden.")
        return payment

    @staticmethod
    def _set_booking_payment_status(booking_id, from_statuses, new_status, open_only=False):
        query = Booking.query.filter(Booking.id == booking_id, Booking.payment_status.in_(from_statuses))
        if open_only:
            query = query.filter(Booking.status.notin_(CLOSED_BOOKING_STATUSES))
        changed = query.update({Booking.payment_status: new_status}, synchronize_session=False)
        if not changed:
            raise InvalidTransition("Booking payment state changed concurrently. Reload and retry.")

    @staticmethod
    def initiate_payment(customer, booking_code, payment_method):
        booking = BookingService.get_by_code(booking_code)
        if booking.customer_id != customer.id:
            raise Forbidden("Forbidden.")
        method = (payment_method or "").strip().lower()
        if method not in GATEWAY_METHODS:
            raise InvalidArgument("Payment method must be razorpay or stripe.")
        if booking.status in CLOSED_BOOKING_STATUSES:
            raise InvalidTransition(f"Booking {booking.booking_code} is {booking.status}.")
        if booking.payment_status not in PAYABLE_STATUSES:
            raise Conflict(f"Payment for booking {booking.booking_code} is already {booking.payment_status}.")

        payment = Payment(
            booking_id=booking.id,
            customer_id=customer.id,
            maid_id=booking.maid_id,
            amount=booking.quoted_price,
            payment_method=method,
            status=PaymentStatus.PROCESSING,
        )
        with atomic():
            PaymentService._set_booking_payment_status(booking.id, PAYABLE_STATUSES, PaymentStatus.PROCESSING.value)
            db.session.add(payment)
        return payment

    @staticmethod
    def confirm_payment(customer, payment_id, gateway_transaction_id):
        payment = PaymentService._owned_payment(customer, payment_id)
        transaction_id = (gateway_transaction_id or "").strip()
        if not transaction_id:
            raise InvalidArgument("gatewayTransactionId is required.")
        if payment.status != PaymentStatus.PROCESSING.value:
            raise InvalidTransition(f"Payment is {payment.status}, not processing.")
        if payment.booking.status in CLOSED_BOOKING_STATUSES:
            with atomic():
                payment.status = PaymentStatus.FAILED
            current_app.logger.warning("Payment %s reported captured on closed booking %s.", payment.id, payment.booking_id)
            raise InvalidTransition("Booking is no longer open; the payment was not accepted.")

        with atomic():
            payment.status = PaymentStatus.COMPLETED
            payment.transaction_id = transaction_id
            payment.payment_gateway_id = transaction_id
            PaymentService._set_booking_payment_status(
                payment.booking_id,
                {PaymentStatus.PROCESSING.value},
                PaymentStatus.COMPLETED.value,
                open_only=True,
            )

        current_app.logger.info("Payment %s confirmed for booking %s.", payment.id, payment.booking_id)
        NotificationService.notify(
            customer.id,
            NotificationType.PAYMENT_RECEIVED,
            "Payment Received",
            f"We received your payment of {payment.amount}.",
            {"paymentId": payment.id},
        )
        return payment

    @staticmethod
    def fail_payment(customer, payment_id, reason=None):
        payment = PaymentService._owned_payment(customer, payment_id)
        if payment.status != PaymentStatus.PROCESSING.value:
            raise InvalidTransition(f"Payment is {payment.status}, not processing.")

        with atomic():
            payment.status = PaymentStatus.FAILED
            PaymentService._set_booking_payment_status(
                payment.booking_id,
                {PaymentStatus.PROCESSING.value},
                PaymentStatus.FAILED.value,
            )

        current_app.logger.warning("Payment %s failed: %s", payment.id, reason or "no reason given")
        NotificationService.notify(
            customer.id,
            NotificationType.PAYMENT_FAILED,
            "Payment Failed",
            "Your payment could not be completed. Please try again.",
            {"paymentId": payment.id},
        )
        return payment

    @staticmethod
    def to_dict(payment):
        return {
            "id": payment.id,
            "booking_id": payment.booking_id,
            "amount": str(payment.amount),
            "currency": payment.currency,
            "payment_method": payment.payment_method,
            "status": payment.status,
            "transaction_id": payment.transaction_id,
        }
