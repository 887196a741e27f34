"""Tests for payment bookkeeping."""

from decimal import Decimal

import pytest

from app.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition
from app.extensions import db
from app.models import Booking, WalletTransaction
from app.models.enums import BookingStatus, PaymentStatus
from app.services import BookingService, PaymentService
from tests.conftest import booking_kwargs, make_admin, make_service, make_user


@pytest.fixture
def booking(app):
    customer = make_user()
    booking, _ = BookingService.create_booking(customer, **booking_kwargs(make_service()))
    return customer, booking


class TestInitiate:
    def test_charges_quoted_price(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "stripe")
        assert payment.amount == Decimal("708.00")
        assert payment.status == PaymentStatus.PROCESSING.value
        assert booking.payment_status == PaymentStatus.PROCESSING.value

    def test_rejects_unknown_method(self, booking):
        customer, booking = booking
        with pytest.raises(InvalidArgument):
            PaymentService.initiate_payment(customer, booking.booking_code, "cash")

    def test_other_customer_forbidden(self, booking):
        _, booking = booking
        with pytest.raises(Forbidden):
            PaymentService.initiate_payment(make_user(), booking.booking_code, "razorpay")

    def test_cannot_pay_twice_while_processing(self, booking):
        customer, booking = booking
        PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        with pytest.raises(Conflict):
            PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")


class TestConfirmAndFail:
    def test_confirm_completes_booking_payment(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        PaymentService.confirm_payment(customer, payment.id, "pay_ABC")
        assert payment.status == PaymentStatus.COMPLETED.value
        assert payment.transaction_id == "pay_ABC"
        assert booking.payment_status == PaymentStatus.COMPLETED.value

    def test_confirm_requires_transaction_id(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        with pytest.raises(InvalidArgument):
            PaymentService.confirm_payment(customer, payment.id, "")

    def test_failed_payment_can_be_retried(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        PaymentService.fail_payment(customer, payment.id, "card declined")
        assert booking.payment_status == PaymentStatus.FAILED.value
        with pytest.raises(InvalidTransition):
            PaymentService.confirm_payment(customer, payment.id, "pay_LATE")

        retry = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        assert retry.id != payment.id


class TestClosedBookings:
    def test_cancel_voids_capture_in_flight(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        BookingService.cancel_booking(customer, booking.booking_code, "customer", "Plans changed")

        assert booking.status == BookingStatus.CANCELLED.value
        assert booking.payment_status == PaymentStatus.FAILED.value
        assert payment.status == PaymentStatus.FAILED.value

    def test_confirm_after_cancel_is_rejected(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        BookingService.cancel_booking(customer, booking.booking_code, "customer", "Plans changed")

        with pytest.raises(InvalidTransition):
            PaymentService.confirm_payment(customer, payment.id, "pay_X")
        assert booking.payment_status != PaymentStatus.COMPLETED.value
        assert payment.transaction_id is None
        assert WalletTransaction.query.count() == 0

    def test_confirm_on_closed_booking_fails_payment(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        # Closed by a path that left the capture untouched.
        Booking.query.filter_by(id=booking.id).update(
            {Booking.status: BookingStatus.CANCELLED.value, Booking.cancelled_by: "admin"},
            synchronize_session=False,
        )
        db.session.commit()

        with pytest.raises(InvalidTransition):
            PaymentService.confirm_payment(customer, payment.id, "pay_X")
        assert payment.status == PaymentStatus.FAILED.value
        assert booking.payment_status == PaymentStatus.PROCESSING.value

    def test_no_show_voids_capture_in_flight(self, booking):
        customer, booking = booking
        payment = PaymentService.initiate_payment(customer, booking.booking_code, "razorpay")
        BookingService.mark_no_show(make_admin(), booking.booking_code)

        assert booking.payment_status == PaymentStatus.FAILED.value
        with pytest.raises(InvalidTransition):
            PaymentService.confirm_payment(customer, payment.id, "pay_X")
