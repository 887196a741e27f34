import re
import secrets
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import IntegrityError

from app.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound
from app.extensions import db
from app.models import Booking, Maid, Payment, Service
from app.models.base import enum_value, utcnow
from app.models.booking import BOOKING_CODE_PATTERN
from app.models.enums import (
    BookingStatus,
    CancelledBy,
    NotificationType,
    PaymentStatus,
    TransactionType,
    UserRole,
)
from app.services.commission_service import CommissionService, parse_datetime
from app.services.ledger_service import LedgerService
from app.services.notification_service import NotificationService
from app.services.pricing import CENT, calculate_price, to_decimal
from app.services.unit_of_work import atomic

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.ACCEPTED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.ACCEPTED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}
TERMINAL_STATUSES = {status for status, targets in BOOKING_TRANSITIONS.items() if not targets}

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 480


class BookingService:
    @staticmethod
    def can_transition(current, new_status):
        return BookingStatus(new_status) in BOOKING_TRANSITIONS[BookingStatus(current)]

    @staticmethod
    def _generate_booking_code(now=None):
        today = (now or utcnow()).strftime("%Y%m%d")
        suffix = secrets.token_hex(3).upper()[:5]
        return f"BK-{today}-{suffix}"

    @staticmethod
    def is_valid_booking_code(code):
        return bool(re.fullmatch(BOOKING_CODE_PATTERN, code or ""))

    @staticmethod
    def get_by_code(booking_code):
        booking = Booking.query.filter_by(booking_code=(booking_code or "").strip().upper()).first()
        if not booking:
            raise NotFound("Booking not found.")
        return booking

    @staticmethod
    def _parse_duration(duration):
        try:
            minutes = int(duration)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("Duration must be a whole number of minutes.") from exc
        if minutes < MIN_DURATION_MINUTES or minutes > MAX_DURATION_MINUTES:
            raise InvalidArgument(
                f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes."
            )
        return minutes

    @staticmethod
    def _parse_coordinate(value, label, limit):
        if value is None or value == "":
            return None
        try:
            number = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidArgument(f"Invalid {label} value.") from exc
        if not number.is_finite() or abs(number) > limit:
            raise InvalidArgument(f"Invalid {label} value.")
        return number

    @staticmethod
    def create_booking(
        customer,
        service_id,
        scheduled_date,
        duration,
        location,
        latitude=None,
        longitude=None,
        special_requests=None,
    ):
        if customer.role != UserRole.CUSTOMER.value:
            raise Forbidden("Only customers can create bookings.")

        minutes = BookingService._parse_duration(duration)
        start = parse_datetime(scheduled_date, "scheduledDate")
        if start is None:
            raise InvalidArgument("scheduledDate is required.")
        location = (location or "").strip()
        if not location:
            raise InvalidArgument("Location is required.")
        lat = BookingService._parse_coordinate(latitude, "latitude", 90)
        lon = BookingService._parse_coordinate(longitude, "longitude", 180)

        service = db.session.get(Service, service_id) if service_id is not None else None
        if not service or not service.is_active:
            raise NotFound("Service not found.")

        commission_pct, platform_fee_pct, gst_pct = CommissionService.rates_for(service.id)
        breakdown = calculate_price(service.base_price, commission_pct, platform_fee_pct, gst_pct)
        stored = breakdown.quantized()

        values = dict(
            customer_id=customer.id,
            service_id=service.id,
            scheduled_date=start,
            scheduled_end_date=start + timedelta(minutes=minutes),
            duration=minutes,
            location=location,
            latitude=lat,
            longitude=lon,
            special_requests=(special_requests or "").strip() or None,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            base_price=stored.base_price,
            commission_pct=to_decimal(commission_pct, "Commission percentage"),
            platform_fee_pct=to_decimal(platform_fee_pct, "Platform fee percentage"),
            gst_pct=to_decimal(gst_pct, "GST percentage"),
            commission_amount=stored.commission,
            platform_fee=stored.platform_fee,
            gst_amount=stored.gst,
            quoted_price=stored.total_amount,
            maid_amount=stored.maid_amount,
        )

        booking = None
        max_attempts = int(current_app.config.get("BOOKING_CODE_MAX_ATTEMPTS", 5))
        for _attempt in range(max_attempts):
            code = BookingService._generate_booking_code()
            if Booking.query.filter_by(booking_code=code).first() is not None:
                current_app.logger.warning("Booking code %s already taken, drawing a new one.", code)
                continue
            candidate = Booking(booking_code=code, **values)
            try:
                with atomic():
                    db.session.add(candidate)
            except IntegrityError as exc:
                if "booking_code" not in str(exc.orig).lower():
                    raise
                current_app.logger.warning("Booking code %s collided on insert, drawing a new one.", code)
                continue
            booking = candidate
            break
        if booking is None:
            raise Conflict("Could not allocate a booking code. Please retry.")

        current_app.logger.info("Booking %s created by customer %s.", booking.booking_code, customer.id)
        NotificationService.notify(
            customer.id,
            NotificationType.BOOKING_CONFIRMED,
            "Booking Created",
            f"Your booking {booking.booking_code} has been created and is awaiting confirmation.",
            {"bookingCode": booking.booking_code},
        )
        return booking, breakdown

    @staticmethod
    def _transition(booking, new_status, values=None, expected=None):
        """Compare-and-set the booking status inside the caller's transaction.

        The UPDATE only matches while the row still holds the status (and any
        ``expected`` column values) read by this request; losing a race to a
        concurrent transition surfaces as InvalidTransition.
        """
        current = BookingStatus(booking.status)
        new_status = BookingStatus(new_status)
        if current in TERMINAL_STATUSES:
            raise InvalidTransition(f"Booking {booking.booking_code} is already {current.value}.")
        if new_status not in BOOKING_TRANSITIONS[current]:
            raise InvalidTransition(f"Invalid status transition from {current.value} to {new_status.value}.")

        updates = {Booking.status: new_status.value}
        updates.update(values or {})
        query = Booking.query.filter(Booking.id == booking.id, Booking.status == current.value)
        for column, value in (expected or {}).items():
            query = query.filter(column == value)
        changed = query.update(updates, synchronize_session=False)
        if not changed:
            raise InvalidTransition(f"Booking {booking.booking_code} changed concurrently. Reload and retry.")
        db.session.expire(booking)

    @staticmethod
    def _maid_for_user(user):
        maid = Maid.query.filter_by(user_id=user.id).first()
        if not maid:
            raise NotFound("Maid profile not found.")
        return maid

    @staticmethod
    def _assert_assigned_maid_or_admin(actor, booking):
        if actor.is_admin:
            return
        if actor.role == UserRole.MAID.value and booking.maid and booking.maid.user_id == actor.id:
            return
        raise Forbidden("Only the assigned maid can update this booking.")

    @staticmethod
    def accept_booking(actor, booking_code):
        if actor.role != UserRole.MAID.value:
            raise Forbidden("Only maids can accept bookings.")
        booking = BookingService.get_by_code(booking_code)
        maid = BookingService._maid_for_user(actor)

        with atomic():
            BookingService._transition(
                booking,
                BookingStatus.ACCEPTED,
                {Booking.maid_id: maid.id, Booking.accepted_at: utcnow()},
                expected={Booking.maid_id: None},
            )

        NotificationService.notify(
            booking.customer_id,
            NotificationType.JOB_ACCEPTED,
            "Booking Accepted",
            f"A maid has accepted your booking {booking.booking_code}",
            {"bookingCode": booking.booking_code},
        )
        return booking

    @staticmethod
    def start_booking(actor, booking_code):
        booking = BookingService.get_by_code(booking_code)
        BookingService._assert_assigned_maid_or_admin(actor, booking)
        with atomic():
            BookingService._transition(booking, BookingStatus.IN_PROGRESS, {Booking.started_at: utcnow()})

        NotificationService.notify(
            booking.customer_id,
            NotificationType.SYSTEM_ALERT,
            "Service Started",
            f"Work has started for booking {booking.booking_code}.",
            {"bookingCode": booking.booking_code},
        )
        return booking

    @staticmethod
    def complete_booking(actor, booking_code, final_price=None):
        booking = BookingService.get_by_code(booking_code)
        BookingService._assert_assigned_maid_or_admin(actor, booking)
        if booking.maid is None:
            raise InvalidTransition(f"Booking {booking.booking_code} has no assigned maid.")

        if final_price is None:
            settled_price = booking.quoted_price
        else:
            settled_price = to_decimal(final_price, "Final price").quantize(CENT)
        code = booking.booking_code
        maid = booking.maid
        maid_amount = Decimal(str(booking.maid_amount))
        commission = Decimal(str(booking.commission_amount))

        with atomic():
            BookingService._transition(
                booking,
                BookingStatus.COMPLETED,
                {Booking.completed_at: utcnow(), Booking.final_price: settled_price},
            )
            # Settlement: gross credit followed by the platform's cut nets to maid_amount.
            wallet = LedgerService.ensure_wallet(maid.user_id)
            LedgerService.post(
                wallet.id,
                TransactionType.CREDIT,
                maid_amount + commission,
                description=f"Gross earnings for booking {code} (before commission)",
                booking_id=booking.id,
            )
            if commission > 0:
                LedgerService.post(
                    wallet.id,
                    TransactionType.COMMISSION_DEDUCTION,
                    commission,
                    description=f"Platform commission for booking {code}",
                    booking_id=booking.id,
                )
            Maid.query.filter_by(id=maid.id).update(
                {Maid.total_jobs: Maid.total_jobs + 1},
                synchronize_session=False,
            )

        current_app.logger.info("Booking %s completed; %s credited to maid %s.", code, maid_amount, maid.id)
        NotificationService.notify(
            booking.customer_id,
            NotificationType.JOB_COMPLETED,
            "Service Completed",
            f"Your booking {code} has been completed.",
            {"bookingCode": code},
        )
        NotificationService.notify(
            maid.user_id,
            NotificationType.PAYMENT_RECEIVED,
            "Earnings Credited",
            f"{maid_amount} has been credited to your wallet for booking {code}.",
            {"bookingCode": code, "amount": str(maid_amount)},
        )
        return booking

    @staticmethod
    def _void_processing_payments(booking_id):
        """Fail any capture still in flight so it cannot complete on a closed booking."""
        Payment.query.filter_by(booking_id=booking_id, status=PaymentStatus.PROCESSING.value).update(
            {Payment.status: PaymentStatus.FAILED.value},
            synchronize_session=False,
        )

    @staticmethod
    def _assert_can_cancel(actor, booking, cancelled_by):
        if cancelled_by == CancelledBy.ADMIN.value:
            allowed = actor.is_admin
        elif cancelled_by == CancelledBy.CUSTOMER.value:
            allowed = actor.role == UserRole.CUSTOMER.value and booking.customer_id == actor.id
        else:
            allowed = actor.role == UserRole.MAID.value and booking.maid is not None and booking.maid.user_id == actor.id
        if not allowed:
            raise Forbidden("You cannot cancel this booking.")

    @staticmethod
    def cancel_booking(actor, booking_code, cancelled_by, reason):
        cancelled_by = enum_value(CancelledBy, cancelled_by, "cancelling actor")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidArgument("A cancellation reason is required.")
        booking = BookingService.get_by_code(booking_code)
        BookingService._assert_can_cancel(actor, booking, cancelled_by)

        code = booking.booking_code
        customer_id = booking.customer_id
        maid_user_id = booking.maid.user_id if booking.maid else None
        payment_status = booking.payment_status
        refund_due = payment_status == PaymentStatus.COMPLETED.value
        refund_amount = Decimal(str(booking.quoted_price))

        values = {
            Booking.cancelled_by: cancelled_by,
            Booking.cancellation_reason: reason,
            Booking.cancelled_at: utcnow(),
        }
        if refund_due:
            values[Booking.payment_status] = PaymentStatus.REFUNDED.value
        elif payment_status == PaymentStatus.PROCESSING.value:
            values[Booking.payment_status] = PaymentStatus.FAILED.value

        with atomic():
            BookingService._transition(
                booking,
                BookingStatus.CANCELLED,
                values,
                expected={Booking.payment_status: payment_status},
            )
            BookingService._void_processing_payments(booking.id)
            if refund_due:
                payment = (
                    Payment.query.filter_by(booking_id=booking.id, status=PaymentStatus.COMPLETED.value)
                    .order_by(Payment.created_at.desc(), Payment.id.desc())
                    .first()
                )
                wallet = LedgerService.ensure_wallet(customer_id)
                LedgerService.post(
                    wallet.id,
                    TransactionType.REFUND,
                    refund_amount,
                    description=f"Refund for cancelled booking {code}",
                    booking_id=booking.id,
                    payment_id=payment.id if payment else None,
                )
                if payment:
                    payment.status = PaymentStatus.REFUNDED
                    payment.refund_amount = refund_amount
                    payment.refund_reason = reason

        current_app.logger.info("Booking %s cancelled by %s (refund=%s).", code, cancelled_by, refund_due)
        message = f"Booking {code} was cancelled: {reason}"
        if refund_due:
            message += f" {refund_amount} has been refunded to your wallet."
        NotificationService.notify(
            customer_id,
            NotificationType.BOOKING_CANCELLED,
            "Booking Cancelled",
            message,
            {"bookingCode": code, "cancelledBy": cancelled_by},
        )
        if maid_user_id:
            NotificationService.notify(
                maid_user_id,
                NotificationType.BOOKING_CANCELLED,
                "Booking Cancelled",
                f"Booking {code} was cancelled.",
                {"bookingCode": code, "cancelledBy": cancelled_by},
            )
        return booking

    @staticmethod
    def mark_no_show(actor, booking_code):
        booking = BookingService.get_by_code(booking_code)
        BookingService._assert_assigned_maid_or_admin(actor, booking)
        payment_status = booking.payment_status
        values = {}
        if payment_status == PaymentStatus.PROCESSING.value:
            values[Booking.payment_status] = PaymentStatus.FAILED.value
        with atomic():
            BookingService._transition(
                booking,
                BookingStatus.NO_SHOW,
                values,
                expected={Booking.payment_status: payment_status},
            )
            BookingService._void_processing_payments(booking.id)

        NotificationService.notify(
            booking.customer_id,
            NotificationType.SYSTEM_ALERT,
            "Booking Marked No-Show",
            f"Booking {booking.booking_code} was marked as a no-show.",
            {"bookingCode": booking.booking_code},
        )
        return booking

    @staticmethod
    def reassign_maid(actor, booking_code, maid_id):
        if not actor.is_admin:
            raise Forbidden("Only admins can reassign bookings.")
        booking = BookingService.get_by_code(booking_code)
        maid = db.session.get(Maid, maid_id) if maid_id is not None else None
        if not maid:
            raise NotFound("Maid not found.")

        current = booking.status
        if current not in {BookingStatus.ACCEPTED.value, BookingStatus.IN_PROGRESS.value}:
            raise InvalidTransition(f"Cannot reassign a booking that is {current}.")
        with atomic():
            changed = (
                Booking.query.filter(Booking.id == booking.id, Booking.status == current)
                .update({Booking.maid_id: maid.id}, synchronize_session=False)
            )
            if not changed:
                raise InvalidTransition(f"Booking {booking.booking_code} changed concurrently. Reload and retry.")
            db.session.expire(booking)

        current_app.logger.info("Booking %s reassigned to maid %s by admin %s.", booking.booking_code, maid.id, actor.id)
        NotificationService.notify(
            maid.user_id,
            NotificationType.JOB_ALERT,
            "Booking Assigned",
            f"Booking {booking.booking_code} has been assigned to you.",
            {"bookingCode": booking.booking_code},
        )
        return booking

    @staticmethod
    def get_booking_for_actor(actor, booking_code):
        booking = BookingService.get_by_code(booking_code)
        if actor.is_admin:
            return booking
        if actor.role == UserRole.CUSTOMER.value and booking.customer_id == actor.id:
            return booking
        if actor.role == UserRole.MAID.value:
            if booking.status == BookingStatus.PENDING.value:
                return booking
            if booking.maid and booking.maid.user_id == actor.id:
                return booking
        raise Forbidden("You cannot view this booking.")

    @staticmethod
    def list_bookings_for_actor(actor, limit=20, offset=0):
        query = Booking.query
        if actor.role == UserRole.CUSTOMER.value:
            query = query.filter(Booking.customer_id == actor.id)
        elif actor.role == UserRole.MAID.value:
            maid = BookingService._maid_for_user(actor)
            query = query.filter(Booking.maid_id == maid.id)
        elif not actor.is_admin:
            raise Forbidden("Forbidden.")
        return (
            query.order_by(Booking.scheduled_date.desc(), Booking.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def list_open_bookings(actor, limit=20, offset=0):
        if actor.role != UserRole.MAID.value:
            raise Forbidden("Only maids can browse open bookings.")
        return (
            Booking.query.filter(Booking.status == BookingStatus.PENDING.value)
            .order_by(Booking.scheduled_date.asc(), Booking.id.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
