from decimal import Decimal

from sqlalchemy import func

from app.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition
from app.extensions import db
from app.models import Maid, Rating
from app.models.enums import BookingStatus, NotificationType
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService
from app.services.unit_of_work import atomic


class RatingService:
    @staticmethod
    def rate_booking(customer, booking_code, rating, review=None, is_anonymous=False):
        try:
            rating_int = int(rating)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("Rating must be an integer between 1 and 5.") from exc
        if rating_int < 1 or rating_int > 5:
            raise InvalidArgument("Rating must be an integer between 1 and 5.")

        booking = BookingService.get_by_code(booking_code)
        if booking.customer_id != customer.id:
            raise Forbidden("Forbidden.")
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidTransition("Ratings unlock after the booking is completed.")
        if Rating.query.filter_by(booking_id=booking.id).first():
            raise Conflict("This booking has already been rated.")

        maid_id = booking.maid_id
        entry = Rating(
            booking_id=booking.id,
            maid_id=maid_id,
            customer_id=customer.id,
            rating=rating_int,
            review=(review or "").strip() or None,
            is_anonymous=bool(is_anonymous),
        )
        with atomic():
            db.session.add(entry)
            db.session.flush()
            # Materialized aggregate for faster reads.
            avg_rating = db.session.query(func.avg(Rating.rating)).filter(Rating.maid_id == maid_id).scalar()
            maid = db.session.get(Maid, maid_id)
            maid.rating = Decimal(str(round(float(avg_rating or 0), 2)))

        NotificationService.notify(
            maid.user_id,
            NotificationType.RATING_RECEIVED,
            "New Rating",
            f"You received a {rating_int}-star rating for booking {booking.booking_code}.",
            {"bookingCode": booking.booking_code, "rating": rating_int},
        )
        return entry
