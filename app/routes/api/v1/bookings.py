from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.decorators import role_required
from app.extensions import cache
from app.services import BookingService, CatalogService, RatingService

api_booking_bp = Blueprint("api_booking", __name__)


def _page_args():
    limit = min(max(request.args.get("limit", default=20, type=int), 1), 100)
    offset = max(request.args.get("offset", default=0, type=int), 0)
    return limit, offset


@api_booking_bp.get("/services")
@cache.cached(timeout=120)
def list_services():
    return jsonify([CatalogService.to_dict(service) for service in CatalogService.list_services()])


@api_booking_bp.post("")
@role_required("customer")
def create_booking():
    payload = request.get_json(silent=True) or {}
    booking, breakdown = BookingService.create_booking(
        current_user,
        service_id=payload.get("serviceId"),
        scheduled_date=payload.get("scheduledDate"),
        duration=payload.get("duration"),
        location=payload.get("location"),
        latitude=payload.get("latitude"),
        longitude=payload.get("longitude"),
        special_requests=payload.get("specialRequests"),
    )
    return (
        jsonify(
            {
                "bookingCode": booking.booking_code,
                "quotedPrice": str(booking.quoted_price),
                "priceBreakdown": breakdown.quantized().as_dict(),
            }
        ),
        201,
    )


@api_booking_bp.get("/me")
@login_required
def my_bookings():
    limit, offset = _page_args()
    rows = BookingService.list_bookings_for_actor(current_user, limit=limit, offset=offset)
    return jsonify([booking.to_dict() for booking in rows])


@api_booking_bp.get("/open")
@role_required("maid")
def open_bookings():
    limit, offset = _page_args()
    rows = BookingService.list_open_bookings(current_user, limit=limit, offset=offset)
    return jsonify([booking.to_dict() for booking in rows])


@api_booking_bp.get("/<booking_code>")
@login_required
def booking_detail(booking_code):
    return jsonify(BookingService.get_booking_for_actor(current_user, booking_code).to_dict())


@api_booking_bp.post("/<booking_code>/accept")
@role_required("maid")
def accept_booking(booking_code):
    booking = BookingService.accept_booking(current_user, booking_code)
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<booking_code>/start")
@login_required
def start_booking(booking_code):
    booking = BookingService.start_booking(current_user, booking_code)
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<booking_code>/complete")
@login_required
def complete_booking(booking_code):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.complete_booking(current_user, booking_code, final_price=payload.get("finalPrice"))
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<booking_code>/cancel")
@login_required
def cancel_booking(booking_code):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.cancel_booking(
        current_user,
        booking_code,
        cancelled_by=payload.get("cancelledBy", current_user.role if not current_user.is_admin else "admin"),
        reason=payload.get("reason"),
    )
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<booking_code>/no-show")
@login_required
def mark_no_show(booking_code):
    return jsonify(BookingService.mark_no_show(current_user, booking_code).to_dict())


@api_booking_bp.patch("/<booking_code>/maid")
@role_required("admin", "super_admin")
def reassign_maid(booking_code):
    payload = request.get_json(silent=True) or {}
    booking = BookingService.reassign_maid(current_user, booking_code, payload.get("maidId"))
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<booking_code>/rating")
@role_required("customer")
def rate_booking(booking_code):
    payload = request.get_json(silent=True) or {}
    rating = RatingService.rate_booking(
        current_user,
        booking_code,
        payload.get("rating"),
        review=payload.get("review"),
        is_anonymous=payload.get("isAnonymous", False),
    )
    return jsonify(rating.to_dict()), 201
