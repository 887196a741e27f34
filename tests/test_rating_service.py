"""Tests for post-completion ratings."""

from decimal import Decimal

import pytest

from app.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition
from app.extensions import db
from app.services import BookingService, RatingService
from tests.conftest import booking_kwargs, make_maid, make_service, make_user


def _completed_booking(customer, service, maid_user):
    booking, _ = BookingService.create_booking(customer, **booking_kwargs(service))
    BookingService.accept_booking(maid_user, booking.booking_code)
    BookingService.start_booking(maid_user, booking.booking_code)
    BookingService.complete_booking(maid_user, booking.booking_code)
    return booking


class TestRateBooking:
    def test_updates_maid_average(self, app):
        customer = make_user()
        service = make_service()
        maid_user, maid = make_maid()

        first = _completed_booking(customer, service, maid_user)
        second = _completed_booking(customer, service, maid_user)
        RatingService.rate_booking(customer, first.booking_code, 5, review="Great work")
        RatingService.rate_booking(customer, second.booking_code, 4)

        db.session.refresh(maid)
        assert maid.rating == Decimal("4.50")

    def test_one_rating_per_booking(self, app):
        customer = make_user()
        maid_user, _ = make_maid()
        booking = _completed_booking(customer, make_service(), maid_user)
        RatingService.rate_booking(customer, booking.booking_code, 5)
        with pytest.raises(Conflict):
            RatingService.rate_booking(customer, booking.booking_code, 3)

    def test_requires_completed_booking(self, app):
        customer = make_user()
        booking, _ = BookingService.create_booking(customer, **booking_kwargs(make_service()))
        with pytest.raises(InvalidTransition):
            RatingService.rate_booking(customer, booking.booking_code, 5)

    @pytest.mark.parametrize("value", [0, 6, "five", None])
    def test_rejects_out_of_range(self, app, value):
        with pytest.raises(InvalidArgument):
            RatingService.rate_booking(make_user(), "BK-20300115-AAAAA", value)

    def test_only_booking_customer(self, app):
        customer = make_user()
        maid_user, _ = make_maid()
        booking = _completed_booking(customer, make_service(), maid_user)
        with pytest.raises(Forbidden):
            RatingService.rate_booking(make_user(), booking.booking_code, 5)
