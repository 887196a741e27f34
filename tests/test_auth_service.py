"""Tests for OTP login and staff accounts."""

import pytest

from app.errors import AppError, Conflict, Forbidden, InvalidArgument, InvalidCode
from app.extensions import db
from app.models import User, Wallet
from app.models.enums import UserRole
from app.services import AuthService, OtpService
from tests.conftest import make_user

PHONE = "9876543210"


class TestOtpLogin:
    def test_first_login_creates_customer_with_wallet(self, app, sent_otps):
        OtpService.issue(PHONE)
        user, created = AuthService.login_with_otp(PHONE, sent_otps[PHONE])

        assert created is True
        assert user.role == UserRole.CUSTOMER.value
        assert user.open_id == f"phone_{PHONE}"
        assert user.login_method == "otp"
        assert Wallet.query.filter_by(user_id=user.id).count() == 1

    def test_returning_user_is_not_recreated(self, app, sent_otps):
        existing = make_user(UserRole.MAID, phone=PHONE)
        OtpService.issue(PHONE)
        user, created = AuthService.login_with_otp("+91" + PHONE, sent_otps[PHONE])

        assert created is False
        assert user.id == existing.id
        assert User.query.count() == 1

    def test_wrong_code_creates_nothing(self, app, sent_otps):
        OtpService.issue(PHONE)
        wrong = "000000" if sent_otps[PHONE] != "000000" else "111111"
        with pytest.raises(InvalidCode):
            AuthService.login_with_otp(PHONE, wrong)
        assert User.query.count() == 0

    def test_inactive_user_is_refused(self, app, sent_otps):
        user = make_user(phone=PHONE)
        user.is_active_user = False
        db.session.commit()
        OtpService.issue(PHONE)
        with pytest.raises(Forbidden):
            AuthService.login_with_otp(PHONE, sent_otps[PHONE])


class TestStaff:
    def test_create_and_authenticate(self, app):
        AuthService.create_staff_user("Ops", "Ops@Example.com", "s3cret-pass", "admin")
        user = AuthService.authenticate_staff("ops@example.com", "s3cret-pass")
        assert user.is_admin
        assert user.password_hash != "s3cret-pass"

    def test_wrong_password(self, app):
        AuthService.create_staff_user("Ops", "ops@example.com", "s3cret-pass")
        with pytest.raises(AppError) as excinfo:
            AuthService.authenticate_staff("ops@example.com", "nope")
        assert excinfo.value.status_code == 401

    def test_duplicate_email(self, app):
        AuthService.create_staff_user("Ops", "ops@example.com", "s3cret-pass")
        with pytest.raises(Conflict):
            AuthService.create_staff_user("Ops", "ops@example.com", "s3cret-pass")

    @pytest.mark.parametrize(
        "email, password, role",
        [("bad", "s3cret-pass", "admin"), ("ops@example.com", "short", "admin"), ("ops@example.com", "s3cret-pass", "maid")],
    )
    def test_validation(self, app, email, password, role):
        with pytest.raises(InvalidArgument):
            AuthService.create_staff_user("Ops", email, password, role)
