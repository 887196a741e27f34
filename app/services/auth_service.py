import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from app.errors import AppError, Conflict, Forbidden, InvalidArgument
from app.extensions import bcrypt, db
from app.models import User
from app.models.base import utcnow
from app.models.enums import UserRole
from app.services.ledger_service import LedgerService
from app.services.otp_service import OtpService
from app.services.unit_of_work import atomic

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
STAFF_ROLES = {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}


class AuthService:
    @staticmethod
    def login_with_otp(phone, code):
        """Verify the OTP and return ``(user, created)`` for the phone's customer account."""
        phone = OtpService.normalize_phone(phone)
        OtpService.verify(phone, code)

        user = User.query.filter_by(phone=phone).first()
        created = False
        if user is None:
            user = User(
                open_id=f"phone_{phone}",
                phone=phone,
                role=UserRole.CUSTOMER,
                login_method="otp",
            )
            try:
                with atomic():
                    db.session.add(user)
                    db.session.flush()
                    LedgerService.ensure_wallet(user.id)
            except IntegrityError:
                # Concurrent first login for the same phone.
                user = User.query.filter_by(phone=phone).first()
                if user is None:
                    raise
            else:
                created = True
                current_app.logger.info("Registered customer %s via OTP.", user.id)

        if not user.is_active_user:
            raise Forbidden("User account is inactive.")
        with atomic():
            user.last_signed_in = utcnow()
            LedgerService.ensure_wallet(user.id)
        return user, created

    @staticmethod
    def create_staff_user(name, email, password, role=UserRole.ADMIN.value):
        role = getattr(role, "value", role)
        if role not in STAFF_ROLES:
            raise InvalidArgument("Invalid role.")
        normalized_email = (email or "").strip().lower()
        if not EMAIL_PATTERN.fullmatch(normalized_email):
            raise InvalidArgument("A valid email is required.")
        if len(password or "") < 8:
            raise InvalidArgument("Password must be at least 8 characters.")
        if User.query.filter_by(email=normalized_email).first():
            raise Conflict("Email already registered.")

        user = User(
            open_id=f"email_{normalized_email}",
            name=(name or "").strip() or None,
            email=normalized_email,
            role=role,
            login_method="password",
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
        )
        try:
            with atomic():
                db.session.add(user)
        except IntegrityError as exc:
            raise Conflict("Email already registered.") from exc
        return user

    @staticmethod
    def authenticate_staff(email, password):
        user = User.query.filter_by(email=(email or "").strip().lower()).first()
        if not user or not user.password_hash:
            raise AppError("Invalid credentials.", 401)

        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password or "")
        except ValueError:
            is_valid = False
        if not is_valid:
            raise AppError("Invalid credentials.", 401)
        if not user.is_active_user:
            raise Forbidden("User account is inactive.")
        if user.role not in STAFF_ROLES:
            raise Forbidden("Password login is for staff accounts only.")

        with atomic():
            user.last_signed_in = utcnow()
        return user
