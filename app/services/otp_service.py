import hashlib
import hmac
import re
import secrets
from datetime import timedelta

from flask import current_app

from app.errors import InvalidArgument, InvalidCode, NotFound, TooManyAttempts
from app.extensions import db
from app.models import OtpSession
from app.models.base import utcnow
from app.services.sms_service import SmsService
from app.services.unit_of_work import atomic

PHONE_PATTERN = re.compile(r"[6-9]\d{9}")


class OtpService:
    @staticmethod
    def normalize_phone(phone):
        digits = "".join(ch for ch in str(phone or "") if ch.isdigit())
        if len(digits) == 12 and digits.startswith("91"):
            digits = digits[2:]
        if not PHONE_PATTERN.fullmatch(digits):
            raise InvalidArgument("Invalid phone number.")
        return digits

    @staticmethod
    def _generate_code():
        return str(100000 + secrets.randbelow(900000))

    @staticmethod
    def _generate_salt():
        return secrets.token_hex(16)

    @staticmethod
    def hash_code(code, salt):
        return hashlib.sha256(f"{code}{salt}".encode("utf-8")).hexdigest()

    @staticmethod
    def _latest_session(phone):
        return (
            OtpSession.query.filter(OtpSession.phone == phone)
            .filter(OtpSession.expires_at > utcnow())
            .order_by(OtpSession.created_at.desc(), OtpSession.id.desc())
            .first()
        )

    @staticmethod
    def issue(phone):
        phone = OtpService.normalize_phone(phone)
        code = OtpService._generate_code()
        salt = OtpService._generate_salt()
        ttl_minutes = int(current_app.config.get("OTP_TTL_MINUTES", 10))

        with atomic():
            # A new code supersedes anything still outstanding for this phone.
            OtpSession.query.filter_by(phone=phone).delete(synchronize_session=False)
            db.session.add(
                OtpSession(
                    phone=phone,
                    otp_hash=OtpService.hash_code(code, salt),
                    salt=salt,
                    attempts=0,
                    max_attempts=int(current_app.config.get("OTP_MAX_ATTEMPTS", 5)),
                    expires_at=utcnow() + timedelta(minutes=ttl_minutes),
                )
            )

        SmsService.send_otp(phone, code)
        return {
            "success": True,
            "message": "OTP sent to your phone",
            "expires_in": ttl_minutes * 60,
        }

    @staticmethod
    def verify(phone, code):
        phone = OtpService.normalize_phone(phone)
        session = OtpService._latest_session(phone)
        if not session:
            raise NotFound("OTP session not found or expired.")
        if session.attempts >= session.max_attempts:
            raise TooManyAttempts("Too many failed attempts. Please request a new OTP.")

        supplied = OtpService.hash_code(str(code or "").strip(), session.salt)
        if not hmac.compare_digest(supplied, session.otp_hash):
            with atomic():
                OtpSession.query.filter_by(id=session.id).update(
                    {OtpSession.attempts: OtpSession.attempts + 1},
                    synchronize_session=False,
                )
            raise InvalidCode("Invalid OTP.")

        with atomic():
            consumed = (
                OtpSession.query.filter(OtpSession.id == session.id)
                .filter(OtpSession.attempts < OtpSession.max_attempts)
                .delete(synchronize_session=False)
            )
        if not consumed:
            # Lost a race with a concurrent verify or a fresh issue.
            raise NotFound("OTP session not found or expired.")
        return True

    @staticmethod
    def purge_expired():
        with atomic():
            removed = OtpSession.query.filter(OtpSession.expires_at <= utcnow()).delete(synchronize_session=False)
        return removed
