"""Tests for OTP issuance and verification."""

from datetime import timedelta

import pytest

from app.errors import InvalidArgument, InvalidCode, NotFound, TooManyAttempts
from app.extensions import db
from app.models import OtpSession
from app.models.base import utcnow
from app.services import OtpService

PHONE = "9876543210"


def _wrong(code):
    return "000000" if code != "000000" else "111111"


class TestNormalizePhone:
    def test_strips_country_code_and_formatting(self):
        assert OtpService.normalize_phone("+91 98765-43210") == PHONE

    @pytest.mark.parametrize("phone", ["", "12345", "5876543210", "98765432101"])
    def test_rejects_invalid_numbers(self, phone):
        with pytest.raises(InvalidArgument):
            OtpService.normalize_phone(phone)


class TestIssue:
    def test_returns_expiry_and_stores_only_hash(self, app, sent_otps):
        result = OtpService.issue(PHONE)
        assert result["success"] is True
        assert result["expires_in"] == 600

        code = sent_otps[PHONE]
        assert len(code) == 6 and code.isdigit()
        session = OtpSession.query.filter_by(phone=PHONE).one()
        assert session.otp_hash != code
        assert session.otp_hash == OtpService.hash_code(code, session.salt)
        assert len(session.salt) == 32

    def test_new_code_supersedes_outstanding_session(self, app, sent_otps):
        OtpService.issue(PHONE)
        first = sent_otps[PHONE]
        OtpService.issue(PHONE)
        second = sent_otps[PHONE]

        assert OtpSession.query.filter_by(phone=PHONE).count() == 1
        if first != second:
            with pytest.raises(InvalidCode):
                OtpService.verify(PHONE, first)
        assert OtpService.verify(PHONE, second) is True


class TestVerify:
    def test_correct_code_succeeds_once(self, app, sent_otps):
        OtpService.issue(PHONE)
        code = sent_otps[PHONE]
        assert OtpService.verify(PHONE, code) is True
        with pytest.raises(NotFound):
            OtpService.verify(PHONE, code)

    def test_wrong_code_counts_attempt(self, app, sent_otps):
        OtpService.issue(PHONE)
        with pytest.raises(InvalidCode):
            OtpService.verify(PHONE, _wrong(sent_otps[PHONE]))
        db.session.expire_all()
        assert OtpSession.query.filter_by(phone=PHONE).one().attempts == 1

    def test_attempts_exhausted_even_with_correct_code(self, app, sent_otps):
        OtpService.issue(PHONE)
        code = sent_otps[PHONE]
        for _ in range(5):
            with pytest.raises(InvalidCode):
                OtpService.verify(PHONE, _wrong(code))
        with pytest.raises(TooManyAttempts):
            OtpService.verify(PHONE, code)

    def test_expired_session_is_not_found(self, app, sent_otps):
        OtpService.issue(PHONE)
        OtpSession.query.update({OtpSession.expires_at: utcnow() - timedelta(seconds=1)})
        db.session.commit()
        with pytest.raises(NotFound):
            OtpService.verify(PHONE, sent_otps[PHONE])

    def test_unknown_phone_is_not_found(self, app):
        with pytest.raises(NotFound):
            OtpService.verify(PHONE, "123456")


class TestPurge:
    def test_removes_only_expired_sessions(self, app, sent_otps):
        OtpService.issue(PHONE)
        OtpService.issue("9123456789")
        OtpSession.query.filter_by(phone=PHONE).update({OtpSession.expires_at: utcnow() - timedelta(minutes=1)})
        db.session.commit()

        assert OtpService.purge_expired() == 1
        assert [s.phone for s in OtpSession.query.all()] == ["9123456789"]
