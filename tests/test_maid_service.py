"""Tests for maid profiles."""

import io
from decimal import Decimal

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from app.errors import Forbidden, InvalidArgument
from app.models import Wallet
from app.models.enums import UserRole, VerificationStatus
from app.services import MaidService
from tests.conftest import make_admin, make_maid, make_user


def _png_upload(name="id.png"):
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="white").save(buffer, format="PNG")
    buffer.seek(0)
    return FileStorage(stream=buffer, filename=name, content_type="image/png")


class TestRegister:
    def test_customer_becomes_maid(self, app):
        user = make_user()
        maid = MaidService.register(user, bio="Ten years of housekeeping", experience="10", service_types=["Cook"])

        assert user.role == UserRole.MAID.value
        assert maid.service_types == ["cook"]
        assert maid.verification_status == VerificationStatus.PENDING.value
        assert Wallet.query.filter_by(user_id=user.id).count() == 1

    def test_cannot_register_twice(self, app):
        user, _ = make_maid()
        with pytest.raises(Forbidden):
            MaidService.register(user)

    def test_rejects_unknown_service_type(self, app):
        with pytest.raises(InvalidArgument):
            MaidService.register(make_user(), service_types=["gardener"])


class TestProfile:
    def test_profile_includes_wallet_and_ratings(self, app):
        user, _ = make_maid()
        profile = MaidService.get_profile(user)
        assert profile["wallet"]["balance"] == "0.00"
        assert profile["average_rating"] == 0
        assert profile["total_ratings"] == 0

    def test_update_availability(self, app):
        user, maid = make_maid()
        MaidService.update_availability(user, False, "08:00", "17:30")
        assert maid.is_available is False
        assert maid.availability_start_time == "08:00"

    @pytest.mark.parametrize("start, end", [("25:00", "17:00"), ("8am", "17:00"), ("18:00", "09:00")])
    def test_rejects_bad_hours(self, app, start, end):
        user, _ = make_maid()
        with pytest.raises(InvalidArgument):
            MaidService.update_availability(user, True, start, end)

    def test_earnings_for_new_maid(self, app):
        user, _ = make_maid()
        wallet, entries = MaidService.earnings(user)
        assert wallet.balance == Decimal("0.00")
        assert entries == []


class TestDocuments:
    def test_upload_appends_document(self, app):
        user, maid = make_maid()
        documents = MaidService.add_document(user, _png_upload(), "id_proof", app.config["UPLOAD_DIR"])
        assert len(documents) == 1
        assert documents[0]["type"] == "id_proof"
        assert documents[0]["url"].endswith(".png")

    def test_rejects_non_image(self, app):
        user, _ = make_maid()
        fake = FileStorage(stream=io.BytesIO(b"not an image"), filename="id.png")
        with pytest.raises(InvalidArgument):
            MaidService.add_document(user, fake, "id_proof", app.config["UPLOAD_DIR"])


class TestVerification:
    def test_admin_verifies(self, app):
        _, maid = make_maid()
        MaidService.set_verification_status(make_admin(), maid.id, "verified")
        assert maid.verification_status == VerificationStatus.VERIFIED.value

    def test_maid_cannot_verify_self(self, app):
        user, maid = make_maid()
        with pytest.raises(Forbidden):
            MaidService.set_verification_status(user, maid.id, "verified")

    def test_unknown_status(self, app):
        _, maid = make_maid()
        with pytest.raises(InvalidArgument):
            MaidService.set_verification_status(make_admin(), maid.id, "approved")
