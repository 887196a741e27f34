"""Shared test fixtures and helpers."""

from decimal import Decimal
from itertools import count

import pytest

from app import create_app
from app.extensions import db
from app.models import Maid, Service, User
from app.models.enums import UserRole
from app.services import SmsService

_serial = count(1)


@pytest.fixture
def flask_app(tmp_path):
    """Application with an empty schema and no context pushed.

    HTTP tests use this one: a pushed app context would be shared by every
    test client request, leaking the logged-in user through ``g``.
    """
    app = create_app("testing", overrides={"UPLOAD_DIR": str(tmp_path / "uploads")})
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def app(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def sent_otps(monkeypatch):
    """Capture OTP codes instead of delivering them; maps phone -> last code."""
    outbox = {}

    def fake_send(phone, code):
        outbox[phone] = code
        return True

    monkeypatch.setattr(SmsService, "send_otp", staticmethod(fake_send))
    return outbox


def make_phone():
    return f"98{next(_serial):08d}"


def make_user(role=UserRole.CUSTOMER, phone=None, name="Test User"):
    phone = phone or make_phone()
    user = User(open_id=f"phone_{phone}", phone=phone, name=name, role=role, login_method="otp")
    db.session.add(user)
    db.session.commit()
    return user


def make_maid(phone=None):
    user = make_user(UserRole.MAID, phone=phone, name="Test Maid")
    maid = Maid(user_id=user.id, service_types=["maid"], documents=[])
    db.session.add(maid)
    db.session.commit()
    return user, maid


def make_admin():
    return make_user(UserRole.ADMIN, name="Test Admin")


def make_service(name="cleaning", base_price="500"):
    service = Service(name=name, base_price=Decimal(base_price), is_active=True)
    db.session.add(service)
    db.session.commit()
    return service


def booking_kwargs(service, **overrides):
    values = {
        "service_id": service.id,
        "scheduled_date": "2030-01-15T09:00:00Z",
        "duration": 120,
        "location": "12 MG Road, Bengaluru",
    }
    values.update(overrides)
    return values
