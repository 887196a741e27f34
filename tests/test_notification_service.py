"""Tests for in-app notifications."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.errors import NotFound
from app.extensions import db
from app.models.enums import NotificationType
from app.services import NotificationService
from tests.conftest import make_user


class TestNotify:
    def test_unread_count_and_mark_read(self, app):
        user = make_user()
        first = NotificationService.notify(user.id, NotificationType.SYSTEM_ALERT, "Hello", "First")
        NotificationService.notify(user.id, "job_alert", "Hello", "Second", {"bookingCode": "BK-20300115-AAAAA"})
        assert NotificationService.unread_count(user.id) == 2

        NotificationService.mark_read(user.id, first.id)
        assert NotificationService.unread_count(user.id) == 1
        NotificationService.mark_all_read(user.id)
        assert NotificationService.unread_count(user.id) == 0

    def test_latest_first(self, app):
        user = make_user()
        for index in range(3):
            NotificationService.notify(user.id, NotificationType.SYSTEM_ALERT, f"N{index}", "body")
        titles = [n.title for n in NotificationService.latest_for_user(user.id, limit=2)]
        assert titles == ["N2", "N1"]

    def test_cannot_read_someone_elses(self, app):
        owner = make_user()
        notification = NotificationService.notify(owner.id, NotificationType.SYSTEM_ALERT, "Hi", "body")
        with pytest.raises(NotFound):
            NotificationService.mark_read(make_user().id, notification.id)

    def test_write_failure_is_swallowed(self, app, monkeypatch):
        user = make_user()

        def broken_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db.session, "commit", broken_commit)
        assert NotificationService.notify(user.id, NotificationType.SYSTEM_ALERT, "Hi", "body") is None
