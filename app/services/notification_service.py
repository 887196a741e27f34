from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app.errors import NotFound
from app.extensions import db
from app.models import Notification
from app.models.base import utcnow


class NotificationService:
    @staticmethod
    def notify(user_id, type, title, message, data=None):
        """Best effort: a failed write is logged and dropped, never raised."""
        notification = Notification(user_id=user_id, type=type, title=title, message=message, data=data)
        try:
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning("Notification %r for user %s dropped: %s", type, user_id, exc)
            return None
        return notification

    @staticmethod
    def unread_count(user_id):
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def latest_for_user(user_id, limit=20, offset=0):
        return (
            Notification.query.filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def mark_read(user_id, notification_id):
        notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
        if not notification:
            raise NotFound("Notification not found.")
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
        return notification

    @staticmethod
    def mark_all_read(user_id):
        Notification.query.filter_by(user_id=user_id, is_read=False).update({"is_read": True, "read_at": utcnow()})
        db.session.commit()
