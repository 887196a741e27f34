from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.services import NotificationService

api_notification_bp = Blueprint("api_notification", __name__)


@api_notification_bp.get("/me")
@login_required
def my_notifications():
    limit = min(max(request.args.get("limit", default=20, type=int), 1), 100)
    offset = max(request.args.get("offset", default=0, type=int), 0)
    items = NotificationService.latest_for_user(current_user.id, limit=limit, offset=offset)
    return jsonify(
        {
            "unread": NotificationService.unread_count(current_user.id),
            "items": [n.to_dict() for n in items],
        }
    )


@api_notification_bp.post("/me/read")
@login_required
def mark_all_read():
    NotificationService.mark_all_read(current_user.id)
    return jsonify({"ok": True})


@api_notification_bp.post("/<int:notification_id>/read")
@login_required
def mark_read(notification_id):
    return jsonify(NotificationService.mark_read(current_user.id, notification_id).to_dict())
