from app.extensions import db
from app.models.base import TimestampMixin


class PlatformSetting(TimestampMixin, db.Model):
    """Key/value platform configuration editable by administrators at runtime."""

    __tablename__ = "platform_settings"

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=True)
