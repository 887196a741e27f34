from datetime import datetime, timezone

from app.errors import InvalidArgument
from app.extensions import db
from sqlalchemy import BigInteger, Integer


# Use BIGINT in PostgreSQL, but INTEGER in SQLite so autoincrement works.
PKType = BigInteger().with_variant(Integer, "sqlite")


def utcnow():
    return datetime.now(timezone.utc)


def enum_value(enum_cls, value, label, nullable=False):
    """Coerce ``value`` into a member value of ``enum_cls`` or raise InvalidArgument."""
    if value is None and nullable:
        return None
    try:
        return enum_cls(value).value
    except ValueError as exc:
        raise InvalidArgument(f"Invalid {label}: {value!r}.") from exc


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
