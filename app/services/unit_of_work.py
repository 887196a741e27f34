from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError

from app.errors import Unavailable
from app.extensions import db


@contextmanager
def atomic():
    """Run the enclosed block as one database transaction.

    Commits on success and rolls back on any exception. A lost or unreachable
    database surfaces as ``Unavailable`` instead of a raw driver error.
    """
    try:
        yield db.session
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        current_app.logger.error("Database unavailable during unit of work: %s", exc)
        raise Unavailable("Service temporarily unavailable. Please retry.") from exc
    except Exception:
        db.session.rollback()
        raise
