from functools import wraps

from flask import abort
from flask_login import current_user

from app.errors import Forbidden


def role_required(*roles):
    """Restrict a view to signed-in users holding one of ``roles``.

    Roles may be given as plain strings or ``UserRole`` members.
    """
    allowed = {getattr(role, "value", role) for role in roles}

    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in allowed:
                raise Forbidden(f"This action requires one of: {', '.join(sorted(allowed))}.")
            return func(*args, **kwargs)

        return inner

    return wrapper
