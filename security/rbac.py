from functools import wraps
from flask import g, jsonify


def _denied(message: str, code: str, status: int):
    return jsonify(error=message, code=code), status


def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN")

    Anonymous callers get 401, signed-in users without any of the roles 403.
    """
    wanted = set(role_names)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return _denied("Authentication required", "UNAUTHENTICATED", 401)
            if not any(user.has_role(name) for name in wanted):
                return _denied("Forbidden", "FORBIDDEN", 403)
            return fn(*args, **kwargs)
        return wrapper
    return decorator
