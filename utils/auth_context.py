from functools import wraps
from flask import g, jsonify, request
from security.session import get_session_from_request
from models import db
from models.user import User

GUEST_HEADER = "X-Guest-Id"


def load_current_user():
    """Resolve the session cookie (if any) and the guest id header into ``g``."""
    g.guest_id = (request.headers.get(GUEST_HEADER) or "").strip()[:64] or None

    sess = get_session_from_request()
    if not sess:
        g.user = None
        g.session = None
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)


def current_user_id():
    user = getattr(g, "user", None)
    return user.id if user is not None else None


def current_guest_id():
    return getattr(g, "guest_id", None)


def _unauthenticated():
    return jsonify(error="Authentication required", code="UNAUTHENTICATED"), 401


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return _unauthenticated()
        return fn(*args, **kwargs)
    return wrapper


def identity_required(fn):
    """A signed-in user or a guest id header."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None and not current_guest_id():
            return _unauthenticated()
        return fn(*args, **kwargs)
    return wrapper
