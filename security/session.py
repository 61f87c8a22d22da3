"""
Server-side session verification. Sessions are issued by the login service;
this backend only resolves the cookie to a user.
"""
import hashlib
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.session import Session


def hash_token(token: str) -> str:
    """Sessions are stored by the sha256 of their cookie token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_session_from_request():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "arena_session")
    raw_token = request.cookies.get(cookie_name)
    if not raw_token:
        return None

    now = datetime.utcnow()
    sess = (
        Session.query
        .filter_by(token_hash=hash_token(raw_token), revoked=False)
        .first()
    )
    if not sess or sess.expires_at <= now:
        return None

    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
    last_seen = sess.last_seen_at or sess.created_at
    if (last_seen + timedelta(seconds=idle_seconds)) <= now:
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess
