"""
Shared fixtures.

Every test gets a fresh Flask app backed by a temporary SQLite file (not
:memory:, so that worker threads in the concurrency tests share one
database) and runs inside that app's context.
"""
import secrets
from datetime import datetime, timedelta

import pytest
from flask import current_app

from app import create_app
from config import Config
from models import db
from models.session import Session
from models.user import User, Role
from security.session import hash_token
from utils.seed import seed_sports

CUSTOMER = {
    "customer_name": "Ali Khan",
    "customer_email": "ali@example.com",
    "customer_phone": "03001234567",
}


class ArenaTestConfig(Config):
    TESTING = True
    AUTO_CREATE_TABLES = True
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}
    WHATSAPP_TOKEN = None
    WHATSAPP_PHONE_NUMBER_ID = None
    LOG_LEVEL = "WARNING"


@pytest.fixture()
def app(tmp_path):
    class _Config(ArenaTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def sports(app):
    """Cricket, Futsal and Padel with their weekend prices; returns {name: id}."""
    created = seed_sports()
    ids = {s.name: s.id for s in created}
    db.session.commit()
    return ids


@pytest.fixture()
def futsal(sports):
    return sports["Futsal"]


def _make_user(email, *roles):
    user = User(email=email, full_name=email.split("@")[0], phone_number="03001234567")
    for name in roles:
        role = Role.query.filter_by(name=name).first()
        user.roles.append(role)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def customer(app):
    return _make_user("ali@example.com", "CUSTOMER")


@pytest.fixture()
def other_customer(app):
    return _make_user("sara@example.com", "CUSTOMER")


@pytest.fixture()
def admin(app):
    return _make_user("admin@example.com", "ADMIN")


def issue_session(user_id, lifetime_seconds=None):
    """What the login service does: store the hash, hand out the raw token."""
    token = secrets.token_urlsafe(32)
    if lifetime_seconds is None:
        lifetime_seconds = current_app.config["SESSION_LIFETIME_SECONDS"]
    db.session.add(Session(
        user_id=user_id,
        token_hash=hash_token(token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime_seconds),
    ))
    db.session.commit()
    return token


def _login(app, client, user):
    token = issue_session(user.id)
    client.set_cookie(app.config["AUTH_COOKIE_NAME"], token)
    return client


@pytest.fixture()
def customer_client(app, customer):
    return _login(app, app.test_client(), customer)


@pytest.fixture()
def other_client(app, other_customer):
    return _login(app, app.test_client(), other_customer)


@pytest.fixture()
def admin_client(app, admin):
    return _login(app, app.test_client(), admin)
