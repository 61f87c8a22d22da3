import logging

import click
from flask import Flask, jsonify

from config import Config
from routes import health_bp, catalog_bp, booking_bp, admin_bp

from models import db
from models.db import enable_sqlite_write_locking
from flask_migrate import Migrate
from services.errors import BookingError
from utils.seed import seed_roles
from utils.auth_context import load_current_user

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            enable_sqlite_write_locking(db.engine)
        if app.config.get("AUTO_CREATE_TABLES"):
            db.create_all()
        # Seed default roles at startup (safe & idempotent)
        seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        return jsonify(exc.to_dict()), exc.http_status

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
from models.user import User, Role
from services.lifecycle import expire_stale_pending
from utils.seed import seed_sports

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name="ADMIN").first()
        if not admin_role:
            admin_role = Role(name="ADMIN")
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-sports")
    def seed_sports_command():
        """Create the default sports with weekend pricing (idempotent)."""
        created = seed_sports()
        click.echo(f"Created {len(created)} sport(s)")

    @app.cli.command("expire-pending")
    def expire_pending_command():
        """Cancel online bookings left unpaid past the hold window."""
        count = expire_stale_pending()
        click.echo(f"Expired {count} pending booking(s)")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
