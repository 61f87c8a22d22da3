import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite file next to the app unless DATABASE_URL points at Postgres
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "arena.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # One pool per process; a connection is checked out per request and
    # returned at app-context teardown.
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Create tables at startup instead of running migrations (tests, local dev)
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "false").lower() == "true"

    # Session cookie issued by the login service
    AUTH_COOKIE_NAME = "arena_session"
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60
    IDLE_TIMEOUT_SECONDS = 20 * 60

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False  # set True when using HTTPS

    # Venue runs on PKT (UTC+5, no DST)
    VENUE_UTC_OFFSET_HOURS = int(os.getenv("VENUE_UTC_OFFSET_HOURS", "5"))

    # Pending online bookings hold their slot this long while the customer pays
    PENDING_HOLD_MINUTES = int(os.getenv("PENDING_HOLD_MINUTES", "15"))

    # Booking durations accepted from clients (hours)
    MIN_BOOKING_HOURS = 1
    MAX_BOOKING_HOURS = 4
    DEFAULT_DURATION_OPTIONS = [1, 1.5, 2, 3]

    # Whole-operation retries on deadlock / database locked
    TX_RETRY_ATTEMPTS = int(os.getenv("TX_RETRY_ATTEMPTS", "3"))

    WALK_IN_EMAIL = os.getenv("WALK_IN_EMAIL", "walk-in@arena.local")

    # WhatsApp Cloud API (notifications are skipped when unset)
    WHATSAPP_TOKEN = os.getenv("WHATSAPP_TOKEN")
    WHATSAPP_PHONE_NUMBER_ID = os.getenv("WHATSAPP_PHONE_NUMBER_ID")
    WHATSAPP_API_VERSION = os.getenv("WHATSAPP_API_VERSION", "v20.0")
    WHATSAPP_DEFAULT_COUNTRY_CODE = os.getenv("WHATSAPP_DEFAULT_COUNTRY_CODE", "92")
    WHATSAPP_TIMEOUT_SECONDS = 10

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
