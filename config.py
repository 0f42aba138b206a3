import os
BASE = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")

    # Hosted Postgres when DATABASE_URL is set, otherwise a local SQLite file
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{os.path.join(BASE, 'paprika.db')}"
    )

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ── SQLAlchemy pool ──
    #   pool_pre_ping: probe the connection before use so stale ones are dropped
    #   pool_recycle:  hosts close idle connections; recycle before that happens
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 280,
    }

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # ─────────────────────────────────────────────
    # Portal: bearer tokens, accounts, payroll
    # ─────────────────────────────────────────────
    # Lifetime (seconds) of the signed bearer tokens used by /api/*
    TOKEN_TTL_SEC = int(os.getenv("TOKEN_TTL_SEC", "3600"))
    MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))
    # Used when the store_settings singleton does not exist yet
    DEFAULT_PAYROLL_LIMIT = os.getenv("DEFAULT_PAYROLL_LIMIT", "500.00")
    # Flash banners disappear after this many milliseconds
    FLASH_DISMISS_MS = int(os.getenv("FLASH_DISMISS_MS", "3000"))

    # ── Calendar export ──
    STORE_NAME = os.getenv("STORE_NAME", "Paprika")
    ICS_DOMAIN = os.getenv("ICS_DOMAIN", "paprika.nl")

    # ─────────────────────────────────────────────
    # Checklist dashboard (in-memory demo data)
    # ─────────────────────────────────────────────
    OIL_CHANGE_INTERVAL_DAYS = int(os.getenv("OIL_CHANGE_INTERVAL_DAYS", "7"))
    # Fixed seed makes the generated checklists reproducible; empty = random
    DEMO_SEED = os.getenv("DEMO_SEED") or None


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    DEMO_SEED = "7"
