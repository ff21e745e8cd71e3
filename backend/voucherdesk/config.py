# backend/voucherdesk/config.py
from __future__ import annotations
import os
from datetime import timedelta


AUTH_MODE_STRICT = "strict"
AUTH_MODE_BYPASS = "bypass"
AUTH_MODES = {AUTH_MODE_STRICT, AUTH_MODE_BYPASS}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "voucher-management-secret")

    # In-memory SQLite by default: state lives as long as the process
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional persistent location
        "sqlite:///:memory:",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "strict" requires a session on every gated route.
    # "bypass" fabricates a caller for anonymous requests (local development only).
    AUTH_MODE = os.environ.get("VOUCHERDESK_AUTH_MODE", AUTH_MODE_STRICT).strip().lower()

    # Ids handed to fabricated callers in bypass mode; they line up with the demo users
    BYPASS_USER_IDS = {"owner": 1, "employee": 2, "customer": 3}

    SESSION_TOKEN_COOKIE = "session_token"
    SESSION_MAX_AGE = timedelta(days=7)
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() == "true"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Create the demo owner/employee/customer accounts on startup
    SEED_DEMO_USERS = os.environ.get("VOUCHERDESK_SEED_DEMO_USERS", "false").lower() == "true"

    # Run db.create_all() in create_app (needed for the in-memory default)
    CREATE_TABLES_ON_STARTUP = os.environ.get("VOUCHERDESK_CREATE_TABLES", "true").lower() == "true"

    # bcrypt cost factor for new password hashes
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
