# backend/voucherdesk/__init__.py
import logging

from flask import Flask, request

from .config import Config, AUTH_MODES, AUTH_MODE_BYPASS, AUTH_MODE_STRICT
from .extensions import db, migrate
from .storage import Storage, STORAGE_EXTENSION_KEY


ALLOWED_ORIGINS = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
}


def _check_bypass_users(app: Flask, storage: Storage) -> None:
    """Warn when a bypass id does not belong to a user of the matching role."""
    for role, user_id in app.config["BYPASS_USER_IDS"].items():
        user = storage.users.get(user_id)
        if user is None or user.role != role:
            app.logger.warning(
                "AUTH BYPASS: no %s user with id %s; records written as that caller will not reference one",
                role, user_id,
            )


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    if app.config["AUTH_MODE"] not in AUTH_MODES:
        raise ValueError(
            f"AUTH_MODE must be one of {sorted(AUTH_MODES)}, got {app.config['AUTH_MODE']!r}"
        )

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    app.extensions[STORAGE_EXTENSION_KEY] = Storage(db.session)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.vouchers import vouchers_bp
    from .routes.distributions import distributions_bp
    from .routes.sales import sales_bp
    from .routes.customers import customers_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(vouchers_bp)
    app.register_blueprint(distributions_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(customers_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in ALLOWED_ORIGINS:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    if app.config["AUTH_MODE"] != AUTH_MODE_STRICT:
        app.logger.warning("AUTH_MODE=%s: anonymous requests run as fabricated users", app.config["AUTH_MODE"])

    # In-memory databases start empty on every boot
    if app.config["CREATE_TABLES_ON_STARTUP"]:
        with app.app_context():
            db.create_all()
            storage = app.extensions[STORAGE_EXTENSION_KEY]
            # Fabricated bypass callers write their ids into created_by / owner_id
            if app.config["SEED_DEMO_USERS"] or app.config["AUTH_MODE"] == AUTH_MODE_BYPASS:
                from .services.auth_service import ensure_demo_users
                with storage.transaction():
                    created = ensure_demo_users(storage)
                if created:
                    app.logger.info("Seeded demo users: %s", ", ".join(u.username for u in created))
            if app.config["AUTH_MODE"] == AUTH_MODE_BYPASS:
                _check_bypass_users(app, storage)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
