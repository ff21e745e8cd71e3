# backend/voucherdesk/routes/system.py
"""
System health endpoint.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..storage import get_storage

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and row counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    storage = get_storage()
    try:
        storage.session.execute(text("SELECT 1"))
        details = {
            "users": storage.users.count(),
            "vouchers": storage.vouchers.count(),
            "distributions": storage.distributions.count(),
            "sales": storage.sales.count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        storage.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "auth_mode": current_app.config["AUTH_MODE"],
        "checks": {"database": database},
    }
    return jsonify(body), 200 if healthy else 503
