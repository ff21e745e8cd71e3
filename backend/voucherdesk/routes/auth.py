# Overview: Flask API routes for registration, login, logout and the current caller.

# backend/voucherdesk/routes/auth.py
"""
Authentication API routes

- Sessions are server-side records; the client holds the token in an
  HttpOnly cookie (a Bearer header is accepted too)
- Self-registration always creates a customer account
- GET /api/user fabricates a caller from the Referer only in bypass mode
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import bypass_caller, bypass_enabled, load_caller, request_token
from ..errors import VoucherDeskError
from ..models import ROLE_CUSTOMER
from ..services import auth_service, session_service
from ..storage import get_storage
from .users import parse_user_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _start_session(storage, user, status: int):
    max_age = current_app.config["SESSION_MAX_AGE"]
    with storage.transaction():
        session, token = session_service.create_session(
            storage,
            user.id,
            max_age=max_age,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

    response = jsonify({"user": user.to_dict(), "token": token, "session": session.to_dict()})
    response.status_code = status
    response.set_cookie(
        current_app.config["SESSION_TOKEN_COOKIE"],
        token,
        max_age=int(max_age.total_seconds()),
        httponly=True,
        samesite="Lax",
        secure=current_app.config["SESSION_COOKIE_SECURE"],
    )
    return response


@auth_bp.post("/register")
def register_route():
    """
    Create a customer account and log it in.

    Request body: username, password, full_name, plus optional contact
    fields. "role", if sent, must be "customer".
    """
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch, password = parse_user_payload(payload, partial=False)
        if patch.get("role", ROLE_CUSTOMER) != ROLE_CUSTOMER:
            return jsonify({"error": "Self-registration is limited to customer accounts"}), 403
        patch["role"] = ROLE_CUSTOMER

        with storage.transaction():
            user = auth_service.create_user(storage, password=password, **patch)

        return _start_session(storage, user, 201)

    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """Check credentials and open a session (cookie + token in body)."""
    storage = get_storage()
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            return jsonify({"error": "username and password required"}), 400

        user = auth_service.authenticate(storage, username, password)
        if user is None:
            return jsonify({"error": "Invalid credentials"}), 401

        return _start_session(storage, user, 200)

    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the current session, if any, and clear the cookie."""
    storage = get_storage()
    try:
        token = request_token()
        if token:
            session_service.revoke_session(storage, token, reason="User logout")

        response = jsonify({"message": "Logout successful"})
        response.delete_cookie(current_app.config["SESSION_TOKEN_COOKIE"])
        return response

    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/user")
def current_user_route():
    """
    Return the caller.

    strict mode: 401 without a session.
    bypass mode: anonymous callers get a fabricated user whose role follows
    the Referer path (/owner/, /employee/, /customer/; owner by default).
    """
    caller = load_caller()
    if caller is None:
        if not bypass_enabled():
            return jsonify({"error": "Authentication required"}), 401
        role = session_service.role_from_referer(request.headers.get("Referer"))
        return jsonify(bypass_caller(role).to_dict())

    user = get_storage().users.get(caller.id)
    if user is None:
        return jsonify({"error": "Authentication required"}), 401
    return jsonify(user.to_dict())
