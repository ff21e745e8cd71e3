# Overview: Role gate decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .config import AUTH_MODE_BYPASS
from .services import session_service
from .storage import get_storage


def request_token() -> str | None:
    """Session token from a Bearer header, falling back to the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token

    return request.cookies.get(current_app.config["SESSION_TOKEN_COOKIE"]) or None


def load_caller():
    """
    Resolve the authenticated caller for this request and store it on g.

    Returns a session_service.Caller, or None for anonymous requests.
    """
    caller = None
    token = request_token()
    if token:
        user = session_service.validate_session(get_storage(), token)
        if user is not None:
            caller = session_service.Caller.from_user(user)

    g.caller = caller
    return caller


def bypass_enabled() -> bool:
    return current_app.config["AUTH_MODE"] == AUTH_MODE_BYPASS


def bypass_caller(role: str):
    """Fabricate a caller for role. Only reachable when AUTH_MODE is bypass."""
    user_id = current_app.config["BYPASS_USER_IDS"][role]
    current_app.logger.warning(
        "AUTH BYPASS: fabricated %s caller (id=%s) for %s %s",
        role, user_id, request.method, request.path,
    )
    return session_service.fabricate_caller(role, user_id)


def require_role(role: str):
    """
    Bind a route to one role.

    strict mode:
    - 401 when there is no valid session
    - 403 when the session user has another role

    bypass mode: anonymous requests run as a fabricated caller of the
    required role. Authenticated callers are still role-checked.

    The resolved caller is available as g.caller.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            caller = load_caller()

            if caller is None:
                if not bypass_enabled():
                    return jsonify({"error": "Authentication required"}), 401
                caller = bypass_caller(role)
                g.caller = caller

            if caller.role != role:
                return jsonify({
                    "error": f"Unauthorized: {role.capitalize()} access required",
                    "required_role": role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
