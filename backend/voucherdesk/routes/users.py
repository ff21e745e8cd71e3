# Overview: Flask API routes for managing employees and customers (owner only).

# backend/voucherdesk/routes/users.py
"""
User management routes.

Owners create, edit and delete employee and customer accounts. Roles are
fixed at creation; owner accounts cannot be deleted.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_role
from ..errors import ValidationError, VoucherDeskError
from ..models import User, ROLE_OWNER, ROLE_EMPLOYEE, ROLE_CUSTOMER
from ..services import auth_service
from ..storage import get_storage
from ..validation import ModelValidationPolicy, enforce_rules_user, validate_payload

USER_FIELDS = {"username", "full_name", "role", "whatsapp", "address", "location", "profile_image"}

USER_POLICY = ModelValidationPolicy(
    writable_fields=USER_FIELDS,
    required_on_create={"username", "full_name"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api")


def parse_user_payload(payload: dict, *, partial: bool) -> tuple[dict, str | None]:
    """Split the plaintext password off and validate the remaining columns."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    password = payload.pop("password", None)
    if not partial and not password:
        raise ValidationError("Missing required fields: password")
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=partial)
    enforce_rules_user(patch)
    return patch, password


def _create_with_role(role: str):
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch, password = parse_user_payload(payload, partial=False)
        patch["role"] = role
        with storage.transaction():
            user = auth_service.create_user(storage, password=password, **patch)
        return jsonify(user.to_dict()), 201
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to create %s", role)
        return jsonify({"error": f"Failed to create {role}"}), 500


@users_bp.get("/employees")
@require_role(ROLE_OWNER)
def list_employees():
    users = auth_service.list_users_by_role(get_storage(), ROLE_EMPLOYEE)
    return jsonify([u.to_dict() for u in users])


@users_bp.post("/employees")
@require_role(ROLE_OWNER)
def create_employee():
    return _create_with_role(ROLE_EMPLOYEE)


@users_bp.get("/customers")
@require_role(ROLE_OWNER)
def list_customers():
    users = auth_service.list_users_by_role(get_storage(), ROLE_CUSTOMER)
    return jsonify([u.to_dict() for u in users])


@users_bp.post("/customers")
@require_role(ROLE_OWNER)
def create_customer():
    return _create_with_role(ROLE_CUSTOMER)


@users_bp.post("/users")
@require_role(ROLE_OWNER)
def create_user_route():
    """
    Create an employee or customer; "role" in the body picks which.
    Owners cannot be created through the API.
    """
    payload = request.get_json(silent=True) or {}
    role = payload.get("role") if isinstance(payload, dict) else None
    if role not in (ROLE_EMPLOYEE, ROLE_CUSTOMER):
        return jsonify({"error": "role must be employee or customer"}), 400
    return _create_with_role(role)


@users_bp.patch("/users/<int:user_id>")
@require_role(ROLE_OWNER)
def update_user_route(user_id: int):
    """
    Update profile fields (and optionally the password).

    Returns 400 when the body tries to change the role.
    """
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch, password = parse_user_payload(payload, partial=True)
        if password is not None:
            patch["password"] = password
        with storage.transaction():
            user = auth_service.update_user(storage, user_id, patch)
        return jsonify(user.to_dict())
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Failed to update user"}), 500


@users_bp.delete("/users/<int:user_id>")
@require_role(ROLE_OWNER)
def delete_user_route(user_id: int):
    storage = get_storage()
    try:
        with storage.transaction():
            auth_service.delete_user(storage, user_id)
        return "", 204
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Failed to delete user"}), 500
