# Overview: Flask API routes for voucher batches (owner only).

# backend/voucherdesk/routes/vouchers.py
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role
from ..errors import NotFoundError, VoucherDeskError
from ..models import Voucher, ROLE_OWNER
from ..services import voucher_service
from ..storage import get_storage
from ..validation import ModelValidationPolicy, enforce_rules_voucher, validate_payload

VOUCHER_POLICY = ModelValidationPolicy(
    writable_fields={"code", "type", "value", "initial_stock", "expiry_date", "supplier"},
    required_on_create={"code", "type", "value", "initial_stock", "expiry_date"},
)

# Owners may also correct the remaining stock by hand
VOUCHER_PATCH_POLICY = ModelValidationPolicy(
    writable_fields=VOUCHER_POLICY.writable_fields | {"current_stock"},
)

vouchers_bp = Blueprint("vouchers", __name__, url_prefix="/api/vouchers")


@vouchers_bp.get("")
@require_role(ROLE_OWNER)
def list_vouchers():
    try:
        vouchers = get_storage().vouchers.list()
        return jsonify([v.to_dict() for v in vouchers])
    except Exception:
        current_app.logger.exception("Failed to fetch vouchers")
        return jsonify({"error": "Failed to fetch vouchers"}), 500


@vouchers_bp.post("")
@require_role(ROLE_OWNER)
def create_voucher_route():
    """
    Create a voucher batch.

    Request body:
    {
        "code": str, "type": str, "value": number|str,
        "initial_stock": int, "expiry_date": ISO-8601,
        "supplier": str (optional)
    }

    current_stock starts equal to initial_stock; created_by is the caller.
    """
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Voucher, payload=payload, policy=VOUCHER_POLICY, partial=False)
        enforce_rules_voucher(patch)
        voucher = voucher_service.create_voucher(storage, patch, created_by=g.caller.id)
        return jsonify(voucher.to_dict()), 201
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to create voucher")
        return jsonify({"error": "Failed to create voucher"}), 500


@vouchers_bp.get("/<int:voucher_id>")
@require_role(ROLE_OWNER)
def get_voucher(voucher_id: int):
    voucher = get_storage().vouchers.get(voucher_id)
    if voucher is None:
        return jsonify({"error": "Voucher not found"}), 404
    return jsonify(voucher.to_dict())


@vouchers_bp.patch("/<int:voucher_id>")
@require_role(ROLE_OWNER)
def update_voucher_route(voucher_id: int):
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        if storage.vouchers.get(voucher_id) is None:
            raise NotFoundError("Voucher not found")
        patch = validate_payload(model=Voucher, payload=payload, policy=VOUCHER_PATCH_POLICY, partial=True)
        enforce_rules_voucher(patch)
        voucher = voucher_service.update_voucher(storage, voucher_id, patch)
        return jsonify(voucher.to_dict())
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to update voucher")
        return jsonify({"error": "Failed to update voucher"}), 500


@vouchers_bp.delete("/<int:voucher_id>")
@require_role(ROLE_OWNER)
def delete_voucher_route(voucher_id: int):
    storage = get_storage()
    try:
        if not voucher_service.delete_voucher(storage, voucher_id):
            return jsonify({"error": "Voucher not found"}), 404
        return "", 204
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to delete voucher")
        return jsonify({"error": "Failed to delete voucher"}), 500
