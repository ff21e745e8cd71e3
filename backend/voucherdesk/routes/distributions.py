# Overview: Flask API routes for owner -> employee stock distribution.

# backend/voucherdesk/routes/distributions.py
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role
from ..errors import VoucherDeskError
from ..models import Distribution, ROLE_OWNER
from ..services import stock_service
from ..storage import get_storage
from ..validation import ModelValidationPolicy, enforce_rules_distribution, validate_payload

DISTRIBUTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "employee_id", "voucher_id", "quantity", "unit_price", "total_price",
        "payment_method", "payment_status", "notes",
    },
    required_on_create={"employee_id", "voucher_id", "quantity", "unit_price", "payment_method"},
)

distributions_bp = Blueprint("distributions", __name__, url_prefix="/api/distributions")


@distributions_bp.post("")
@require_role(ROLE_OWNER)
def create_distribution():
    """
    Distribute voucher stock to an employee.

    Request body:
    {
        "employee_id": int,
        "voucher_id": int,
        "quantity": int (> 0),
        "unit_price": number|str,
        "total_price": number|str (optional, defaults to unit_price * quantity),
        "payment_method": str,
        "payment_status": "paid" | "pending" | "credit" (optional, default pending),
        "notes": str (optional)
    }

    Returns:
        201: Distribution created
        400: Invalid payload or insufficient voucher stock
        404: Voucher or employee not found
    """
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Distribution, payload=payload, policy=DISTRIBUTION_POLICY, partial=False)
        enforce_rules_distribution(patch)
        distribution = stock_service.distribute(storage, owner_id=g.caller.id, **patch)
        return jsonify(distribution.to_dict()), 201
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to distribute vouchers")
        return jsonify({"error": "Failed to distribute vouchers"}), 500


@distributions_bp.get("")
@require_role(ROLE_OWNER)
def list_distributions():
    """
    List distributions.

    Query parameters:
        employee_id: Filter by receiving employee
        voucher_id: Filter by voucher
    """
    try:
        filters = {}
        if (employee_id := request.args.get("employee_id", type=int)) is not None:
            filters["employee_id"] = employee_id
        if (voucher_id := request.args.get("voucher_id", type=int)) is not None:
            filters["voucher_id"] = voucher_id

        distributions = get_storage().distributions.list(**filters)
        return jsonify([d.to_dict() for d in distributions])
    except Exception:
        current_app.logger.exception("Failed to fetch distributions")
        return jsonify({"error": "Failed to fetch distributions"}), 500
