# Overview: Flask API routes for employees: own stock and sales to customers.

# backend/voucherdesk/routes/sales.py
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role
from ..errors import VoucherDeskError
from ..models import Sale, ROLE_EMPLOYEE
from ..services import stock_service
from ..storage import get_storage
from ..validation import ModelValidationPolicy, enforce_rules_sale, validate_payload

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "voucher_id", "quantity", "unit_price", "total_price",
        "payment_method", "notes", "is_online", "is_synced",
    },
    required_on_create={"customer_id", "voucher_id", "quantity", "unit_price", "payment_method"},
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api")


@sales_bp.get("/employee-stock")
@require_role(ROLE_EMPLOYEE)
def get_employee_stock():
    try:
        stocks = stock_service.employee_stock(get_storage(), g.caller.id)
        return jsonify([s.to_dict() for s in stocks])
    except Exception:
        current_app.logger.exception("Failed to fetch employee stock")
        return jsonify({"error": "Failed to fetch employee stock"}), 500


@sales_bp.post("/sales")
@require_role(ROLE_EMPLOYEE)
def create_sale_route():
    """
    Sell vouchers from the caller's stock to a customer.

    Each unit sold becomes its own customer voucher.

    Returns:
        201: Sale created
        400: Invalid payload or insufficient employee stock
        404: Customer not found
    """
    storage = get_storage()
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
        enforce_rules_sale(patch)
        sale = stock_service.sell(storage, employee_id=g.caller.id, **patch)
        return jsonify(sale.to_dict()), 201
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Failed to process sale"}), 500


@sales_bp.get("/sales")
@require_role(ROLE_EMPLOYEE)
def list_sales():
    try:
        sales = stock_service.employee_sales(get_storage(), g.caller.id)
        return jsonify([s.to_dict() for s in sales])
    except Exception:
        current_app.logger.exception("Failed to fetch sales")
        return jsonify({"error": "Failed to fetch sales"}), 500
