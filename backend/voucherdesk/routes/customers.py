# Overview: Flask API routes for customers: owned voucher units, redemption, history.

# backend/voucherdesk/routes/customers.py
from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_role
from ..errors import VoucherDeskError
from ..models import ROLE_CUSTOMER
from ..services import stock_service
from ..storage import get_storage

customers_bp = Blueprint("customers", __name__, url_prefix="/api")


@customers_bp.get("/customer-vouchers")
@require_role(ROLE_CUSTOMER)
def list_customer_vouchers():
    try:
        units = stock_service.customer_vouchers(get_storage(), g.caller.id)
        return jsonify([u.to_dict() for u in units])
    except Exception:
        current_app.logger.exception("Failed to fetch customer vouchers")
        return jsonify({"error": "Failed to fetch customer vouchers"}), 500


@customers_bp.patch("/customer-vouchers/<int:customer_voucher_id>/use")
@require_role(ROLE_CUSTOMER)
def use_customer_voucher(customer_voucher_id: int):
    """
    Redeem one voucher unit.

    Returns:
        200: Unit marked used
        400: Already used
        403: Unit belongs to another customer
        404: Unit not found
    """
    storage = get_storage()
    try:
        unit = stock_service.redeem(storage, customer_id=g.caller.id, customer_voucher_id=customer_voucher_id)
        return jsonify(unit.to_dict())
    except VoucherDeskError as e:
        storage.rollback()
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        storage.rollback()
        current_app.logger.exception("Failed to use voucher")
        return jsonify({"error": "Failed to use voucher"}), 500


@customers_bp.get("/customer-transactions")
@require_role(ROLE_CUSTOMER)
def list_customer_transactions():
    try:
        sales = stock_service.customer_transactions(get_storage(), g.caller.id)
        return jsonify([s.to_dict() for s in sales])
    except Exception:
        current_app.logger.exception("Failed to fetch transactions")
        return jsonify({"error": "Failed to fetch transactions"}), 500
