# Overview: Request payload validation driven by model column metadata plus per-entity business rules.

"""
Payload validation.

validate_payload() turns a JSON body into a patch dict that can be handed
straight to an EntityStore: only allowlisted keys survive, every value is
coerced to its column's Python type, and NOT NULL / String(n) limits are
checked before the database sees anything. The enforce_rules_* functions
then apply rules the column types cannot express (positive quantities,
non-negative money, known enum values).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import ROLES, PAYMENT_STATUSES
from .money import MAX_AMOUNT, quantize
from .time_utils import parse_iso_datetime


# Largest quantity a single distribution or sale may move
MAX_QUANTITY = 100_000

# Largest stock count a voucher batch may hold
MAX_STOCK = 10_000_000

# Range of a signed 64-bit INTEGER column
MAX_INTEGER = 2 ** 63 - 1


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a route lets clients write.

    writable_fields is the allowlist; anything else in the body is rejected.
    required_on_create must be present (and not null) when partial=False.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _bounded_int(key: str, number: int) -> int:
    if abs(number) > MAX_INTEGER:
        raise ValidationError(f"{key} is out of range")
    return number


def _to_int(key: str, value: Any) -> int:
    # bool is an int subclass; true/false is never a quantity
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return _bounded_int(key, value)
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} must be an integer")

    digits = value.strip()
    if "e" in digits.lower():
        raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
    if "." in digits:
        raise ValidationError(f"{key} must be an integer (no decimals)")
    try:
        number = int(digits)
    except ValueError:
        raise ValidationError(f"{key} must be an integer") from None
    return _bounded_int(key, number)


def _to_money(key: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number") from None
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    # quantize() needs the digits to fit the default context precision
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")
    return quantize(amount)


def _to_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def _to_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _to_text(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


_COERCERS = (
    (Integer, _to_int),
    (Numeric, _to_money),
    (Boolean, _to_bool),
    (DateTime, _to_datetime),
    ((String, Text), _to_text),
)


def _coerce_value(col, value: Any):
    for column_type, coerce in _COERCERS:
        if isinstance(col.type, column_type):
            return coerce(col.key, value)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validate a JSON body against model's columns and policy.

    partial=False is create: every required_on_create key must be present.
    partial=True is patch: only the keys sent are checked.

    Returns the cleaned patch. Raises ValidationError on the first problem.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(name for name in policy.required_on_create if payload.get(name) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        col = columns[key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce_value(col, raw)

        if isinstance(value, str):
            if value == "" and not col.nullable:
                raise ValidationError(f"{key} cannot be blank")
            max_length = getattr(col.type, "length", None)
            if max_length and len(value) > max_length:
                raise ValidationError(f"{key} exceeds max length {max_length}")

        patch[key] = value

    return patch


def _check_amount(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        if patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")
        if patch[key] > MAX_AMOUNT:
            raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")


def _check_quantity(patch: dict, key: str = "quantity") -> None:
    if key in patch:
        qty = patch[key]
        if qty is None or qty <= 0:
            raise ValidationError(f"{key} must be > 0")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")


def enforce_rules_voucher(patch: dict) -> None:
    _check_amount(patch, "value")
    for key in ("initial_stock", "current_stock"):
        stock = patch.get(key)
        if stock is None:
            continue
        if stock < 0:
            raise ValidationError(f"{key} must be >= 0")
        if stock > MAX_STOCK:
            raise ValidationError(f"{key} cannot exceed {MAX_STOCK}")


def enforce_rules_distribution(patch: dict) -> None:
    _check_quantity(patch)
    _check_amount(patch, "unit_price")
    _check_amount(patch, "total_price")
    status = patch.get("payment_status")
    if status is not None and status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")


def enforce_rules_sale(patch: dict) -> None:
    _check_quantity(patch)
    _check_amount(patch, "unit_price")
    _check_amount(patch, "total_price")


def enforce_rules_user(patch: dict) -> None:
    role = patch.get("role")
    if role is not None and role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
