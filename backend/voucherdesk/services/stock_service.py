# backend/voucherdesk/services/stock_service.py
"""
Voucher stock movements.

A voucher unit moves one way only:

    owner (Voucher.current_stock)
      -> employee (EmployeeStock.quantity)        distribute()
      -> customer (one CustomerVoucher per unit)  sell()
      -> used (CustomerVoucher.is_used)           redeem()

distribute() and sell() touch several tables; each runs inside a single
storage transaction so a failure part-way leaves nothing behind. Stock
rows are read with FOR UPDATE and carry a version counter, so a
concurrent writer makes the flush fail with StaleDataError and the whole
operation is retried.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import AlreadyUsedError, ForbiddenError, InsufficientStockError, NotFoundError, ValidationError
from ..models import (
    CustomerVoucher,
    Distribution,
    EmployeeStock,
    Sale,
    ROLE_CUSTOMER,
    ROLE_EMPLOYEE,
)
from ..models.vouchers import PAYMENT_STATUS_PENDING
from ..money import MAX_AMOUNT, quantize
from ..storage import Storage
from voucherdesk.time_utils import utcnow
from .concurrency import run_with_retry


def _total_price(unit_price: Decimal, quantity: int, total_price: Decimal | None) -> Decimal:
    if total_price is not None:
        return quantize(Decimal(total_price))
    total = quantize(Decimal(unit_price) * quantity)
    if total > MAX_AMOUNT:
        raise ValidationError(f"total_price cannot exceed {MAX_AMOUNT}")
    return total


def _require_user_with_role(storage: Storage, user_id: int, role: str):
    user = storage.users.get(user_id)
    if user is None or user.role != role:
        raise NotFoundError(f"{role.capitalize()} {user_id} not found")
    return user


def distribute(
    storage: Storage,
    *,
    owner_id: int,
    employee_id: int,
    voucher_id: int,
    quantity: int,
    unit_price: Decimal,
    payment_method: str,
    payment_status: str = PAYMENT_STATUS_PENDING,
    total_price: Decimal | None = None,
    notes: str | None = None,
) -> Distribution:
    """
    Move quantity units of a voucher from the owner's stock to an employee.

    Raises:
        NotFoundError: voucher or employee missing
        InsufficientStockError: voucher.current_stock < quantity (nothing is changed)
    """
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")

    def _op():
        with storage.transaction():
            voucher = storage.vouchers.get(voucher_id, lock=True)
            if voucher is None:
                raise NotFoundError("Voucher not found")

            _require_user_with_role(storage, employee_id, ROLE_EMPLOYEE)

            if voucher.current_stock < quantity:
                raise InsufficientStockError(
                    "Insufficient voucher stock",
                    details={
                        "voucher_id": voucher_id,
                        "available": voucher.current_stock,
                        "requested": quantity,
                    },
                )

            distribution = storage.distributions.create(
                owner_id=owner_id,
                employee_id=employee_id,
                voucher_id=voucher_id,
                quantity=quantity,
                unit_price=quantize(Decimal(unit_price)),
                total_price=_total_price(unit_price, quantity, total_price),
                payment_method=payment_method,
                payment_status=payment_status,
                notes=notes,
            )

            storage.vouchers.update(voucher.id, {"current_stock": voucher.current_stock - quantity})

            stock = storage.employee_stocks.find(employee_id=employee_id, voucher_id=voucher_id, lock=True)
            if stock is not None:
                storage.employee_stocks.update(stock.id, {"quantity": stock.quantity + quantity})
            else:
                storage.employee_stocks.create(employee_id=employee_id, voucher_id=voucher_id, quantity=quantity)

        return distribution

    distribution = run_with_retry(_op, session=storage.session)
    current_app.logger.info(
        "Distributed %s x voucher %s to employee %s (distribution %s)",
        quantity, voucher_id, employee_id, distribution.id,
    )
    return distribution


def sell(
    storage: Storage,
    *,
    employee_id: int,
    customer_id: int,
    voucher_id: int,
    quantity: int,
    unit_price: Decimal,
    payment_method: str,
    total_price: Decimal | None = None,
    notes: str | None = None,
    is_online: bool = True,
    is_synced: bool = True,
) -> Sale:
    """
    Sell quantity units from an employee's stock, expanding them into
    quantity individually redeemable CustomerVoucher rows.

    Raises:
        InsufficientStockError: no stock row, or fewer units than requested
        NotFoundError: customer missing
    """
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")

    def _op():
        with storage.transaction():
            stock = storage.employee_stocks.find(employee_id=employee_id, voucher_id=voucher_id, lock=True)
            available = stock.quantity if stock is not None else 0
            if available < quantity:
                raise InsufficientStockError(
                    "Insufficient voucher stock",
                    details={
                        "voucher_id": voucher_id,
                        "available": available,
                        "requested": quantity,
                    },
                )

            _require_user_with_role(storage, customer_id, ROLE_CUSTOMER)

            sale = storage.sales.create(
                employee_id=employee_id,
                customer_id=customer_id,
                voucher_id=voucher_id,
                quantity=quantity,
                unit_price=quantize(Decimal(unit_price)),
                total_price=_total_price(unit_price, quantity, total_price),
                payment_method=payment_method,
                notes=notes,
                is_online=is_online,
                is_synced=is_synced,
            )

            storage.employee_stocks.update(stock.id, {"quantity": stock.quantity - quantity})

            storage.session.add_all([
                CustomerVoucher(
                    customer_id=customer_id,
                    voucher_id=voucher_id,
                    sale_id=sale.id,
                    is_used=False,
                )
                for _ in range(quantity)
            ])
            storage.session.flush()

        return sale

    sale = run_with_retry(_op, session=storage.session)
    current_app.logger.info(
        "Employee %s sold %s x voucher %s to customer %s (sale %s)",
        employee_id, quantity, voucher_id, customer_id, sale.id,
    )
    return sale


def redeem(storage: Storage, *, customer_id: int, customer_voucher_id: int) -> CustomerVoucher:
    """
    Mark one customer voucher unit as used.

    Raises:
        NotFoundError: no such unit
        ForbiddenError: unit belongs to another customer
        AlreadyUsedError: unit was redeemed before (used_at is left as it was)
    """
    def _op():
        with storage.transaction():
            unit = storage.customer_vouchers.get(customer_voucher_id, lock=True)
            if unit is None:
                raise NotFoundError("Voucher not found")
            if unit.customer_id != customer_id:
                raise ForbiddenError("You don't own this voucher")
            if unit.is_used:
                raise AlreadyUsedError("Voucher already used")

            storage.customer_vouchers.update(unit.id, {"is_used": True, "used_at": utcnow()})
        return unit

    unit = run_with_retry(_op, session=storage.session)
    current_app.logger.info("Customer %s redeemed voucher unit %s", customer_id, unit.id)
    return unit


def employee_stock(storage: Storage, employee_id: int) -> list[EmployeeStock]:
    return storage.employee_stocks.list(employee_id=employee_id)


def employee_sales(storage: Storage, employee_id: int) -> list[Sale]:
    return storage.sales.list(employee_id=employee_id)


def customer_vouchers(storage: Storage, customer_id: int) -> list[CustomerVoucher]:
    return storage.customer_vouchers.list(customer_id=customer_id)


def customer_transactions(storage: Storage, customer_id: int) -> list[Sale]:
    return storage.sales.list(customer_id=customer_id)
