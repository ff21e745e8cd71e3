# Overview: Pytest coverage for voucher stock movements (distribute, sell, redeem).

"""
Stock movement tests.

Covers the bookkeeping rules:
- distribute moves units from voucher.current_stock into employee stock
- sell moves units from employee stock into one customer voucher per unit
- redeem flips a unit to used exactly once, only for its owner
- failed operations leave every table untouched
"""

from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.orm.exc import StaleDataError

from voucherdesk.errors import (
    AlreadyUsedError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from voucherdesk.services import stock_service
from voucherdesk.services.concurrency import run_with_retry


def _distribute(storage, owner, employee, voucher_id, quantity, **kwargs):
    kwargs.setdefault("unit_price", Decimal("8.00"))
    kwargs.setdefault("payment_method", "cash")
    return stock_service.distribute(
        storage,
        owner_id=owner.id,
        employee_id=employee.id,
        voucher_id=voucher_id,
        quantity=quantity,
        **kwargs,
    )


def _sell(storage, employee, customer, voucher_id, quantity, **kwargs):
    kwargs.setdefault("unit_price", Decimal("10.00"))
    kwargs.setdefault("payment_method", "cash")
    return stock_service.sell(
        storage,
        employee_id=employee.id,
        customer_id=customer.id,
        voucher_id=voucher_id,
        quantity=quantity,
        **kwargs,
    )


class TestDistribute:

    def test_moves_stock_to_employee(self, storage, owner, employee, voucher):
        """Voucher with 10 units; distributing 4 leaves 6 and credits the employee 4."""
        voucher_id = voucher.id
        distribution = _distribute(storage, owner, employee, voucher_id, 4)

        assert storage.vouchers.get(voucher_id).current_stock == 6
        stock = storage.employee_stocks.find(employee_id=employee.id, voucher_id=voucher_id)
        assert stock.quantity == 4
        assert distribution.quantity == 4
        assert distribution.owner_id == owner.id
        assert distribution.employee_id == employee.id

    def test_repeat_distribution_upserts_single_row(self, storage, owner, employee, voucher):
        voucher_id = voucher.id
        _distribute(storage, owner, employee, voucher_id, 3)
        _distribute(storage, owner, employee, voucher_id, 2)

        rows = storage.employee_stocks.list(employee_id=employee.id, voucher_id=voucher_id)
        assert len(rows) == 1
        assert rows[0].quantity == 5
        assert storage.vouchers.get(voucher_id).current_stock == 5
        assert storage.distributions.count() == 2

    def test_total_price_defaults_to_unit_times_quantity(self, storage, owner, employee, voucher):
        distribution = _distribute(storage, owner, employee, voucher.id, 3, unit_price=Decimal("7.50"))
        assert distribution.total_price == Decimal("22.50")
        assert distribution.payment_status == "pending"

    def test_explicit_total_price_is_kept(self, storage, owner, employee, voucher):
        distribution = _distribute(
            storage, owner, employee, voucher.id, 2,
            unit_price=Decimal("5.00"), total_price=Decimal("9.00"), payment_status="paid",
        )
        assert distribution.total_price == Decimal("9.00")
        assert distribution.payment_status == "paid"

    def test_insufficient_stock_changes_nothing(self, storage, owner, employee, voucher):
        voucher_id = voucher.id
        with pytest.raises(InsufficientStockError) as exc_info:
            _distribute(storage, owner, employee, voucher_id, 11)

        assert exc_info.value.details["available"] == 10
        assert storage.vouchers.get(voucher_id).current_stock == 10
        assert storage.distributions.count() == 0
        assert storage.employee_stocks.count() == 0

    def test_whole_stock_can_be_distributed(self, storage, owner, employee, voucher):
        voucher_id = voucher.id
        _distribute(storage, owner, employee, voucher_id, 10)
        assert storage.vouchers.get(voucher_id).current_stock == 0

    def test_unknown_voucher(self, storage, owner, employee):
        with pytest.raises(NotFoundError):
            _distribute(storage, owner, employee, 999, 1)

    def test_target_must_be_an_employee(self, storage, owner, customer, voucher):
        voucher_id = voucher.id
        with pytest.raises(NotFoundError):
            _distribute(storage, owner, customer, voucher_id, 1)
        assert storage.vouchers.get(voucher_id).current_stock == 10


class TestSell:

    @pytest.fixture
    def stocked(self, storage, owner, employee, voucher):
        """Employee 2 holds 4 units of voucher 1."""
        _distribute(storage, owner, employee, voucher.id, 4)
        return voucher.id

    def test_expands_units_per_customer_voucher(self, storage, employee, customer, stocked):
        sale = _sell(storage, employee, customer, stocked, 3)

        stock = storage.employee_stocks.find(employee_id=employee.id, voucher_id=stocked)
        assert stock.quantity == 1

        units = storage.customer_vouchers.list(sale_id=sale.id)
        assert len(units) == 3
        assert all(u.customer_id == customer.id for u in units)
        assert all(u.voucher_id == stocked for u in units)
        assert all(u.is_used is False and u.used_at is None for u in units)

    def test_sale_record(self, storage, employee, customer, stocked):
        sale = _sell(storage, employee, customer, stocked, 2, unit_price=Decimal("12.00"), is_online=False)
        assert sale.quantity == 2
        assert sale.total_price == Decimal("24.00")
        assert sale.is_online is False
        assert sale.is_synced is True

    def test_selling_more_than_held_fails(self, storage, employee, customer, stocked):
        with pytest.raises(InsufficientStockError):
            _sell(storage, employee, customer, stocked, 5)

        stock = storage.employee_stocks.find(employee_id=employee.id, voucher_id=stocked)
        assert stock.quantity == 4
        assert storage.sales.count() == 0
        assert storage.customer_vouchers.count() == 0

    def test_no_stock_row_fails(self, storage, employee, customer, voucher):
        with pytest.raises(InsufficientStockError) as exc_info:
            _sell(storage, employee, customer, voucher.id, 1)
        assert exc_info.value.details["available"] == 0

    def test_unknown_customer_rolls_back(self, storage, owner, employee, stocked):
        with pytest.raises(NotFoundError):
            _sell(storage, employee, owner, stocked, 1)

        stock = storage.employee_stocks.find(employee_id=employee.id, voucher_id=stocked)
        assert stock.quantity == 4
        assert storage.sales.count() == 0


class TestRedeem:

    @pytest.fixture
    def unit_id(self, storage, owner, employee, customer, voucher):
        _distribute(storage, owner, employee, voucher.id, 2)
        sale = _sell(storage, employee, customer, voucher.id, 2)
        return storage.customer_vouchers.list(sale_id=sale.id)[0].id

    def test_first_redeem_marks_used(self, storage, customer, unit_id):
        unit = stock_service.redeem(storage, customer_id=customer.id, customer_voucher_id=unit_id)
        assert unit.is_used is True
        assert unit.used_at is not None

    def test_second_redeem_is_rejected(self, storage, customer, unit_id):
        stock_service.redeem(storage, customer_id=customer.id, customer_voucher_id=unit_id)
        used_at = storage.customer_vouchers.get(unit_id).used_at

        with pytest.raises(AlreadyUsedError):
            stock_service.redeem(storage, customer_id=customer.id, customer_voucher_id=unit_id)

        assert storage.customer_vouchers.get(unit_id).used_at == used_at

    def test_other_customer_is_forbidden(self, storage, owner, unit_id):
        with pytest.raises(ForbiddenError):
            stock_service.redeem(storage, customer_id=owner.id, customer_voucher_id=unit_id)
        assert storage.customer_vouchers.get(unit_id).is_used is False

    def test_unknown_unit(self, storage, customer):
        with pytest.raises(NotFoundError):
            stock_service.redeem(storage, customer_id=customer.id, customer_voucher_id=999)


class _CountingSession:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


def _bump_version(storage, voucher_id):
    """Simulate another writer committing a change to the voucher row."""
    storage.session.execute(
        text("UPDATE vouchers SET version_id = version_id + 1 WHERE id = :id"),
        {"id": voucher_id},
    )


class TestConcurrency:

    def test_retry_recovers_from_one_conflict(self, app):
        session = _CountingSession()
        calls = []

        def op():
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("row changed underneath")
            return "done"

        assert run_with_retry(op, session=session, backoff_base=0) == "done"
        assert len(calls) == 2
        assert session.rollbacks == 1

    def test_retry_gives_up_after_attempts(self, app):
        session = _CountingSession()
        calls = []

        def op():
            calls.append(1)
            raise StaleDataError("row changed underneath")

        with pytest.raises(StaleDataError):
            run_with_retry(op, session=session, attempts=3, backoff_base=0)
        assert len(calls) == 3
        assert session.rollbacks == 3

    def test_other_errors_are_not_retried(self, app):
        session = _CountingSession()
        calls = []

        def op():
            calls.append(1)
            raise InsufficientStockError("Insufficient voucher stock")

        with pytest.raises(InsufficientStockError):
            run_with_retry(op, session=session, backoff_base=0)
        assert len(calls) == 1
        assert session.rollbacks == 0

    def test_stale_voucher_version_fails_flush(self, storage, voucher):
        voucher_id = voucher.id
        loaded = storage.vouchers.get(voucher_id)
        assert loaded.current_stock == 10

        _bump_version(storage, voucher_id)

        with pytest.raises(StaleDataError):
            storage.vouchers.update(voucher_id, {"current_stock": 9})
        storage.rollback()

        assert storage.vouchers.get(voucher_id).current_stock == 10

    def test_distribute_retries_after_concurrent_write(self, storage, owner, employee, voucher, monkeypatch):
        voucher_id = voucher.id
        original_get = storage.vouchers.get
        seen = []

        def get_then_conflict(entity_id, *, lock=False):
            record = original_get(entity_id, lock=lock)
            if lock and not seen:
                seen.append(entity_id)
                _bump_version(storage, entity_id)
            return record

        monkeypatch.setattr(storage.vouchers, "get", get_then_conflict)

        distribution = _distribute(storage, owner, employee, voucher_id, 4)

        assert seen == [voucher_id]
        assert storage.vouchers.get(voucher_id).current_stock == 6
        assert storage.distributions.count() == 1
        assert storage.distributions.get(distribution.id).quantity == 4
        stock = storage.employee_stocks.find(employee_id=employee.id, voucher_id=voucher_id)
        assert stock.quantity == 4
