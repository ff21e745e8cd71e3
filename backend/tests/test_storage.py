# Overview: Pytest coverage for the entity store contract.

from decimal import Decimal
from datetime import timedelta

import pytest

from voucherdesk.errors import ConflictError, NotFoundError
from voucherdesk.models import Voucher
from voucherdesk.time_utils import utcnow


def _voucher_data(owner_id, code="GIFT-1", stock=5):
    return {
        "code": code,
        "type": "gift",
        "value": Decimal("25.00"),
        "initial_stock": stock,
        "current_stock": stock,
        "expiry_date": utcnow() + timedelta(days=30),
        "created_by": owner_id,
    }


class TestEntityStore:

    def test_create_assigns_id_and_timestamp(self, storage, owner):
        with storage.transaction():
            first = storage.vouchers.create(**_voucher_data(owner.id, "A"))
            second = storage.vouchers.create(**_voucher_data(owner.id, "B"))

        assert first.id is not None
        assert second.id == first.id + 1
        assert first.created_at is not None

    def test_get_missing_returns_none(self, storage):
        assert storage.vouchers.get(999) is None

    def test_update_merges_fields(self, storage, owner):
        with storage.transaction():
            voucher = storage.vouchers.create(**_voucher_data(owner.id))
            storage.vouchers.update(voucher.id, {"supplier": "Acme"})

        reloaded = storage.vouchers.get(voucher.id)
        assert reloaded.supplier == "Acme"
        assert reloaded.code == "GIFT-1"
        assert reloaded.current_stock == 5

    def test_update_missing_raises_not_found(self, storage):
        with pytest.raises(NotFoundError):
            storage.vouchers.update(999, {"supplier": "x"})

    def test_delete_reports_whether_removed(self, storage, owner):
        with storage.transaction():
            voucher = storage.vouchers.create(**_voucher_data(owner.id))
        voucher_id = voucher.id

        with storage.transaction():
            assert storage.vouchers.delete(voucher_id) is True
        with storage.transaction():
            assert storage.vouchers.delete(voucher_id) is False
        assert storage.vouchers.get(voucher_id) is None

    def test_list_with_filters_and_criteria(self, storage, owner):
        with storage.transaction():
            storage.vouchers.create(**_voucher_data(owner.id, "A", stock=1))
            storage.vouchers.create(**_voucher_data(owner.id, "B", stock=8))
            storage.vouchers.create(**_voucher_data(owner.id, "C", stock=3))

        assert [v.code for v in storage.vouchers.list()] == ["A", "B", "C"]
        assert [v.code for v in storage.vouchers.list(code="B")] == ["B"]
        assert [v.code for v in storage.vouchers.list(Voucher.current_stock >= 3)] == ["B", "C"]

    def test_unique_violation_becomes_conflict(self, storage, owner):
        with storage.transaction():
            storage.vouchers.create(**_voucher_data(owner.id, "DUP"))

        with pytest.raises(ConflictError):
            with storage.transaction():
                storage.vouchers.create(**_voucher_data(owner.id, "DUP"))

        assert storage.vouchers.count(code="DUP") == 1


class TestTransactions:

    def test_error_rolls_back_every_store(self, storage, owner, employee):
        with pytest.raises(RuntimeError):
            with storage.transaction():
                voucher = storage.vouchers.create(**_voucher_data(owner.id))
                storage.employee_stocks.create(employee_id=employee.id, voucher_id=voucher.id, quantity=2)
                raise RuntimeError("boom")

        assert storage.vouchers.count() == 0
        assert storage.employee_stocks.count() == 0
