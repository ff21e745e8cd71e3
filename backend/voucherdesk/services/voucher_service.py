# Overview: Service-layer operations for voucher batches.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..models import Voucher
from ..storage import Storage


def create_voucher(storage: Storage, patch: dict, created_by: int) -> Voucher:
    """
    Create a voucher batch. The whole initial stock starts with the owner,
    so current_stock is always initialized from initial_stock.
    """
    if storage.vouchers.find(code=patch["code"]) is not None:
        raise ConflictError(f"Voucher code {patch['code']} already exists")

    data = dict(patch)
    data["current_stock"] = data["initial_stock"]
    data["created_by"] = created_by

    with storage.transaction():
        voucher = storage.vouchers.create(**data)
    return voucher


def update_voucher(storage: Storage, voucher_id: int, patch: dict) -> Voucher:
    voucher = storage.vouchers.get(voucher_id)
    if voucher is None:
        raise NotFoundError("Voucher not found")

    new_code = patch.get("code")
    if new_code is not None and new_code != voucher.code:
        if storage.vouchers.find(code=new_code) is not None:
            raise ConflictError(f"Voucher code {new_code} already exists")

    with storage.transaction():
        voucher = storage.vouchers.update(voucher_id, patch)
    return voucher


def delete_voucher(storage: Storage, voucher_id: int) -> bool:
    with storage.transaction():
        deleted = storage.vouchers.delete(voucher_id)
    return deleted
