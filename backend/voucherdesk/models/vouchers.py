from __future__ import annotations

from ..extensions import db
from voucherdesk.money import format_money
from voucherdesk.time_utils import to_utc_z, utcnow


PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_CREDIT = "credit"
PAYMENT_STATUSES = (PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING, PAYMENT_STATUS_CREDIT)


class Voucher(db.Model):
    """
    A batch of identical vouchers held by the owner.

    current_stock is the owner's undistributed count. version_id guards the
    read-then-decrement in distributions against lost updates.
    """
    __tablename__ = "vouchers"
    __table_args__ = (
        db.CheckConstraint("current_stock >= 0", name="ck_vouchers_current_stock_nonneg"),
        db.CheckConstraint("initial_stock >= 0", name="ck_vouchers_initial_stock_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    type = db.Column(db.String(64), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False)

    initial_stock = db.Column(db.Integer, nullable=False)
    current_stock = db.Column(db.Integer, nullable=False)

    expiry_date = db.Column(db.DateTime(timezone=True), nullable=False)
    supplier = db.Column(db.String(120), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Voucher id={self.id} code={self.code!r} stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "type": self.type,
            "value": format_money(self.value),
            "initial_stock": self.initial_stock,
            "current_stock": self.current_stock,
            "expiry_date": to_utc_z(self.expiry_date),
            "supplier": self.supplier,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class Distribution(db.Model):
    """One owner -> employee stock transfer, with the price the employee pays."""
    __tablename__ = "distributions"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_distributions_quantity_positive"),
        db.Index("ix_distributions_employee", "employee_id"),
        db.Index("ix_distributions_voucher", "voucher_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    voucher_id = db.Column(db.Integer, db.ForeignKey("vouchers.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_PENDING)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "employee_id": self.employee_id,
            "voucher_id": self.voucher_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "total_price": format_money(self.total_price),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class EmployeeStock(db.Model):
    """Units of one voucher currently held by one employee."""
    __tablename__ = "employee_stocks"
    __table_args__ = (
        db.UniqueConstraint("employee_id", "voucher_id", name="uq_employee_stocks_employee_voucher"),
        db.CheckConstraint("quantity >= 0", name="ck_employee_stocks_quantity_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    voucher_id = db.Column(db.Integer, db.ForeignKey("vouchers.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "voucher_id": self.voucher_id,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }
