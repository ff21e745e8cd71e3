from __future__ import annotations

from ..extensions import db
from voucherdesk.money import format_money
from voucherdesk.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    One employee -> customer sale.

    is_online / is_synced are recorded as sent by the client; the server
    does not act on them.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.Index("ix_sales_employee", "employee_id"),
        db.Index("ix_sales_customer", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    voucher_id = db.Column(db.Integer, db.ForeignKey("vouchers.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    is_online = db.Column(db.Boolean, nullable=False, default=True)
    is_synced = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    units = db.relationship("CustomerVoucher", back_populates="sale", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "customer_id": self.customer_id,
            "voucher_id": self.voucher_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "total_price": format_money(self.total_price),
            "payment_method": self.payment_method,
            "notes": self.notes,
            "is_online": self.is_online,
            "is_synced": self.is_synced,
            "created_at": to_utc_z(self.created_at),
        }


class CustomerVoucher(db.Model):
    """A single redeemable voucher unit owned by a customer."""
    __tablename__ = "customer_vouchers"
    __table_args__ = (
        db.Index("ix_customer_vouchers_customer", "customer_id"),
        db.Index("ix_customer_vouchers_sale", "sale_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    voucher_id = db.Column(db.Integer, db.ForeignKey("vouchers.id"), nullable=False)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False)

    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    sale = db.relationship("Sale", back_populates="units")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "voucher_id": self.voucher_id,
            "sale_id": self.sale_id,
            "is_used": self.is_used,
            "used_at": to_utc_z(self.used_at),
            "created_at": to_utc_z(self.created_at),
        }
