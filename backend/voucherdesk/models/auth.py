from __future__ import annotations

from ..extensions import db
from voucherdesk.time_utils import to_utc_z, utcnow


ROLE_OWNER = "owner"
ROLE_EMPLOYEE = "employee"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_OWNER, ROLE_EMPLOYEE, ROLE_CUSTOMER)


class User(db.Model):
    """
    Accounts for all three roles.

    The role column is set at creation and never changes; an employee who
    becomes a customer gets a second account.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('owner', 'employee', 'customer')", name="ck_users_role"),
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hash (salt embedded)
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_CUSTOMER)

    # Contact details
    whatsapp = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    profile_image = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role,
            "whatsapp": self.whatsapp,
            "address": self.address,
            "location": self.location,
            "profile_image": self.profile_image,
            "created_at": to_utc_z(self.created_at),
        }


class SessionToken(db.Model):
    """
    Server-side login sessions.

    Only the SHA-256 of the token is stored; the plaintext travels in the
    session cookie (or a Bearer header).
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
