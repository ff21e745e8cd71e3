# Overview: Service-layer operations for login sessions and caller identity.

"""
Session Token Management Service

Tokens are random, stored only as a SHA-256 hash, and expire after
SESSION_MAX_AGE. The plaintext token is handed to the client once, in the
session cookie set at login.

A Caller is the identity a request acts as: either a real user loaded from
a session, or (auth bypass mode only) a fabricated stand-in.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..models import SessionToken, User, ROLE_OWNER, ROLE_EMPLOYEE, ROLE_CUSTOMER
from ..storage import Storage
from voucherdesk.time_utils import utcnow


DEFAULT_SESSION_MAX_AGE = timedelta(days=7)


@dataclass(frozen=True)
class Caller:
    id: int
    username: str
    full_name: str
    role: str
    fabricated: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.id, username=user.username, full_name=user.full_name, role=user.role)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role,
            "fabricated": self.fabricated,
        }


def fabricate_caller(role: str, user_id: int) -> Caller:
    """Stand-in caller used when auth bypass is switched on."""
    return Caller(
        id=user_id,
        username=f"dev_{role}",
        full_name=f"Development {role.capitalize()}",
        role=role,
        fabricated=True,
    )


def role_from_referer(referer: str | None) -> str:
    """Guess the dashboard a request came from (/employee/..., /customer/..., /owner/...)."""
    referer = referer or ""
    if "/employee/" in referer:
        return ROLE_EMPLOYEE
    if "/customer/" in referer:
        return ROLE_CUSTOMER
    return ROLE_OWNER


def generate_token() -> str:
    """64-character hex token (32 bytes from the OS CSPRNG)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough here: tokens are already high-entropy."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    storage: Storage,
    user_id: int,
    *,
    max_age: timedelta = DEFAULT_SESSION_MAX_AGE,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for user_id.

    Returns (session_record, plaintext_token). Only the hash is stored.
    The caller owns the transaction.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = storage.sessions.create(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + max_age,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    return session, plaintext_token


def validate_session(storage: Storage, token: str) -> User | None:
    """
    Return the user behind a live session token, or None.

    Expired sessions are revoked on sight. Touches last_used_at.
    """
    if not token:
        return None

    session = storage.sessions.find(token_hash=hash_token(token), is_revoked=False)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        with storage.transaction():
            session.is_revoked = True
            session.revoked_at = now
            session.revoked_reason = "Expired"
        return None

    user = storage.users.get(session.user_id)
    if user is None:
        return None

    with storage.transaction():
        session.last_used_at = now
    return user


def revoke_session(storage: Storage, token: str, reason: str = "User logout") -> bool:
    """Revoke a session. Returns False when the token is unknown or already revoked."""
    if not token:
        return False

    session = storage.sessions.find(token_hash=hash_token(token), is_revoked=False)
    if session is None:
        return False

    with storage.transaction():
        session.is_revoked = True
        session.revoked_at = utcnow()
        session.revoked_reason = reason
    return True
