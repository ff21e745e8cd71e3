# Overview: Service-layer operations for users and passwords.

"""
User accounts and password handling.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12); the salt lives inside the hash
- Minimum 8 characters with upper, lower, digit and special character
- Username uniqueness is checked before insert and backed by a unique index
- A user's role is fixed at creation
"""

import re

import bcrypt
from flask import current_app

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models import User, ROLES, ROLE_OWNER, ROLE_EMPLOYEE, ROLE_CUSTOMER
from ..storage import Storage


DEMO_PASSWORD = "Password123!"

# (username, full name, role) - ids 1..3 on a fresh database, matching BYPASS_USER_IDS
DEMO_USERS = (
    ("owner", "Admin Owner", ROLE_OWNER),
    ("employee", "Sarah Johnson", ROLE_EMPLOYEE),
    ("customer", "John Smith", ROLE_CUSTOMER),
)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


PASSWORD_RULES = (
    (r"[A-Z]", "uppercase letter"),
    (r"[a-z]", "lowercase letter"),
    (r"\d", "digit"),
    (r"[!@#$%^&*(),.'\":{}|<>]", "special character"),
)


def validate_password_strength(password: str) -> None:
    """
    Reject passwords shorter than 8 characters or missing any of: an
    uppercase letter, a lowercase letter, a digit, a special character.

    Raises PasswordValidationError naming the first rule broken.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    for pattern, requirement in PASSWORD_RULES:
        if not re.search(pattern, password):
            raise PasswordValidationError(f"Password must contain at least one {requirement}")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. A malformed stored hash
    counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    storage: Storage,
    *,
    username: str,
    password: str,
    full_name: str,
    role: str = ROLE_CUSTOMER,
    **contact,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ValidationError: unknown role or weak password
        ConflictError: username already taken
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    if storage.users.find(username=username) is not None:
        raise ConflictError("Username already exists")

    return storage.users.create(
        username=username,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        **contact,
    )


def authenticate(storage: Storage, username: str, password: str) -> User | None:
    """Return the user when the credentials match, otherwise None."""
    user = storage.users.find(username=username)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def update_user(storage: Storage, user_id: int, patch: dict) -> User:
    """
    Merge profile changes into a user.

    A "role" key is tolerated only when it repeats the current role.
    A "password" key is re-hashed.
    """
    user = storage.users.get(user_id)
    if user is None:
        raise NotFoundError("User not found")

    patch = dict(patch)
    role = patch.pop("role", None)
    if role is not None and role != user.role:
        raise ValidationError("Cannot change user role")

    if "username" in patch and patch["username"] != user.username:
        if storage.users.find(username=patch["username"]) is not None:
            raise ConflictError("Username already exists")

    password = patch.pop("password", None)
    if password is not None:
        patch["password_hash"] = hash_password(password)

    return storage.users.update(user_id, patch)


def delete_user(storage: Storage, user_id: int) -> bool:
    """Hard-delete an employee or customer. Owner accounts are protected."""
    user = storage.users.get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.role == ROLE_OWNER:
        raise ForbiddenError("Cannot delete owner account")
    return storage.users.delete(user_id)


def list_users_by_role(storage: Storage, role: str) -> list[User]:
    return storage.users.list(role=role)


def ensure_demo_users(storage: Storage) -> list[User]:
    """
    Create the demo owner/employee/customer accounts when missing.

    Returns only the users created by this call.
    """
    created = []
    for username, full_name, role in DEMO_USERS:
        if storage.users.find(username=username) is not None:
            continue
        created.append(create_user(
            storage,
            username=username,
            password=DEMO_PASSWORD,
            full_name=full_name,
            role=role,
        ))
    return created
