# Overview: Service-layer operations for auth; password hashing, user creation and login.

"""
Authentication Service

Users own warehouses; every warehouse route resolves the caller through a
bearer session (see session_service.py) and filters by owner.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters with at least one letter and one digit
- Emails are trimmed and lower-cased before storage and lookup
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User
from ..validation import ConflictError, ValidationError
from warehub.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if len(password or "") < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_user(email: str, password: str, name: str, *, is_admin: bool = False) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: missing/invalid email or name
        PasswordValidationError: weak password
        ConflictError: email already registered
    """
    for value in (email, password, name):
        if value is not None and not isinstance(value, str):
            raise ValidationError("Email, password, and name must be strings")

    email = normalize_email(email)
    name = (name or "").strip()

    if not email or not password or not name:
        raise ValidationError("Email, password, and name are required")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address", field="email")

    password_hash = hash_password(password)

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        name=name,
        password_hash=password_hash,
        is_admin=is_admin,
        created_at=utcnow(),
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Returns the user when the credentials match, None otherwise.

    Stamps last_login_at on success.
    """
    email = normalize_email(email)
    if not email or not password:
        return None

    user = db.session.query(User).filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def ensure_admin_user(email: str, password: str, name: str = "Admin") -> tuple[User, bool]:
    """
    Idempotent admin bootstrap.

    Returns (user, created). An existing account with the email is promoted
    to admin; its password is left untouched.
    """
    existing = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if existing:
        if not existing.is_admin:
            existing.is_admin = True
            db.session.commit()
        return existing, False

    return create_user(email, password, name, is_admin=True), True
