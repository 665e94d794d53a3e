"""User registration and the passwordless local profile.

Login and session issuance live outside this package; this module only
creates owners and stores their argon2 password hashes.
"""

from __future__ import annotations

from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlmodel import select

from ..domain.values import clean_text
from ..errors import ValidationError
from ..infra.database import SessionFactory
from ..models.user import User

_hasher = PasswordHasher()
LOCAL_USERNAME = "local"
MIN_PASSWORD_LENGTH = 8


def create_user(
    *,
    username: str,
    password: str,
    display_name: Optional[str] = None,
    session_factory: SessionFactory,
) -> User:
    """Create a new user with hashed password."""

    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required", field="username")
    if username.lower() == LOCAL_USERNAME:
        raise ValidationError("The local profile name is reserved.", field="username")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise ValidationError("Username already exists", field="username")
        user = User(
            username=username,
            password_hash=password_hash,
            display_name=clean_text(display_name, max_length=128, field="display_name"),
        )
        session.add(user)
        session.flush()
        session.refresh(user)
        session.expunge(user)
        return user


def verify_password(user: User, password: str) -> bool:
    """Return True when ``password`` matches the stored hash."""
    try:
        return _hasher.verify(user.password_hash, password)
    except (VerifyMismatchError, InvalidHash, VerificationError):
        return False


def ensure_local_user(session_factory: SessionFactory) -> User:
    """Create or return the default local profile the HTTP API acts as."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == LOCAL_USERNAME)).first()
        if user:
            session.expunge(user)
            return user
        user = User(
            username=LOCAL_USERNAME,
            password_hash=_hasher.hash(LOCAL_USERNAME),
            display_name="Local profile",
        )
        session.add(user)
        session.flush()
        session.refresh(user)
        session.expunge(user)
        return user
