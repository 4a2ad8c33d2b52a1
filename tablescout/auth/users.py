from __future__ import annotations

import logging
from typing import Any

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import User
from ..errors import ValidationFailed
from ..lists.service import get_default_list

logger = logging.getLogger(__name__)


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def session_user(user: User) -> dict[str, Any]:
    """The subset of a user stored in the signed session cookie."""
    return {"id": user.id, "username": user.username, "role": user.role}


def register(session: Session, username: str, password: str, role: str = "user") -> dict[str, Any]:
    """Create an account together with its default list."""
    existing = session.scalars(select(User).where(User.username == username)).first()
    if existing is not None:
        raise ValidationFailed("Username is already taken")

    user = User(username=username, password_hash=_hash_password(password), role=role)
    session.add(user)
    session.flush()
    get_default_list(session, user.id)
    logger.info("Registered user %s", username)
    return session_user(user)


def authenticate(session: Session, username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
    user = session.scalars(select(User).where(User.username == username)).first()
    if user and _verify_password(password, user.password_hash):
        return session_user(user)
    return None
