from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING

from app.clubdesk.audit import record_event
from app.clubdesk.models import User, hash_reset_token
from app.clubdesk.utils import text_field

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def sanitize_name(name: str) -> str:
    return (name or "").strip().replace("<", "").replace(">", "")


def validate_password_pair(password: str, password_confirm: str) -> list[str]:
    errors = []
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if password != password_confirm:
        errors.append("Passwords do not match")
    return errors


def validate_signup_payload(s: "Session", payload: dict) -> list[str]:
    """Returns list of errors."""
    missing = [f for f in ("name", "email", "password", "passwordConfirm") if not text_field(payload, f).strip()]
    if missing:
        return [f"Missing required fields: {', '.join(missing)}"]
    errors = []
    email = payload["email"].strip().lower()
    if not is_valid_email(email):
        errors.append("Invalid email format")
    errors.extend(validate_password_pair(payload["password"], payload["passwordConfirm"]))
    if not errors and s.query(User).filter(User.email == email).one_or_none():
        errors.append("User already exists")
    return errors


def create_user(s: "Session", payload: dict) -> User:
    user = User(
        name=sanitize_name(payload["name"]),
        email=payload["email"].strip().lower(),
        role="user",
        is_active=True,
        club=text_field(payload, "club").strip() or None,
        joined_at=datetime.utcnow(),
    )
    user.set_password(payload["password"])
    s.add(user)
    s.flush()
    record_event(s, actor=user, action="auth.signup", entity_type="User", entity_id=str(user.id))
    return user


def authenticate(s: "Session", email: str, password: str) -> User | None:
    user = s.query(User).filter(User.email == (email or "").strip().lower()).one_or_none()
    if not user or not user.is_active or not user.check_password(password or ""):
        return None
    return user


def find_user_by_reset_token(s: "Session", raw_token: str) -> User | None:
    return (
        s.query(User)
        .filter(User.password_reset_token == hash_reset_token(raw_token))
        .filter(User.password_reset_expires > datetime.utcnow())
        .one_or_none()
    )


def reset_password(s: "Session", user: User, password: str) -> None:
    user.set_password(password)
    user.clear_password_reset()
    # Tokens issued in the same second as the change stay valid.
    user.password_changed_at = datetime.utcnow().replace(microsecond=0)
    record_event(s, actor=user, action="auth.password_reset", entity_type="User", entity_id=str(user.id))
