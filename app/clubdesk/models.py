from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from werkzeug.security import check_password_hash, generate_password_hash


class Base(DeclarativeBase):
    pass


USER_ROLES = ("user", "coach", "admin")
PASSWORD_RESET_TTL = timedelta(minutes=10)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def first_name_of(full_name: str | None) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else ""


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="user")  # user, coach, admin
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    club: Mapped[str | None] = mapped_column(String(255), nullable=True)  # free-text club name

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    password_reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True)  # sha256 hex
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def changed_password_after(self, issued_at: int) -> bool:
        """True when the password changed after a token issued at `issued_at` (epoch seconds)."""
        if not self.password_changed_at:
            return False
        changed = int((self.password_changed_at - datetime(1970, 1, 1)).total_seconds())
        return issued_at < changed

    def create_password_reset_token(self) -> str:
        """Return a raw reset token; only its sha256 is stored on the user."""
        token = secrets.token_hex(32)
        self.password_reset_token = hash_reset_token(token)
        self.password_reset_expires = datetime.utcnow() + PASSWORD_RESET_TTL
        return token

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Generic on purpose; club and session changes refer to their rows by entity_type/entity_id.
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "club.create"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Club"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.clubdesk.modules.clubs.models import Club  # noqa: E402,F401
from app.clubdesk.modules.sessions.models import TrainingSession  # noqa: E402,F401
