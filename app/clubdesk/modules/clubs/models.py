from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from app.clubdesk.models import Base


class ClubValidationError(ValueError):
    pass


class Club(Base):
    __tablename__ = "clubs"
    __table_args__ = (Index("idx_clubs_name", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Required
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optional
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def validate(self) -> None:
        if not (self.name or "").strip():
            raise ClubValidationError("Club name is required.")

    @property
    def display_name(self) -> str:
        if self.location:
            return f"{self.name} ({self.location})"
        return self.name

    def to_dict(self, *, virtuals: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
        }
        if virtuals:
            data["id"] = str(self.id) if self.id is not None else None
            data["displayName"] = self.display_name
        return data


@event.listens_for(Club, "before_insert")
@event.listens_for(Club, "before_update")
def _validate_club(mapper, connection, target: Club) -> None:  # type: ignore[no-untyped-def]
    target.validate()
