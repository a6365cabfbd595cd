from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.clubdesk.models import Base

if TYPE_CHECKING:
    from app.clubdesk.modules.clubs.models import Club


SPORTS = ("soccer", "basketball", "volleyball", "camp", "futsal", "football")
DEMOS = ("boys", "girls", "coed")
NAME_MIN_LENGTH = 10
NAME_MAX_LENGTH = 50


class SessionValidationError(ValueError):
    pass


def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    return re.sub(r"[-\s_]+", "-", value)


class TrainingSession(Base):
    __tablename__ = "training_sessions"
    __table_args__ = (
        Index("idx_training_sessions_birth_year", "birth_year"),
        Index("idx_training_sessions_slug", "slug"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    sport: Mapped[str] = mapped_column(String(32), nullable=False)
    demo: Mapped[str] = mapped_column(String(16), nullable=False)

    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    price_discount: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    time_start: Mapped[str] = mapped_column(String(16), nullable=False)  # e.g. "17:30"
    time_end: Mapped[str] = mapped_column(String(16), nullable=False)

    birth_year: Mapped[int] = mapped_column(Integer, nullable=False)
    roster_limit: Mapped[int] = mapped_column(Integer, nullable=False)

    staff_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    club_id: Mapped[int | None] = mapped_column(ForeignKey("clubs.id", ondelete="SET NULL"), nullable=True)
    club: Mapped["Club | None"] = relationship("Club", lazy="selectin")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    def validate(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise SessionValidationError("Session name is required.")
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            raise SessionValidationError(
                f"Session name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters."
            )
        if self.sport not in SPORTS:
            raise SessionValidationError(f"Invalid sport. Must be one of: {', '.join(SPORTS)}")
        if self.demo not in DEMOS:
            raise SessionValidationError(f"Invalid demo. Must be one of: {', '.join(DEMOS)}")
        if self.price is None or self.price < 0:
            raise SessionValidationError("Price must be zero or more.")
        if self.price_discount is not None and self.price_discount >= self.price:
            raise SessionValidationError(f"Discount ({self.price_discount}) needs to be lower than price")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise SessionValidationError("End date must be on or after start date.")
        if self.roster_limit is None or self.roster_limit < 1:
            raise SessionValidationError("Roster limit must be at least 1.")

    @property
    def available_spots(self) -> int:
        # No bookings are tracked here, so every spot is open.
        return max(0, self.roster_limit or 0)

    def to_dict(self, *, virtuals: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "slug": self.slug,
            "sport": self.sport,
            "demo": self.demo,
            "price": float(self.price) if self.price is not None else None,
            "priceDiscount": float(self.price_discount) if self.price_discount is not None else None,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "timeStart": self.time_start,
            "timeEnd": self.time_end,
            "birthYear": self.birth_year,
            "rosterLimit": self.roster_limit,
            "staffOnly": self.staff_only,
            "active": self.active,
            "description": self.description,
            "clubId": str(self.club_id) if self.club_id is not None else None,
        }
        if virtuals:
            data["id"] = str(self.id) if self.id is not None else None
            data["availableSpots"] = self.available_spots
        return data


@event.listens_for(TrainingSession, "before_insert")
@event.listens_for(TrainingSession, "before_update")
def _validate_and_slug(mapper, connection, target: TrainingSession) -> None:  # type: ignore[no-untyped-def]
    target.validate()
    target.slug = slugify(target.name)
