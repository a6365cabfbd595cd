from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.clubdesk.audit import record_event

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.clubdesk.models import User
    from app.clubdesk.modules.clubs.models import Club


# Form/JSON field -> model attribute
CLUB_FIELDS = {
    "name": "name",
    "description": "description",
    "location": "location",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
}


def _clean(value: object) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip() or None


def normalize_club_payload(raw: dict) -> dict:
    """Accept camelCase (API) or snake_case (forms) keys; return snake_case values."""
    out: dict[str, str | None] = {}
    for api_key, attr in CLUB_FIELDS.items():
        if api_key in raw:
            out[attr] = _clean(raw.get(api_key))
        elif attr in raw:
            out[attr] = _clean(raw.get(attr))
    return out


def validate_club_payload(payload: dict, *, partial: bool = False) -> list[str]:
    """Validate a normalized club payload. Returns list of errors."""
    errors = []
    if not partial or "name" in payload:
        if not payload.get("name"):
            errors.append("Name is required.")
    email = payload.get("contact_email")
    if email and "@" not in email:
        errors.append("Contact email is not a valid address.")
    return errors


def create_club(s: "Session", payload: dict, user: "User | None") -> "Club":
    from app.clubdesk.modules.clubs.models import Club

    now = datetime.utcnow()
    club = Club(
        name=payload.get("name") or "",
        description=payload.get("description"),
        location=payload.get("location"),
        contact_email=payload.get("contact_email"),
        contact_phone=payload.get("contact_phone"),
        created_at=now,
        updated_at=now,
    )
    s.add(club)
    s.flush()

    record_event(
        s,
        actor=user,
        action="club.create",
        entity_type="Club",
        entity_id=str(club.id),
        metadata={"name": club.name},
    )
    return club


def update_club(s: "Session", club: "Club", payload: dict, user: "User | None") -> "Club":
    """Apply only the keys present in `payload`."""
    changes = {}
    for attr in CLUB_FIELDS.values():
        if attr not in payload:
            continue
        new = payload[attr]
        old = getattr(club, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(club, attr, new)

    club.updated_at = datetime.utcnow()
    s.flush()

    record_event(
        s,
        actor=user,
        action="club.edit",
        entity_type="Club",
        entity_id=str(club.id),
        metadata={"name": club.name, "changes": changes},
    )
    return club


def delete_club(s: "Session", club: "Club", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="club.delete",
        entity_type="Club",
        entity_id=str(club.id),
        metadata={"name": club.name},
    )
    s.delete(club)
    s.flush()
