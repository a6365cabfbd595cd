from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from app.clubdesk.audit import record_event
from app.clubdesk.modules.sessions.models import DEMOS, SPORTS, NAME_MAX_LENGTH, NAME_MIN_LENGTH

# Numeric(10, 2) holds at most eight digits before the point.
PRICE_LIMIT = Decimal("100000000")

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.clubdesk.models import User
    from app.clubdesk.modules.sessions.models import TrainingSession


def _parse_date(raw: str | None) -> date | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _parse_int(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_decimal(raw: str | None) -> Decimal | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    # NaN and Infinity parse but cannot be compared or stored in Numeric(10, 2).
    return value if value.is_finite() else None


def parse_session_form(form: dict) -> tuple[dict, list[str]]:
    """Turn raw form strings into typed values. Returns (payload, errors)."""
    errors: list[str] = []
    name = (form.get("name") or "").strip()
    if not name:
        errors.append("Name is required.")
    elif not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        errors.append(f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters.")

    sport = (form.get("sport") or "").strip().lower()
    if sport not in SPORTS:
        errors.append(f"Invalid sport. Must be one of: {', '.join(SPORTS)}")
    demo = (form.get("demo") or "").strip().lower()
    if demo not in DEMOS:
        errors.append(f"Invalid demo. Must be one of: {', '.join(DEMOS)}")

    price = _parse_decimal(form.get("price"))
    if price is None or price < 0:
        errors.append("Price must be a number, zero or more.")
    elif price >= PRICE_LIMIT:
        errors.append(f"Price must be less than {PRICE_LIMIT}.")
    price_discount = _parse_decimal(form.get("price_discount"))
    if price_discount is not None and price is not None and price_discount >= price:
        errors.append(f"Discount ({price_discount}) needs to be lower than price")

    start_date = _parse_date(form.get("start_date"))
    end_date = _parse_date(form.get("end_date"))
    if start_date is None:
        errors.append("Start date is required (YYYY-MM-DD).")
    if end_date is None:
        errors.append("End date is required (YYYY-MM-DD).")
    if start_date and end_date and end_date < start_date:
        errors.append("End date must be on or after start date.")

    time_start = (form.get("time_start") or "").strip()
    time_end = (form.get("time_end") or "").strip()
    if not time_start or not time_end:
        errors.append("Start and end times are required.")

    birth_year = _parse_int(form.get("birth_year"))
    if birth_year is None:
        errors.append("Birth year is required.")
    roster_limit = _parse_int(form.get("roster_limit"))
    if roster_limit is None or roster_limit < 1:
        errors.append("Roster limit must be at least 1.")

    payload = {
        "name": name,
        "sport": sport,
        "demo": demo,
        "price": price,
        "price_discount": price_discount,
        "start_date": start_date,
        "end_date": end_date,
        "time_start": time_start,
        "time_end": time_end,
        "birth_year": birth_year,
        "roster_limit": roster_limit,
        "staff_only": (form.get("staff_only") or "") in ("1", "on", "true"),
        "description": (form.get("description") or "").strip() or None,
        "club_id": _parse_int(form.get("club_id")),
    }
    return payload, errors


def create_session(s: "Session", payload: dict, user: "User | None") -> "TrainingSession":
    from app.clubdesk.modules.sessions.models import TrainingSession

    ts = TrainingSession(
        name=payload["name"],
        sport=payload["sport"],
        demo=payload["demo"],
        price=payload["price"],
        price_discount=payload.get("price_discount"),
        start_date=payload["start_date"],
        end_date=payload["end_date"],
        time_start=payload["time_start"],
        time_end=payload["time_end"],
        birth_year=payload["birth_year"],
        roster_limit=payload["roster_limit"],
        staff_only=bool(payload.get("staff_only")),
        description=payload.get("description"),
        club_id=payload.get("club_id"),
        created_by_user_id=user.id if user else None,
    )
    s.add(ts)
    s.flush()

    record_event(
        s,
        actor=user,
        action="session.create",
        entity_type="TrainingSession",
        entity_id=str(ts.id),
        metadata={"name": ts.name, "sport": ts.sport},
    )
    return ts
