from __future__ import annotations

from flask import Blueprint, jsonify

from app.clubdesk.context import current_auth, require_admin
from app.clubdesk.db import db_session
from app.clubdesk.models import User
from app.clubdesk.modules.clubs.models import Club
from app.clubdesk.modules.clubs.service import (
    create_club,
    delete_club,
    normalize_club_payload,
    update_club,
    validate_club_payload,
)
from app.clubdesk.utils import json_object

bp = Blueprint("clubs_api", __name__)


def _actor() -> User | None:
    ctx = current_auth()
    if ctx.user is None:
        return None
    return db_session().get(User, int(ctx.user.id))


def _fail(message: str, status: int = 400):
    return jsonify({"status": "fail", "message": message}), status


def _club_body() -> dict | None:
    raw = json_object()
    return None if raw is None else normalize_club_payload(raw)


def _not_found():
    return _fail("No club found with that ID", 404)


@bp.get("/clubs")
def list_clubs():
    s = db_session()
    clubs = s.query(Club).order_by(Club.name.asc()).all()
    return jsonify({"status": "success", "results": len(clubs), "data": [c.to_dict() for c in clubs]})


@bp.get("/clubs/<int:club_id>")
def get_club(club_id: int):
    club = db_session().get(Club, club_id)
    if not club:
        return _not_found()
    return jsonify({"status": "success", "data": club.to_dict()})


@bp.post("/clubs")
@require_admin
def create_club_api():
    s = db_session()
    payload = _club_body()
    if payload is None:
        return _fail("Request body must be a JSON object.")
    errors = validate_club_payload(payload)
    if errors:
        return _fail(" ".join(errors))
    club = create_club(s, payload, _actor())
    s.commit()
    return jsonify({"status": "success", "data": club.to_dict()}), 201


@bp.patch("/clubs/<int:club_id>")
@require_admin
def update_club_api(club_id: int):
    s = db_session()
    club = s.get(Club, club_id)
    if not club:
        return _not_found()
    payload = _club_body()
    if payload is None:
        return _fail("Request body must be a JSON object.")
    errors = validate_club_payload(payload, partial=True)
    if errors:
        return _fail(" ".join(errors))
    update_club(s, club, payload, _actor())
    s.commit()
    return jsonify({"status": "success", "data": club.to_dict()})


@bp.delete("/clubs/<int:club_id>")
@require_admin
def delete_club_api(club_id: int):
    s = db_session()
    club = s.get(Club, club_id)
    if not club:
        return _not_found()
    delete_club(s, club, _actor())
    s.commit()
    return "", 204
