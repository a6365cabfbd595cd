from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

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
from app.clubdesk.rbac import DASHBOARD_ROLES, require_role

bp = Blueprint("clubs", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _form_payload() -> dict:
    return normalize_club_payload(
        {
            "name": request.form.get("name"),
            "description": request.form.get("description"),
            "location": request.form.get("location"),
            "contact_email": request.form.get("contact_email"),
            "contact_phone": request.form.get("contact_phone"),
        }
    )


# ---------- List ----------
@bp.get("/clubs")
@require_role(*DASHBOARD_ROLES)
def clubs_list():
    s = db_session()
    search = (request.args.get("q") or "").strip()
    q = s.query(Club)
    if search:
        like = f"%{search}%"
        q = q.filter((Club.name.ilike(like)) | (Club.location.ilike(like)))
    clubs = q.order_by(Club.name.asc()).all()
    return render_template("admin/clubs/list.html", clubs=clubs, search=search)


# ---------- New ----------
@bp.get("/clubs/new")
@require_role("admin")
def clubs_new_get():
    return render_template("admin/clubs/form.html", club=None)


@bp.post("/clubs/new")
@require_role("admin")
def clubs_new_post():
    s = db_session()
    payload = _form_payload()
    errors = validate_club_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("clubs.clubs_new_get"))

    create_club(s, payload, _current_user())
    s.commit()
    flash("Club created.", "success")
    return redirect(url_for("clubs.clubs_list"))


# ---------- Edit ----------
@bp.get("/clubs/<int:club_id>/edit")
@require_role("admin")
def club_edit_get(club_id: int):
    s = db_session()
    club = s.get(Club, club_id)
    if not club:
        abort(404)
    return render_template("admin/clubs/form.html", club=club)


@bp.post("/clubs/<int:club_id>/edit")
@require_role("admin")
def club_edit_post(club_id: int):
    s = db_session()
    club = s.get(Club, club_id)
    if not club:
        abort(404)

    payload = _form_payload()
    errors = validate_club_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("clubs.club_edit_get", club_id=club_id))

    update_club(s, club, payload, _current_user())
    s.commit()
    flash("Club updated.", "success")
    return redirect(url_for("clubs.clubs_list"))


# ---------- Delete ----------
@bp.post("/clubs/<int:club_id>/delete")
@require_role("admin")
def club_delete(club_id: int):
    s = db_session()
    club = s.get(Club, club_id)
    if not club:
        abort(404)
    delete_club(s, club, _current_user())
    s.commit()
    flash("Club deleted.", "success")
    return redirect(url_for("clubs.clubs_list"))
