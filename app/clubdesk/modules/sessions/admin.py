from __future__ import annotations

from flask import Blueprint, flash, g, redirect, render_template, request, url_for

from app.clubdesk.db import db_session
from app.clubdesk.models import User
from app.clubdesk.modules.clubs.models import Club
from app.clubdesk.modules.sessions.components import SessionActions
from app.clubdesk.modules.sessions.models import DEMOS, SPORTS, TrainingSession
from app.clubdesk.modules.sessions.service import create_session, parse_session_form
from app.clubdesk.rbac import DASHBOARD_ROLES, require_role

bp = Blueprint("sessions", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _open_create_form():
    return redirect(url_for("sessions.sessions_new_get"))


# ---------- List ----------
@bp.get("/sessions")
@require_role(*DASHBOARD_ROLES)
def sessions_list():
    s = db_session()
    sport_filter = (request.args.get("sport") or "").strip()
    q = s.query(TrainingSession)
    if sport_filter:
        q = q.filter(TrainingSession.sport == sport_filter)
    sessions = q.order_by(TrainingSession.start_date.desc(), TrainingSession.id.desc()).all()
    return render_template(
        "admin/sessions/list.html",
        sessions=sessions,
        sports=SPORTS,
        sport_filter=sport_filter,
        actions=SessionActions(on_create_session=_open_create_form),
        create_url=url_for("sessions.sessions_new_get"),
    )


# ---------- New ----------
@bp.get("/sessions/new")
@require_role(*DASHBOARD_ROLES)
def sessions_new_get():
    clubs = db_session().query(Club).order_by(Club.name.asc()).all()
    return render_template("admin/sessions/new.html", sports=SPORTS, demos=DEMOS, clubs=clubs, form={})


@bp.post("/sessions/new")
@require_role(*DASHBOARD_ROLES)
def sessions_new_post():
    s = db_session()
    payload, errors = parse_session_form(request.form.to_dict())
    if payload.get("club_id") is not None and s.get(Club, payload["club_id"]) is None:
        errors.append("Selected club does not exist.")
    if errors:
        for e in errors:
            flash(e, "danger")
        clubs = s.query(Club).order_by(Club.name.asc()).all()
        return (
            render_template("admin/sessions/new.html", sports=SPORTS, demos=DEMOS, clubs=clubs, form=request.form),
            400,
        )

    create_session(s, payload, _current_user())
    s.commit()
    flash("Session created.", "success")
    return redirect(url_for("sessions.sessions_list"))


@bp.post("/sessions/actions/create")
@require_role(*DASHBOARD_ROLES)
def sessions_create_action():
    """POST variant of the Create Session button (used by the list page's no-JS form)."""
    return SessionActions(on_create_session=_open_create_form).click()
