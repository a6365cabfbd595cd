from flask import Blueprint, render_template, request
from sqlalchemy import func

from app.clubdesk.db import check_database, db_session
from app.clubdesk.models import AuditEvent, User
from app.clubdesk.modules.clubs.models import Club
from app.clubdesk.modules.sessions.models import TrainingSession
from app.clubdesk.rbac import DASHBOARD_ROLES, require_role

bp = Blueprint("admin", __name__)


@bp.get("/")
@require_role(*DASHBOARD_ROLES)
def index():
    s = db_session()
    db_error = check_database(s)
    status = {"db_connected": db_error is None, "db_error": db_error}

    counts = {
        "clubs": s.query(func.count(Club.id)).scalar() or 0,
        "sessions": s.query(func.count(TrainingSession.id)).scalar() or 0,
        "users": s.query(func.count(User.id)).scalar() or 0,
    }
    recent_events = s.query(AuditEvent).order_by(AuditEvent.id.desc()).limit(10).all()
    return render_template("admin/index.html", status=status, counts=counts, recent_events=recent_events)


@bp.get("/audit")
@require_role("admin")
def audit_log():
    s = db_session()
    action = (request.args.get("action") or "").strip()
    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.ilike(f"{action}%"))
    events = q.order_by(AuditEvent.id.desc()).limit(200).all()
    return render_template("admin/audit.html", events=events, action=action)
