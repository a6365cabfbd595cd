from datetime import date

from flask import Blueprint, render_template

from app.clubdesk.db import check_database, db_session
from app.clubdesk.modules.sessions.models import TrainingSession

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    """Public landing page: active sessions that have not ended yet."""
    upcoming = (
        db_session()
        .query(TrainingSession)
        .filter(TrainingSession.active.is_(True))
        .filter(TrainingSession.staff_only.is_(False))
        .filter(TrainingSession.end_date >= date.today())
        .order_by(TrainingSession.start_date.asc(), TrainingSession.name.asc())
        .limit(20)
        .all()
    )
    return render_template("public/index.html", upcoming=upcoming)


@bp.get("/health")
def health():
    db_error = check_database(db_session())
    if db_error:
        return {"ok": False, "db": "unavailable"}, 503
    return {"ok": True, "db": "ok"}
