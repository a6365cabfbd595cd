from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, flash, g, redirect, render_template, request, session, url_for

from app.clubdesk.audit import record_event
from app.clubdesk.context import TOKEN_COOKIE
from app.clubdesk.db import db_session
from app.clubdesk.models import User
from app.clubdesk.modules.users.service import authenticate
from app.clubdesk.rbac import DASHBOARD_ROLES, user_has_role

bp = Blueprint("auth", __name__)


class LoginThrottle:
    """Per-IP sliding window over dashboard login attempts (in-process only)."""

    def __init__(self, limit: int = 5, window_seconds: int = 300) -> None:
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._attempts: dict[str, list[datetime]] = defaultdict(list)

    def blocked(self, ip: str) -> bool:
        cutoff = datetime.utcnow() - self.window
        self._attempts[ip] = [t for t in self._attempts[ip] if t > cutoff]
        return len(self._attempts[ip]) >= self.limit

    def hit(self, ip: str) -> None:
        self._attempts[ip].append(datetime.utcnow())

    def reset(self, ip: str) -> None:
        self._attempts.pop(ip, None)

    def clear(self) -> None:
        self._attempts.clear()


login_throttle = LoginThrottle()


def load_current_user() -> None:
    """Sets g.request_id and g.current_user (dashboard session cookie)."""
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex

    g.current_user = None
    user_id = session.get("user_id")
    if not user_id:
        return
    user = db_session().get(User, int(user_id))
    if user and user.is_active:
        g.current_user = user
    else:
        session.pop("user_id", None)


def _safe_next(nxt: str) -> str | None:
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


def _deny(s, email: str, reason: str, message: str):
    record_event(
        s,
        actor=None,
        action="auth.login_failed",
        entity_type="User",
        entity_id=email,
        reason=reason,
        metadata={"email": email},
    )
    s.commit()
    flash(message, "danger")
    return redirect(url_for("auth.login_get"))


@bp.get("/login")
def login_get():
    return render_template("auth/login.html", next=(request.args.get("next") or "").strip())


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    ip = request.remote_addr or "unknown"

    if login_throttle.blocked(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))
    login_throttle.hit(ip)

    s = db_session()
    user = authenticate(s, email, request.form.get("password") or "")
    if not user:
        return _deny(s, email, "Invalid credentials", "Invalid credentials.")
    if not user_has_role(user, *DASHBOARD_ROLES):
        # Players and parents use the site API, not the dashboard.
        return _deny(s, email, f"Role {user.role!r} has no dashboard access", "This account cannot use the dashboard.")

    session["user_id"] = user.id
    login_throttle.reset(ip)
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    return redirect(_safe_next((request.form.get("next") or "").strip()) or url_for("admin.index"))


@bp.get("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    resp = redirect(url_for("routes.index"))
    resp.delete_cookie(TOKEN_COOKIE, httponly=True, samesite="Lax")
    return resp
