import logging
import os
from datetime import timedelta

from flask import Flask, g, jsonify, render_template, request, session
from dotenv import load_dotenv

from app.clubdesk.config import check_production_config, load_config
from app.clubdesk.context import load_auth_context
from app.clubdesk.db import init_db, teardown_db_session
from app.clubdesk.routes import bp as routes_bp
from app.clubdesk.auth import bp as auth_bp, load_current_user
from app.clubdesk.admin import bp as admin_bp
from app.clubdesk.modules.clubs.admin import bp as clubs_bp
from app.clubdesk.modules.clubs.api import bp as clubs_api_bp
from app.clubdesk.modules.sessions.admin import bp as sessions_bp
from app.clubdesk.modules.users.api import bp as users_api_bp

_SKIP_PREFIXES = ("/static/", "/health")
_CSRF_EXEMPT_ENDPOINTS = (
    "users_api.signup",
    "users_api.login",
    "users_api.logout",
    "users_api.forgot_password",
    "users_api.reset_password_api",
)


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    from app.clubdesk.security import csrf_exempt, ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_roles() -> dict:
        from app.clubdesk.rbac import user_has_role

        def has_role(*roles: str) -> bool:
            return user_has_role(getattr(g, "current_user", None), *roles)

        return {"has_role": has_role}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None:
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_SKIP_PREFIXES):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Login/logout and the public user API are exempt; so are bearer-token API calls.
            endpoint = request.endpoint or ""
            if endpoint.startswith("auth.") or endpoint in _CSRF_EXEMPT_ENDPOINTS or csrf_exempt(request):
                return None
            if not validate_csrf(request):
                if _wants_json():
                    return jsonify({"status": "fail", "message": "CSRF token missing or invalid."}), 400
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    check_production_config(app.config)

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(clubs_bp, url_prefix="/admin")
    app.register_blueprint(sessions_bp, url_prefix="/admin")
    app.register_blueprint(clubs_api_bp, url_prefix="/api/v1")
    app.register_blueprint(users_api_bp, url_prefix="/api/v1")

    def _load_request_context():
        if request.path.startswith(_SKIP_PREFIXES):
            g.current_user = None
            return None
        load_current_user()
        load_auth_context()
        return None

    app.before_request(_load_request_context)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        if _wants_json():
            return jsonify({"status": "error", "message": "Something went very wrong!"}), 500
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        if _wants_json():
            return jsonify({"status": "fail", "message": f"Can't find {request.path} on this server!"}), 404
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_role", None)
        if missing:
            app.logger.warning("Forbidden: missing_role=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_role=missing), 403

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
