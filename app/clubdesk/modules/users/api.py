from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.clubdesk.context import TOKEN_COOKIE, current_auth, require_auth, sign_token
from app.clubdesk.db import db_session
from app.clubdesk.mailer import Email
from app.clubdesk.models import User
from app.clubdesk.modules.users.service import (
    authenticate,
    create_user,
    find_user_by_reset_token,
    is_valid_email,
    reset_password,
    validate_password_pair,
    validate_signup_payload,
)
from app.clubdesk.utils import json_object, text_field

bp = Blueprint("users_api", __name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."
NOT_AN_OBJECT = "Request body must be a JSON object."


def _fail(message: str, status: int = 400):
    return jsonify({"status": "fail", "message": message}), status


def _user_dict(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "club": user.club,
        "joinedAt": user.joined_at.isoformat() if user.joined_at else None,
    }


def _token_response(user: User, status: int = 200):
    cfg = current_app.config
    token = sign_token(user, cfg["JWT_SECRET"], expires_days=int(cfg["JWT_EXPIRES_DAYS"]))
    resp = jsonify({"status": "success", "token": token, "data": {"user": _user_dict(user)}})
    resp.status_code = status
    resp.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=int(cfg["JWT_EXPIRES_DAYS"]) * 24 * 60 * 60,
        httponly=True,
        secure=bool(cfg.get("SESSION_COOKIE_SECURE")),
        samesite="Lax",
    )
    return resp


@bp.post("/users/signup")
def signup():
    s = db_session()
    payload = json_object()
    if payload is None:
        return _fail(NOT_AN_OBJECT)
    errors = validate_signup_payload(s, payload)
    if errors:
        return _fail(" ".join(errors))

    user = create_user(s, payload)
    s.commit()

    try:
        Email(user, request.host_url.rstrip("/") + "/").send_welcome()
    except Exception:
        # The account exists either way; a missing welcome mail is not a signup failure.
        current_app.logger.exception("Welcome email failed (user_id=%s request_id=%s)", user.id, getattr(g, "request_id", None))
    return _token_response(user, 201)


@bp.post("/users/login")
def login():
    payload = json_object()
    if payload is None:
        return _fail(NOT_AN_OBJECT)
    email = text_field(payload, "email").strip()
    password = text_field(payload, "password")
    if not email or not password:
        return _fail("Please provide email and password!")
    if not is_valid_email(email):
        return _fail("Invalid email format")

    user = authenticate(db_session(), email, password)
    if not user:
        return _fail("Incorrect email or password", 401)
    return _token_response(user)


@bp.post("/users/logout")
def logout():
    resp = jsonify({"status": "success", "message": "Logged out successfully"})
    resp.delete_cookie(TOKEN_COOKIE, httponly=True, samesite="Lax")
    return resp


@bp.get("/users/me")
@require_auth
def me():
    ctx = current_auth()
    user = db_session().get(User, int(ctx.user.id))
    if not user or not user.is_active:
        return _fail("The user belonging to this token no longer exists.", 401)
    if user.changed_password_after(ctx.user.iat):
        return _fail("User recently changed password! Please log in again.", 401)
    return jsonify({"status": "success", "data": {"user": _user_dict(user)}})


@bp.post("/users/forgot-password")
def forgot_password():
    s = db_session()
    payload = json_object()
    if payload is None:
        return _fail(NOT_AN_OBJECT)
    email = text_field(payload, "email").strip().lower()
    if not email:
        return _fail("Email is required")
    if not is_valid_email(email):
        return _fail("Invalid email format")

    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active:
        return jsonify({"status": "success", "message": FORGOT_PASSWORD_MESSAGE})

    reset_token = user.create_password_reset_token()
    s.commit()

    base = (current_app.config.get("PUBLIC_BASE_URL") or request.host_url).rstrip("/")
    reset_url = f"{base}/api/v1/users/reset-password/{reset_token}"
    try:
        Email(user, reset_url).send_password_reset()
    except Exception:
        current_app.logger.exception("Password reset email failed (user_id=%s)", user.id)
        user.clear_password_reset()
        s.commit()
        return _fail("There was an error sending the email. Try again later!", 500)

    return jsonify({"status": "success", "message": FORGOT_PASSWORD_MESSAGE})


@bp.patch("/users/reset-password/<token>")
def reset_password_api(token: str):
    s = db_session()
    payload = json_object()
    if payload is None:
        return _fail(NOT_AN_OBJECT)
    password = text_field(payload, "password")
    password_confirm = text_field(payload, "passwordConfirm")
    if not password or not password_confirm:
        return _fail("Password and confirmation are required")
    errors = validate_password_pair(password, password_confirm)
    if errors:
        return _fail(" ".join(errors))

    user = find_user_by_reset_token(s, token)
    if not user:
        return _fail("Token is invalid or has expired")

    reset_password(s, user, password)
    s.commit()
    return _token_response(user)
