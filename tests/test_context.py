import time

import jwt
import pytest

from app.clubdesk.context import (
    AuthContext,
    JwtPayload,
    build_auth_context,
    decode_token,
    sign_token,
)
from app.clubdesk.db import session_scope
from app.clubdesk.models import User
from conftest import JWT_SECRET, api_token, bearer


def _admin(app) -> User:
    with session_scope(app) as s:
        return s.query(User).filter(User.email == "admin@example.com").one()


def test_no_token_yields_absent_user(app):
    with app.test_request_context("/api/v1/clubs"):
        from flask import request

        ctx = build_auth_context(request, JWT_SECRET)
    assert isinstance(ctx, AuthContext)
    assert ctx.user is None
    assert ctx.is_authenticated is False
    assert ctx.request is not None


def test_valid_token_yields_decoded_payload(app):
    user = _admin(app)
    now = int(time.time())
    token = sign_token(user, JWT_SECRET, expires_days=30, now=now)

    with app.test_request_context("/api/v1/clubs", headers=bearer(token)):
        from flask import request

        ctx = build_auth_context(request, JWT_SECRET)

    assert ctx.user == JwtPayload(
        id=str(user.id),
        email="admin@example.com",
        role="admin",
        iat=now,
        exp=now + 30 * 24 * 60 * 60,
    )
    assert ctx.is_authenticated is True


def test_cookie_token_is_accepted(app):
    token = sign_token(_admin(app), JWT_SECRET)
    with app.test_request_context("/", headers={"Cookie": f"jwt={token}"}):
        from flask import request

        ctx = build_auth_context(request, JWT_SECRET)
    assert ctx.user is not None
    assert ctx.user.email == "admin@example.com"


def test_expired_token_yields_absent_user(app):
    token = sign_token(_admin(app), JWT_SECRET, expires_days=1, now=int(time.time()) - 3 * 24 * 60 * 60)
    with app.test_request_context("/", headers=bearer(token)):
        from flask import request

        ctx = build_auth_context(request, JWT_SECRET)
    assert ctx.user is None


def test_token_signed_with_other_secret_yields_absent_user(app):
    token = sign_token(_admin(app), "some-other-secret-that-is-also-32-chars-long")
    with app.test_request_context("/", headers=bearer(token)):
        from flask import request

        ctx = build_auth_context(request, JWT_SECRET)
    assert ctx.user is None


def test_decode_rejects_token_missing_claims():
    now = int(time.time())
    token = jwt.encode({"id": "1", "iat": now, "exp": now + 60}, JWT_SECRET, algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_token(token, JWT_SECRET)


def test_me_requires_authentication(client):
    r = client.get("/api/v1/users/me")
    assert r.status_code == 401
    assert r.json["message"] == "Authentication required"


def test_me_reads_context_user(client):
    token = api_token(client, "coach@example.com", "pw-coach-123")
    r = client.get("/api/v1/users/me", headers=bearer(token))
    assert r.status_code == 200
    assert r.json["data"]["user"]["email"] == "coach@example.com"
    assert r.json["data"]["user"]["role"] == "coach"
