"""Authenticated request context.

Every inbound request gets an `AuthContext` on `g.auth`, built by
`load_auth_context` in a `before_request` hook. The user part is the
decoded JWT payload (HS256, signed with JWT_SECRET) and is None when the
request carries no token or an invalid/expired one. Handlers only read it.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

import jwt
from flask import Request, current_app, g, jsonify, request
from jwt import InvalidTokenError

from app.clubdesk.models import User

ALGORITHM = "HS256"
TOKEN_COOKIE = "jwt"


@dataclass(frozen=True)
class JwtPayload:
    id: str
    email: str
    role: str
    iat: int
    exp: int

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "JwtPayload":
        for key in ("id", "email", "role", "iat", "exp"):
            if claims.get(key) in (None, ""):
                raise InvalidTokenError(f"missing_claim:{key}")
        return cls(
            id=str(claims["id"]),
            email=str(claims["email"]),
            role=str(claims["role"]),
            iat=int(claims["iat"]),
            exp=int(claims["exp"]),
        )


@dataclass(frozen=True)
class AuthContext:
    user: JwtPayload | None
    request: Request | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def sign_token(user: User, secret: str, *, expires_days: int = 30, now: int | None = None) -> str:
    iat = int(now if now is not None else time.time())
    claims = {
        "id": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": iat,
        "exp": iat + expires_days * 24 * 60 * 60,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> JwtPayload:
    """
    Decode and validate a token.
    Raises jwt.InvalidTokenError subclasses on failure.
    """
    claims = jwt.decode(
        token,
        secret,
        algorithms=[ALGORITHM],
        leeway=5,
        options={"require": ["exp", "iat"]},
    )
    return JwtPayload.from_claims(claims)


def token_from_request(req: Request) -> str | None:
    header = req.headers.get("Authorization") or ""
    if header.startswith("Bearer "):
        token = header[len("Bearer "):].strip()
        if token:
            return token
    return req.cookies.get(TOKEN_COOKIE) or None


def build_auth_context(req: Request, secret: str) -> AuthContext:
    token = token_from_request(req)
    if not token:
        return AuthContext(user=None, request=req)
    try:
        return AuthContext(user=decode_token(token, secret), request=req)
    except InvalidTokenError as e:
        current_app.logger.info("Rejected bearer token (request_id=%s): %s", getattr(g, "request_id", None), e)
        return AuthContext(user=None, request=req)


def load_auth_context() -> None:
    g.auth = build_auth_context(request, current_app.config["JWT_SECRET"])


def current_auth() -> AuthContext:
    ctx = getattr(g, "auth", None)
    if ctx is None:
        return AuthContext(user=None, request=request)
    return ctx


def _fail(message: str, status: int):
    return jsonify({"status": "fail", "message": message}), status


def require_roles(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """JSON-endpoint guard: 401 without a user, 403 when the role is not allowed (empty = any role)."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            ctx = current_auth()
            if ctx.user is None:
                return _fail("Authentication required", 401)
            if roles and ctx.user.role not in roles:
                return _fail(f"{' or '.join(r.capitalize() for r in roles)} access required", 403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


require_auth = require_roles()
require_admin = require_roles("admin")
require_coach_or_admin = require_roles("coach", "admin")
