from __future__ import annotations

import pytest

from app.clubdesk import create_app
from app.clubdesk import auth as auth_module
from app.clubdesk.db import session_scope
from app.clubdesk.models import Base, User

JWT_SECRET = "test-jwt-secret-that-is-at-least-32-chars"


class RecordingTransport:
    def __init__(self) -> None:
        self.sent = []

    def send_mail(self, message) -> None:
        self.sent.append(message)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("EMAIL_FROM", "hello@xlsoccer.test")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://xl.test")
    for k in ("MAILGUN_API_KEY", "MAILGUN_DOMAIN", "EMAIL_HOST", "EMAIL_USERNAME", "EMAIL_PASSWORD"):
        monkeypatch.delenv(k, raising=False)
    auth_module.login_throttle.clear()

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        admin = User(name="Ada Admin", email="admin@example.com", role="admin", is_active=True)
        admin.set_password("pw-admin-123")
        coach = User(name="Carl Coach", email="coach@example.com", role="coach", is_active=True)
        coach.set_password("pw-coach-123")
        member = User(name="Mia Member", email="member@example.com", role="user", is_active=True)
        member.set_password("pw-member-123")
        s.add_all([admin, coach, member])

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def mail_outbox(monkeypatch):
    transport = RecordingTransport()
    monkeypatch.setattr("app.clubdesk.mailer.transport_from_config", lambda config: transport)
    return transport.sent


def login(client, email="admin@example.com", password="pw-admin-123"):
    return client.post("/auth/login", data={"email": email, "password": password}, follow_redirects=False)


def csrf_token(client) -> str:
    client.get("/")
    with client.session_transaction() as sess:
        return sess["csrf_token"]


def api_token(client, email="admin@example.com", password="pw-admin-123") -> str:
    r = client.post("/api/v1/users/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.json
    return r.json["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login_as(client, app, email: str) -> None:
    """Put a user id straight into the dashboard session, skipping the login form."""
    with session_scope(app) as s:
        user_id = s.query(User).filter(User.email == email).one().id
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
