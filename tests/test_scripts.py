import pytest

from app.clubdesk.models import AuditEvent, Base, User
from scripts import init_db, release, start
from scripts._db_utils import script_session


@pytest.fixture()
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path/'release.db'}"
    with script_session(url) as s:
        Base.metadata.create_all(bind=s.get_bind())
    return url


def test_seed_admin_is_idempotent(db_url, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "Boss@XLSoccer.test")
    monkeypatch.setenv("ADMIN_PASSWORD", "first-password")

    init_db.seed_only(database_url=db_url)
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == "boss@xlsoccer.test").one()
        user.role = "coach"
        user.is_active = False

    monkeypatch.setenv("ADMIN_PASSWORD", "second-password")
    init_db.seed_only(database_url=db_url)

    with script_session(db_url) as s:
        users = s.query(User).all()
        assert len(users) == 1
        assert users[0].role == "admin"
        assert users[0].is_active is True
        assert users[0].check_password("first-password")
        assert s.query(AuditEvent).filter(AuditEvent.action == "user.seed_admin").count() == 1


def test_release_refuses_sqlite_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    monkeypatch.setenv("SECRET_KEY", "a-real-secret")
    monkeypatch.setenv("JWT_SECRET", "x" * 40)
    migrated = []
    monkeypatch.setattr(release, "migrate", lambda *a, **kw: migrated.append(a))

    with pytest.raises(RuntimeError, match="Postgres"):
        release.run_release()
    assert migrated == []


def test_release_migrates_then_seeds(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///dev.db")
    calls = []
    monkeypatch.setattr(release, "migrate", lambda url, rev: calls.append(("migrate", url, rev)))
    monkeypatch.setattr(init_db, "seed_only", lambda database_url: calls.append(("seed", database_url)))

    release.main(["--revision", "a1c2d3e4f5a6"])
    release.main(["--skip-seed"])

    assert calls == [
        ("migrate", "sqlite:///dev.db", "a1c2d3e4f5a6"),
        ("seed", "sqlite:///dev.db"),
        ("migrate", "sqlite:///dev.db", "head"),
    ]


def test_gunicorn_argv_serves_wsgi_app():
    argv = start.gunicorn_argv(9000, 3)
    assert argv[:2] == ["gunicorn", "app.wsgi:app"]
    assert argv[argv.index("--bind") + 1] == "0.0.0.0:9000"
    assert argv[argv.index("--workers") + 1] == "3"


def test_invalid_port_exits(monkeypatch):
    monkeypatch.setenv("PORT", "http")
    with pytest.raises(SystemExit):
        start._env_int("PORT", 8080, low=1, high=65535)
    monkeypatch.setenv("PORT", "70000")
    with pytest.raises(SystemExit):
        start._env_int("PORT", 8080, low=1, high=65535)
