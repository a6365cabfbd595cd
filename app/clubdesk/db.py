from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, g
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def create_db_engine(db_url: str) -> Engine:
    """
    Engine shared by the web app and the release scripts.

    Postgres gets pool tuning for gunicorn workers. SQLite (dev and tests)
    needs foreign keys switched on per connection, otherwise deleting a
    club would leave sessions pointing at a missing row instead of
    clearing `training_sessions.club_id`.
    """
    kwargs: dict[str, object] = {"future": True, "pool_pre_ping": True}
    if db_url.startswith("postgres"):
        kwargs.update(pool_recycle=1800, pool_size=5, max_overflow=10, pool_timeout=30)
    engine = create_engine(db_url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _sqlite_foreign_keys(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


def init_db(app: Flask) -> None:
    engine = create_db_engine(app.config["DATABASE_URL"])
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = make_sessionmaker(engine)
    app.logger.info("Database engine ready (dialect=%s)", engine.dialect.name)


def check_database(s: Session) -> str | None:
    """Run a trivial query. Returns None when healthy, else the error text."""
    try:
        s.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database check failed: %s", e)
        s.rollback()
        return str(e)
    return None


def db_session(app: Flask | None = None) -> Session:
    """Request-scoped session, closed by `teardown_db_session`."""
    s: Session | None = getattr(g, "db_session", None)
    if s is None:
        if app is None:
            from flask import current_app

            app = current_app
        s = app.extensions["sqlalchemy_sessionmaker"]()
        g.db_session = s
    return s


def teardown_db_session(_exc: BaseException | None) -> None:
    s: Session | None = g.pop("db_session", None)
    if s is not None:
        s.close()


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """Session outside a request (tests, shell). Commits on success."""
    s: Session = app.extensions["sqlalchemy_sessionmaker"]()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
