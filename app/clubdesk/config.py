import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    public_base_url: str

    jwt_secret: str
    jwt_expires_days: int

    email_from: str
    email_from_name: str
    email_host: str
    email_port: int
    email_username: str
    email_password: str
    email_use_tls: bool
    mailgun_api_key: str
    mailgun_domain: str
    mailgun_base_url: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    secret_key = _getenv("SECRET_KEY", "change-me")
    return Settings(
        secret_key=secret_key,
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///clubdesk.db"),
        public_base_url=_getenv("PUBLIC_BASE_URL", "http://localhost:5000"),
        jwt_secret=_getenv("JWT_SECRET", secret_key),
        jwt_expires_days=_getint("JWT_EXPIRES_DAYS", 30),
        email_from=_getenv("EMAIL_FROM", "noreply@localhost"),
        email_from_name=_getenv("EMAIL_FROM_NAME", "XL Soccer"),
        email_host=_getenv("EMAIL_HOST", "localhost"),
        email_port=_getint("EMAIL_PORT", 587),
        email_username=_getenv("EMAIL_USERNAME", ""),
        email_password=_getenv("EMAIL_PASSWORD", ""),
        email_use_tls=_getenv("EMAIL_USE_TLS", "1") not in ("0", "false", "no"),
        mailgun_api_key=_getenv("MAILGUN_API_KEY", ""),
        mailgun_domain=_getenv("MAILGUN_DOMAIN", ""),
        mailgun_base_url=_getenv("MAILGUN_BASE_URL", "https://api.mailgun.net/v3"),
    )


def load_config() -> dict:
    s = load_settings()
    production = is_production(s.env)
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "PUBLIC_BASE_URL": s.public_base_url,
        "JWT_SECRET": s.jwt_secret,
        "JWT_EXPIRES_DAYS": s.jwt_expires_days,
        "EMAIL_FROM": s.email_from,
        "EMAIL_FROM_NAME": s.email_from_name,
        "EMAIL_HOST": s.email_host,
        "EMAIL_PORT": s.email_port,
        "EMAIL_USERNAME": s.email_username,
        "EMAIL_PASSWORD": s.email_password,
        "EMAIL_USE_TLS": s.email_use_tls,
        "MAILGUN_API_KEY": s.mailgun_api_key,
        "MAILGUN_DOMAIN": s.mailgun_domain,
        "MAILGUN_BASE_URL": s.mailgun_base_url,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": production,  # Require HTTPS in production
        # no uploads in this app; keep request bodies small (1MB)
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }


def is_production(env: str | None) -> bool:
    return (env or "").strip().lower() in ("prod", "production")


def check_production_config(config: dict) -> None:
    """
    Fail fast on settings that must never reach production.
    Shared by `create_app` and the release script.
    """
    if not is_production(config.get("ENV")):
        return
    db_url = str(config.get("DATABASE_URL") or "").strip()
    if not db_url:
        raise RuntimeError("DATABASE_URL is required in production.")
    if db_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    if str(config.get("SECRET_KEY") or "") in ("", "change-me"):
        raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
    if len(str(config.get("JWT_SECRET") or "")) < 32:
        raise RuntimeError("JWT_SECRET must be at least 32 characters long in production.")
