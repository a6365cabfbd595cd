import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.clubdesk.audit import record_event  # noqa: E402
from app.clubdesk.models import User  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password, but re-activates it and restores the admin role.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@clubdesk.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    admin_name = (os.environ.get("ADMIN_NAME") or "Site Admin").strip()

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///clubdesk.db").strip()

    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(name=admin_name, email=admin_email, role="admin", is_active=True)
            user.set_password(admin_password)
            s.add(user)
            s.flush()
            record_event(s, actor=None, action="user.seed_admin", entity_type="User", entity_id=str(user.id))
        else:
            user.role = "admin"
            user.is_active = True

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
