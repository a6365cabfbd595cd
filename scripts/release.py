"""
Release phase for ClubDesk deploys.

Checks the production settings the web app would refuse to boot with,
upgrades the schema, then seeds the dashboard admin.

Usage:
  python scripts/release.py [--skip-seed] [--revision REV]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.clubdesk.config import check_production_config, load_config  # noqa: E402


def migrate(db_url: str, revision: str = "head") -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, revision)


def run_release(*, seed: bool = True, revision: str = "head") -> None:
    config = load_config()
    check_production_config(config)
    db_url = config["DATABASE_URL"]

    print(f"=== ClubDesk release (ENV={config['ENV']}) ===", flush=True)
    print(f"Upgrading schema to {revision}...", flush=True)
    migrate(db_url, revision)

    if seed:
        from scripts import init_db

        init_db.seed_only(database_url=db_url)
    else:
        print("Skipping admin seed.", flush=True)
    print("=== ClubDesk release done ===", flush=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run ClubDesk migrations and seed the admin user.")
    parser.add_argument("--skip-seed", action="store_true", help="only run migrations")
    parser.add_argument("--revision", default="head", help="alembic revision to upgrade to")
    args = parser.parse_args(argv)
    run_release(seed=not args.skip_seed, revision=args.revision)


if __name__ == "__main__":
    main()
