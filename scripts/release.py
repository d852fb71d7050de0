"""
Release phase: migrate to head, then seed.

Refuses to run without DATABASE_URL, and refuses SQLite when ENV=production.
Seeding only creates the admin user if missing; existing passwords are kept.

Usage:
  python scripts/release.py [--demo]
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def check_database_url(db_url: str | None, env: str | None) -> str:
    db_url = (db_url or "").strip()
    if not db_url:
        raise RuntimeError("Missing required environment variable DATABASE_URL.")
    if (env or "").strip().lower() in ("prod", "production") and db_url.startswith("sqlite"):
        raise RuntimeError("Refusing to release against SQLite in production; point DATABASE_URL at Postgres.")
    return db_url


def upgrade_to_head(db_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")


def run_release(*, demo: bool = False) -> None:
    db_url = check_database_url(os.environ.get("DATABASE_URL"), os.environ.get("ENV"))

    print("=== dashboard release ===", flush=True)
    upgrade_to_head(db_url)
    print("Migrations at head.", flush=True)

    from scripts import init_db

    init_db.seed_only(database_url=db_url)
    if demo:
        init_db.seed_demo(database_url=db_url)
    print("=== release done ===", flush=True)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--demo", action="store_true", help="also seed demo customers and invoices")
    run_release(demo=parser.parse_args().demo)


if __name__ == "__main__":
    main()
