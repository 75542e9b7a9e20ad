"""
Release step for AlumNet deploys.

Loads the same configuration as the web app, refuses a production release
with an unsafe config, upgrades the schema to the newest Alembic revision,
then seeds the admin account. Safe to re-run: migrations at head are a no-op
and seeding never overwrites an existing password.

Usage:
    python scripts/release.py [--samples]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.alumnet.config import check_production_config, is_production, load_config  # noqa: E402


def alembic_config(database_url: str):
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    # configparser interpolation: a literal % (e.g. in a password) must be doubled.
    cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def run_release(*, with_samples: bool = False) -> str:
    """Migrate and seed; returns the database URL that was released."""
    load_dotenv()
    config = load_config()
    if is_production(config["ENV"]):
        check_production_config(config)
    database_url = config["DATABASE_URL"]

    from alembic import command

    print(f"[release] env={config['ENV']} backend={database_url.split(':', 1)[0]}", flush=True)
    command.upgrade(alembic_config(database_url), "head")
    print("[release] schema at head", flush=True)

    from scripts import init_db

    init_db.seed_only(database_url=database_url, with_samples=with_samples)
    print("[release] seed done", flush=True)
    return database_url


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Migrate the AlumNet database and seed the admin account.")
    parser.add_argument("--samples", action="store_true", help="also seed demo staff, a member and events")
    args = parser.parse_args(argv)
    run_release(with_samples=args.samples)


if __name__ == "__main__":
    main()
