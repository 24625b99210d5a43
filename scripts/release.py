"""
Deploy step for the dashboard: bring the schema to head, make sure customer
images have somewhere to land, and seed the admin login.

DATABASE_URL must be set explicitly here; the sqlite default in config is for
local runs only.

Usage:
  python scripts/release.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _migrate(database_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")


def _prepare_upload_dir(upload_dir: str) -> None:
    # Image saves never create directories at request time.
    os.makedirs(upload_dir, exist_ok=True)
    if not os.access(upload_dir, os.W_OK):
        raise RuntimeError(f"UPLOAD_DIR {upload_dir} is not writable; customer image updates would fail.")


def run_release() -> None:
    from app.dashboard.config import load_settings

    if not (os.environ.get("DATABASE_URL") or "").strip():
        raise RuntimeError("Missing required environment variable DATABASE_URL.")
    settings = load_settings()
    if settings.env in ("prod", "production") and settings.database_url.startswith("sqlite"):
        raise RuntimeError("Refusing to release invoices/customers onto sqlite in production.")

    print(f"[release] env={settings.env} migrating invoices/customers schema", flush=True)
    _migrate(settings.database_url)

    print(f"[release] customer images -> {settings.upload_dir}", flush=True)
    _prepare_upload_dir(settings.upload_dir)

    from scripts import init_db

    init_db.seed_only(database_url=settings.database_url)
    print("[release] admin login seeded; done", flush=True)


if __name__ == "__main__":
    run_release()
