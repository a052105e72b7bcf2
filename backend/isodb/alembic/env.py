# backend/isodb/alembic/env.py

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

# backend/ must be importable so `isodb` resolves when alembic runs from anywhere.
_BACKEND_DIR = str(Path(__file__).resolve().parents[2])
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

import isodb  # noqa: E402,F401  (registers manuals, procedures, documents, revisions, users)
from isodb.database import Base, write_engine  # noqa: E402

target_metadata = Base.metadata


def _offline_url() -> str:
    """alembic.ini ships a driver:// placeholder; the environment wins over it."""
    configured = (config.get_main_option("sqlalchemy.url") or "").strip()
    if configured and not configured.startswith("driver://"):
        return configured

    from_env = (os.getenv("DATABASE_WRITE_URL") or os.getenv("DATABASE_URL") or "").strip()
    if not from_env:
        raise RuntimeError(
            "No database URL for offline SQL generation; "
            "set DATABASE_WRITE_URL or DATABASE_URL, or sqlalchemy.url in alembic.ini."
        )
    config.set_main_option("sqlalchemy.url", from_env)
    return from_env


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    url = _offline_url()
    _configure(url=url, literal_binds=True, render_as_batch=url.startswith("sqlite"))
else:
    with write_engine.connect() as connection:
        _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
