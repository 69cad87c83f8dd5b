"""Alembic environment configuration."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from sqlmodel import SQLModel

from taskmaster.core.config import settings
from taskmaster.db import base  # noqa: F401  # ensure models are imported

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)

# Programmatic callers set the URL themselves and flag url_configured
if not config.attributes.get("url_configured"):
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

target_metadata = SQLModel.metadata


def _process_revision_directives(context, revision, directives):
    """Set the revision ID to YYYYMMDD_NNNN (date + sequential number)."""
    if not directives:
        return
    date_prefix = datetime.now(timezone.utc).strftime("%Y%m%d")

    versions_dir = Path(__file__).parent / "versions"
    max_seq = 0
    for f in versions_dir.glob("*.py"):
        name = f.stem
        if len(name) >= 13 and name[8] == "_" and name[:8].isdigit() and name[9:13].isdigit():
            max_seq = max(max_seq, int(name[9:13]))

    directives[0].rev_id = f"{date_prefix}_{max_seq + 1:04d}"


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""

    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=True,
        process_revision_directives=_process_revision_directives,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=True,
        transaction_per_migration=True,
        process_revision_directives=_process_revision_directives,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""

    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
