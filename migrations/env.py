"""Alembic environment.

Online runs go through psycopg v3 (async capable) against Postgres and
aiosqlite for local SQLite files; SQLite migrations use batch mode so
ALTER TABLE operations work.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings
from app.core.db import ensure_async_url, with_postgres_driver
from app.models import Base

config = context.config
if config.config_file_name is not None:
	fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _migration_url() -> str:
	url = settings.DATABASE_URL
	if not url:
		raise RuntimeError("DATABASE_URL is not configured; cannot run migrations.")
	if url.startswith("sqlite"):
		return ensure_async_url(url)
	return with_postgres_driver(url, "psycopg")


def _configure(**kwargs) -> None:
	url = kwargs.get("url") or str(kwargs["connection"].engine.url)
	context.configure(
		target_metadata=target_metadata,
		compare_type=True,
		render_as_batch=url.startswith("sqlite"),
		**kwargs,
	)


def run_migrations_offline() -> None:
	"""Emit SQL to stdout instead of executing it."""
	_configure(url=_migration_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
	with context.begin_transaction():
		context.run_migrations()


def _run_sync(connection: Connection) -> None:
	_configure(connection=connection)
	with context.begin_transaction():
		context.run_migrations()


async def run_migrations_online() -> None:
	engine = create_async_engine(_migration_url(), poolclass=pool.NullPool)
	async with engine.connect() as connection:
		await connection.run_sync(_run_sync)
	await engine.dispose()


if context.is_offline_mode():
	run_migrations_offline()
else:
	asyncio.run(run_migrations_online())
