from __future__ import annotations

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

_engine: Optional[AsyncEngine] = None
_SessionLocal: Optional[async_sessionmaker[AsyncSession]] = None

# Schemes hosting providers hand out for Postgres, in any driver flavour
_POSTGRES_SCHEMES = (
	"postgres://",
	"postgresql://",
	"postgresql+asyncpg://",
	"postgresql+psycopg://",
	"postgresql+psycopg2://",
)


def with_postgres_driver(url: str, driver: str) -> str:
	"""Rewrite a Postgres URL to `postgresql+<driver>://`; other URLs are returned unchanged."""
	for scheme in _POSTGRES_SCHEMES:
		if url.startswith(scheme):
			return f"postgresql+{driver}://" + url[len(scheme):]
	return url


def ensure_async_url(url: str) -> str:
	"""Ensure the SQLAlchemy URL uses an async driver (asyncpg for Postgres, aiosqlite for SQLite)."""
	if url.startswith("sqlite://"):
		return "sqlite+aiosqlite://" + url[len("sqlite://"):]
	return with_postgres_driver(url, "asyncpg")


def init_engine_and_session() -> None:
	global _engine, _SessionLocal
	if _engine is not None:
		return
	if not settings.DATABASE_URL:
		raise RuntimeError("DATABASE_URL is not configured. Set it in the environment or .env file.")
	_engine = create_async_engine(ensure_async_url(settings.DATABASE_URL), pool_pre_ping=True)
	_SessionLocal = async_sessionmaker(bind=_engine, expire_on_commit=False)


async def dispose_engine() -> None:
	global _engine, _SessionLocal
	if _engine is None:
		return
	await _engine.dispose()
	_engine = None
	_SessionLocal = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
	if _SessionLocal is None:
		init_engine_and_session()
	assert _SessionLocal is not None
	async with _SessionLocal() as session:
		yield session
