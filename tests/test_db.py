import pytest

from app.core.db import ensure_async_url, with_postgres_driver


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("postgresql://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("postgresql+psycopg2://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("postgresql+asyncpg://u:p@host/db", "postgresql+asyncpg://u:p@host/db"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
        ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
    ],
)
def test_ensure_async_url(url, expected):
    assert ensure_async_url(url) == expected


def test_migrations_use_psycopg():
    assert with_postgres_driver("postgresql+asyncpg://h/db", "psycopg") == "postgresql+psycopg://h/db"
    assert with_postgres_driver("mysql://h/db", "psycopg") == "mysql://h/db"
