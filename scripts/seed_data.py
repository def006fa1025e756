"""Seed database with the configured superadmin accounts."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.db import ensure_async_url
from app.core.security import hash_password
from app.models.enums import AdminRole
from app.models.models import Administrator


async def seed_superadmin(session: AsyncSession, email: str, password: str) -> None:
    """Create a superadmin unless one with this email already exists."""
    email = email.strip().lower()

    result = await session.execute(select(Administrator).where(Administrator.email == email))
    if result.scalar_one_or_none():
        print(f"✓ Admin already exists: {email}")
        return

    session.add(
        Administrator(
            email=email,
            password_hash=hash_password(password),
            role=AdminRole.SUPERADMIN,
            is_active=True,
        )
    )
    await session.commit()
    print(f"✓ Created superadmin: {email}")


async def main() -> None:
    """Run all seed operations."""
    print("🌱 Seeding database...")

    if not settings.DATABASE_URL:
        raise SystemExit("DATABASE_URL is not configured")

    engine = create_async_engine(ensure_async_url(settings.DATABASE_URL), echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    admins = [
        (settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD),
        (settings.ADMIN_EMAIL_2, settings.ADMIN_PASSWORD_2),
    ]
    async with async_session() as session:
        for email, password in admins:
            if email and password:
                await seed_superadmin(session, email, password)

    await engine.dispose()

    print("✅ Database seeding completed!")


if __name__ == "__main__":
    asyncio.run(main())
