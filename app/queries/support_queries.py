"""Query layer for support tickets - contains raw database queries."""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TicketStatus
from app.models.models import Ticket


class TicketQueries:
    """Query layer for ticket table operations."""

    @staticmethod
    async def create_ticket(
        db: AsyncSession,
        ticket_id: str,
        user_id: UUID,
        user_email: str,
        subject: str,
    ) -> Ticket:
        """Create a new ticket in the database."""
        ticket = Ticket(
            ticket_id=ticket_id,
            user_id=user_id,
            user_email=user_email,
            subject=subject,
            status=TicketStatus.NEW,
        )
        db.add(ticket)
        await db.flush()
        await db.refresh(ticket)
        await db.commit()
        return ticket

    @staticmethod
    async def get_ticket_by_ticket_id(db: AsyncSession, ticket_id: str) -> Optional[Ticket]:
        """Get a ticket by its public ticket id."""
        stmt = select(Ticket).where(Ticket.ticket_id == ticket_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_tickets(db: AsyncSession, offset: int, limit: int) -> list[Ticket]:
        """Get one page of tickets, newest first."""
        stmt = (
            select(Ticket)
            .order_by(Ticket.date_submitted.desc(), Ticket.ticket_id)
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_tickets(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Ticket))
        return result.scalar() or 0

    @staticmethod
    async def get_tickets_by_user_id(db: AsyncSession, user_id: UUID, limit: int = 100) -> list[Ticket]:
        """Get all tickets submitted by a specific user, newest first."""
        stmt = (
            select(Ticket)
            .where(Ticket.user_id == user_id)
            .order_by(Ticket.date_submitted.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def save(db: AsyncSession, ticket: Ticket) -> Ticket:
        """Persist pending changes on a ticket."""
        await db.commit()
        return ticket
