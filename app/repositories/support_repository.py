"""Repository layer for support tickets - abstracts data access."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Ticket
from app.queries.support_queries import TicketQueries


class TicketRepository:
    """Repository layer for ticket data access operations."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, ticket_id: str, user_id: UUID, user_email: str, subject: str) -> Ticket:
        return await TicketQueries.create_ticket(
            db=self.db,
            ticket_id=ticket_id,
            user_id=user_id,
            user_email=user_email,
            subject=subject,
        )

    async def get_by_ticket_id(self, ticket_id: str) -> Optional[Ticket]:
        return await TicketQueries.get_ticket_by_ticket_id(db=self.db, ticket_id=ticket_id)

    async def list_page(self, offset: int, limit: int) -> list[Ticket]:
        return await TicketQueries.list_tickets(db=self.db, offset=offset, limit=limit)

    async def count(self) -> int:
        return await TicketQueries.count_tickets(db=self.db)

    async def get_by_user_id(self, user_id: UUID, limit: int = 100) -> list[Ticket]:
        """Get all tickets for a user."""
        return await TicketQueries.get_tickets_by_user_id(db=self.db, user_id=user_id, limit=limit)

    async def save(self, ticket: Ticket) -> Ticket:
        return await TicketQueries.save(db=self.db, ticket=ticket)
