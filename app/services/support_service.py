"""Service layer for support tickets - contains business logic.

A ticket moves new -> open (first admin read) -> replied (admin reply).
"""

import logging
import secrets
import string
import time
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TicketStatus
from app.models.models import Ticket
from app.repositories.support_repository import TicketRepository
from app.services.notification_service import EmailNotifier
from app.utils.exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_ticket_id(prefix: str = "TKT") -> str:
    """`<prefix>-<base36 epoch millis><5 random base36 chars>`."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}-{_base36(int(time.time() * 1000))}{suffix}"


class SupportService:
    """Service layer for support ticket business logic."""

    def __init__(self, db: AsyncSession, notifier: Optional[EmailNotifier] = None):
        """Initialize service with database session."""
        self.repository = TicketRepository(db)
        self.notifier = notifier

    async def create_ticket(self, user_id: UUID, email: str, subject: str) -> Ticket:
        """Open a ticket for the authenticated user."""
        email = (email or "").strip()
        subject = (subject or "").strip()
        if not email or not subject:
            raise ValidationException("Email and description are required")

        ticket = await self.repository.create(
            ticket_id=generate_ticket_id(),
            user_id=user_id,
            user_email=email,
            subject=subject,
        )
        logger.info("Ticket created", extra={"ticket.id": ticket.ticket_id, "user.id": str(user_id)})
        return ticket

    async def list_tickets(self, page: int = 1, page_size: int = 50) -> tuple[list[Ticket], int]:
        """Admin listing, newest first. Returns one page and the total ticket count."""
        tickets = await self.repository.list_page(offset=(page - 1) * page_size, limit=page_size)
        return tickets, await self.repository.count()

    async def list_user_tickets(self, user_id: UUID) -> list[Ticket]:
        return await self.repository.get_by_user_id(user_id)

    async def get_ticket(self, ticket_id: str) -> Ticket:
        """Admin read. The first read of a new ticket marks it open."""
        ticket = await self.repository.get_by_ticket_id(ticket_id)
        if ticket is None:
            raise NotFoundException("Ticket not found")
        if ticket.status == TicketStatus.NEW:
            ticket.status = TicketStatus.OPEN
            await self.repository.save(ticket)
        return ticket

    async def reply_to_ticket(self, ticket_id: str, admin_id: UUID, reply: str) -> Ticket:
        reply = (reply or "").strip()
        if not reply:
            raise ValidationException("Reply text is required")

        ticket = await self.repository.get_by_ticket_id(ticket_id)
        if ticket is None:
            raise NotFoundException("Ticket not found")

        ticket.reply = reply
        ticket.status = TicketStatus.REPLIED
        ticket.admin_id = admin_id
        ticket.admin_ticket_id = generate_ticket_id("ADM")
        await self.repository.save(ticket)

        if self.notifier is not None:
            self.notifier.send_ticket_reply(ticket.user_email, ticket.ticket_id, reply)
        logger.info("Ticket replied", extra={"ticket.id": ticket.ticket_id, "admin.id": str(admin_id)})
        return ticket
