"""Support ticket schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.models.enums import TicketStatus
from app.schemas.common import APIModel


class TicketCreateRequest(APIModel):
    """Contact-form submission that opens a ticket."""

    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=5000, description="Description of the issue")


class TicketReplyRequest(APIModel):
    reply: str = Field(..., min_length=1, max_length=5000)


class TicketResponse(APIModel):
    ticket_id: str
    user_id: uuid.UUID
    user_email: str
    subject: str
    status: TicketStatus
    admin_id: Optional[uuid.UUID] = None
    admin_ticket_id: str = ""
    reply: str = ""
    date_submitted: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
