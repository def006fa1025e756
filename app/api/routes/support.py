from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentAdmin, CurrentUser, Notifier
from app.schemas.support import TicketCreateRequest, TicketReplyRequest, TicketResponse
from app.services.support_service import SupportService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/tickets", tags=["support"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreateRequest, current_user: CurrentUser, db: DB):
	"""Open a support ticket for the authenticated user."""
	ticket = await SupportService(db).create_ticket(current_user.id, payload.email, payload.subject)
	return api_success("Ticket created", ticket=TicketResponse.model_validate(ticket).to_wire())


@router.get("/me")
async def list_my_tickets(current_user: CurrentUser, db: DB):
	tickets = await SupportService(db).list_user_tickets(current_user.id)
	return api_success(tickets=[TicketResponse.model_validate(t).to_wire() for t in tickets])


@router.get("")
async def list_tickets(
	admin: CurrentAdmin,
	db: DB,
	page: int = Query(1, ge=1),
	page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
):
	"""List all tickets for administrators, newest first, one page at a time."""
	tickets, total = await SupportService(db).list_tickets(page, page_size)
	return api_success(
		tickets=[TicketResponse.model_validate(t).to_wire() for t in tickets],
		meta={
			"page": page,
			"pageSize": page_size,
			"total": total,
			"totalPages": (total + page_size - 1) // page_size,
		},
	)


@router.get("/{ticket_id}")
async def get_ticket(ticket_id: str, admin: CurrentAdmin, db: DB):
	ticket = await SupportService(db).get_ticket(ticket_id)
	return api_success(ticket=TicketResponse.model_validate(ticket).to_wire())


@router.put("/{ticket_id}/reply")
async def reply_ticket(ticket_id: str, payload: TicketReplyRequest, admin: CurrentAdmin, db: DB, notifier: Notifier):
	ticket = await SupportService(db, notifier).reply_to_ticket(ticket_id, admin.id, payload.reply)
	return api_success("Reply sent", ticket=TicketResponse.model_validate(ticket).to_wire())
