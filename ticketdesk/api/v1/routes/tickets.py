from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ticketdesk.api.deps import http_error
from ticketdesk.db.session import get_db
from ticketdesk.schemas.ticket import IssueRequest, IssuedTicketOut, RedeemOut, TicketStatusOut, UseTicketIn
from ticketdesk.services import ticket_service
from ticketdesk.services.errors import DomainError
from ticketdesk.services.ticket_service import RedeemOutcome

router = APIRouter(tags=["tickets"])


def _redeem_response(db: Session, ticket_id: str):
    try:
        res = ticket_service.redeem(db, ticket_id)
    except DomainError as e:
        raise http_error(e)

    used_at = res.used_at.isoformat() if res.used_at else None
    if res.ok:
        return RedeemOut(success=True, ticketId=res.ticket_id, usedAt=used_at, message="Ticket accepted")
    if res.outcome is RedeemOutcome.ALREADY_USED:
        out = RedeemOut(success=False, ticketId=res.ticket_id, usedAt=used_at, error=res.outcome.value,
                        message="Ticket has already been used")
        return JSONResponse(status_code=409, content=out.model_dump())
    out = RedeemOut(success=False, ticketId=res.ticket_id, error=res.outcome.value, message="Ticket not found")
    return JSONResponse(status_code=404, content=out.model_dump())


@router.post("/generate-qr")
def generate_qr(body: IssueRequest, db: Session = Depends(get_db)):
    """Tickets of a booking with their QR images. Safe to call repeatedly."""
    try:
        issued = ticket_service.issue_tickets(db, body.bookingId, body.ticketCount)
    except DomainError as e:
        raise http_error(e)
    return {"success": True, "qrCodes": [IssuedTicketOut.from_issued(it) for it in issued]}


@router.get("/check-ticket-status/{ticket_id}", response_model=TicketStatusOut)
def check_ticket_status(ticket_id: str, db: Session = Depends(get_db)):
    try:
        st = ticket_service.check_status(db, ticket_id)
    except DomainError as e:
        raise http_error(e)
    return TicketStatusOut(
        success=True,
        found=st.found,
        isUsed=st.is_used,
        usedAt=st.used_at.isoformat() if st.used_at else None,
        bookingId=st.booking_id,
        ticketNumber=st.seq,
    )


@router.get("/validate-ticket/{ticket_id}")
def validate_ticket(ticket_id: str, db: Session = Depends(get_db)):
    """Scanner URL encoded in the QR code. A GET consumes the ticket.

    Scanner apps and link previewers must not prefetch this URL; use
    /check-ticket-status for a read-only lookup.
    """
    return _redeem_response(db, ticket_id)


@router.post("/use-ticket")
def use_ticket(body: UseTicketIn, db: Session = Depends(get_db)):
    return _redeem_response(db, body.ticketId)
