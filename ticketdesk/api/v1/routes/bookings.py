import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ticketdesk.api.deps import CurrentUser, ensure_self_or_admin, get_current_user, http_error
from ticketdesk.core.clock import as_utc
from ticketdesk.db.session import get_db
from ticketdesk.models.email_log import EmailLog
from ticketdesk.schemas.booking import BookingCreate, BookingCreatedOut, BookingEmailIn, BookingOut
from ticketdesk.schemas.ticket import IssuedTicketOut, RefundIn, RefundOut, UserTicketOut
from ticketdesk.services import booking_service
from ticketdesk.services.errors import DomainError
from ticketdesk.services.ticket_service import RefundOutcome, refund

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


@router.post("/bookings", response_model=BookingCreatedOut)
def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    try:
        booking, issued = booking_service.create_booking(
            db, body.eventId, body.name, body.email, body.ticketCount, user_id=body.userId,
        )
    except DomainError as e:
        raise http_error(e)
    try:
        booking_service.send_confirmation(db, booking)
    except DomainError as e:
        # The booking is committed; the queue worker can still resend
        logger.error("confirmation for booking %s not queued: %s", booking.id, e)
    return BookingCreatedOut(
        booking=BookingOut.from_model(booking),
        qrCodes=[IssuedTicketOut.from_issued(it) for it in issued],
    )


@router.get("/bookings/{booking_id}/tickets.pdf")
def download_tickets(booking_id: str, db: Session = Depends(get_db)):
    try:
        b = booking_service.get_booking(db, booking_id)
        pdf_bytes = booking_service.booking_pdf_bytes(db, b)
    except DomainError as e:
        raise http_error(e)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{b.id}.pdf"'},
    )


@router.get("/user-bookings/{user_id}")
def user_bookings(user_id: str, db: Session = Depends(get_db), me: CurrentUser = Depends(get_current_user)):
    ensure_self_or_admin(me, user_id)
    try:
        rows = booking_service.list_user_bookings(db, user_id)
    except DomainError as e:
        raise http_error(e)
    return {"bookings": [BookingOut.from_model(b) for b in rows]}


@router.get("/user-tickets/{user_id}")
def user_tickets(user_id: str, db: Session = Depends(get_db), me: CurrentUser = Depends(get_current_user)):
    ensure_self_or_admin(me, user_id)
    try:
        rows = booking_service.list_user_tickets(db, user_id)
    except DomainError as e:
        raise http_error(e)
    return {"tickets": [
        UserTicketOut(
            ticketId=t.id,
            bookingId=b.id,
            eventId=b.event_id,
            ticketNumber=t.seq,
            totalTickets=t.total_tickets,
            isUsed=bool(t.is_used),
            usedAt=as_utc(t.used_at).isoformat() if t.used_at else None,
            validationUrl=t.validation_url,
        )
        for t, b in rows
    ]}


@router.post("/refund-booking")
def refund_booking(body: RefundIn, db: Session = Depends(get_db)):
    try:
        res = refund(db, body.bookingId, body.ticketId)
    except DomainError as e:
        raise http_error(e)

    out = RefundOut(
        success=res.outcome is RefundOutcome.REFUNDED,
        refundedTickets=res.refunded_count,
        requestedTickets=res.requested_count,
        bookingDeleted=res.booking_deleted,
    )
    if res.outcome is RefundOutcome.INELIGIBLE:
        out.error = res.outcome.value
        out.message = "Ticket has already been used and cannot be refunded"
        return JSONResponse(status_code=409, content=out.model_dump())
    if res.outcome is RefundOutcome.NOT_FOUND:
        out.error = res.outcome.value
        out.message = "Ticket not found"
        return JSONResponse(status_code=404, content=out.model_dump())
    if res.partial:
        out.message = f"Refunded {res.refunded_count} of {res.requested_count} tickets; used tickets were kept"
    return out


@router.post("/send-booking-email")
def send_booking_email(body: BookingEmailIn, db: Session = Depends(get_db)):
    try:
        b = booking_service.get_booking(db, body.bookingId)
        email_id = booking_service.send_confirmation(db, b)
    except DomainError as e:
        raise http_error(e)
    log = db.get(EmailLog, email_id)
    logger.info("confirmation for booking %s: %s", b.id, log.status)
    return {"success": log.status == "sent", "emailId": email_id, "status": log.status}
