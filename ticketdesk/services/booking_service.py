import logging
import uuid

from sqlalchemy.orm import Session

from ticketdesk.core.clock import as_utc, utcnow
from ticketdesk.db.session import storage_errors
from ticketdesk.models.booking import Booking
from ticketdesk.models.event import Event
from ticketdesk.models.ticket import Ticket
from ticketdesk.services.email_service import booking_confirmation_text, queue_email
from ticketdesk.services.errors import DomainError, InvalidArgumentError, NotFoundError
from ticketdesk.services.event_service import get_event, reserve_places
from ticketdesk.services.ticket_pdf import render_booking_pdf_bytes
from ticketdesk.services.ticket_service import IssuedTicket, booking_tickets, mint_tickets, to_issued

logger = logging.getLogger(__name__)


def create_booking(db: Session, event_id: str, name: str, email: str, ticket_count: int,
                   user_id: str | None = None) -> tuple[Booking, list[IssuedTicket]]:
    """Reserve seats, store the booking and mint its tickets in one transaction."""
    if ticket_count is None or ticket_count < 1:
        raise InvalidArgumentError("ticketCount must be >= 1")
    if not (name or "").strip() or not (email or "").strip():
        raise InvalidArgumentError("name and email are required")

    ev = get_event(db, event_id)
    if ev.status != "approved":
        raise InvalidArgumentError("event is not open for booking")
    if ev.is_past:
        raise InvalidArgumentError("event has already taken place")

    booking = Booking(
        id=str(uuid.uuid4()),
        event_id=ev.id,
        name=name.strip(),
        email=email.strip().lower(),
        user_id=user_id or None,
        ticket_count=ticket_count,
        total_price_cents=ev.price_cents * ticket_count,
        booking_date=utcnow(),
    )
    try:
        with storage_errors(db):
            reserve_places(db, ev.id, ticket_count)
            db.add(booking)
            tickets = mint_tickets(db, booking)
            db.commit()
    except DomainError:
        db.rollback()
        raise
    logger.info("booking %s created for event %s (%d tickets)", booking.id, ev.id, ticket_count)
    return booking, to_issued(tickets)


def booking_pdf_bytes(db: Session, booking: Booking) -> bytes:
    """Printable tickets for the live tickets of `booking`."""
    with storage_errors(db):
        ev = db.get(Event, booking.event_id)
        tickets = booking_tickets(db, booking.id)
    return render_booking_pdf_bytes(
        booking_id=booking.id,
        holder_name=booking.name,
        event_title=ev.title if ev else "",
        event_start=as_utc(ev.start_at).strftime("%Y-%m-%d %H:%M UTC") if ev else "",
        presenter=ev.presenter if ev else "",
        tickets=[{
            "ticket_id": t.id,
            "seq": t.seq,
            "total": t.total_tickets,
            "validation_url": t.validation_url,
            "is_used": bool(t.is_used),
        } for t in tickets],
    )


def send_confirmation(db: Session, booking: Booking) -> str:
    """Queue the confirmation mail with the tickets PDF attached. Returns the email log id."""
    with storage_errors(db):
        ev = db.get(Event, booking.event_id)
    subject, body = booking_confirmation_text(
        name=booking.name,
        event_title=ev.title if ev else "",
        event_start=as_utc(ev.start_at).strftime("%Y-%m-%d %H:%M UTC") if ev else "",
        ticket_count=booking.ticket_count,
        total_price_cents=booking.total_price_cents,
        booking_id=booking.id,
    )
    attachments = [(f"tickets-{booking.id}.pdf", booking_pdf_bytes(db, booking), "application/pdf")]
    return queue_email(db, booking.email, subject, body, booking_id=booking.id, attachments=attachments)


def get_booking(db: Session, booking_id: str) -> Booking:
    if not (booking_id or "").strip():
        raise InvalidArgumentError("booking id is required")
    with storage_errors(db):
        b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("booking", booking_id)
    return b


def list_bookings(db: Session) -> list[Booking]:
    with storage_errors(db):
        return db.query(Booking).order_by(Booking.booking_date.desc()).all()


def list_user_bookings(db: Session, user_id: str) -> list[Booking]:
    with storage_errors(db):
        return db.query(Booking).filter(Booking.user_id == user_id).order_by(Booking.booking_date.desc()).all()


def list_user_tickets(db: Session, user_id: str) -> list[tuple[Ticket, Booking]]:
    """Live tickets of the user's bookings, read straight from the ticket rows."""
    with storage_errors(db):
        return (
            db.query(Ticket, Booking)
            .join(Booking, Booking.id == Ticket.booking_id)
            .filter(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), Ticket.seq.asc())
            .all()
        )
