import logging
import uuid

from sqlalchemy import case, or_, update
from sqlalchemy.orm import Session

from ticketdesk.core.clock import as_utc
from ticketdesk.db.session import storage_errors
from ticketdesk.models.booking import Booking
from ticketdesk.models.event import Event
from ticketdesk.models.ticket import Ticket
from ticketdesk.models.used_ticket import UsedTicketRecord
from ticketdesk.schemas.event import EventIn, EventPatch
from ticketdesk.services.audit_service import log_audit
from ticketdesk.services.errors import CapacityExceededError, InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)

EVENT_STATUSES = ("pending", "approved", "rejected")


def _validate(title: str, total_places: int, price_cents: int, start_at, end_at) -> None:
    if not (title or "").strip():
        raise InvalidArgumentError("title is required")
    if total_places < 1:
        raise InvalidArgumentError("totalPlaces must be >= 1")
    if price_cents < 0:
        raise InvalidArgumentError("priceCents must be >= 0")
    if end_at is not None and as_utc(end_at) < as_utc(start_at):
        raise InvalidArgumentError("endDate must not be before startDate")


def get_event(db: Session, event_id: str) -> Event:
    if not (event_id or "").strip():
        raise InvalidArgumentError("event id is required")
    with storage_errors(db):
        ev = db.get(Event, event_id)
    if not ev:
        raise NotFoundError("event", event_id)
    return ev


def list_events(db: Session, include_unapproved: bool = False) -> list[Event]:
    with storage_errors(db):
        q = db.query(Event)
        if not include_unapproved:
            q = q.filter(Event.status == "approved")
        return q.order_by(Event.start_at.asc()).all()


def list_creator_events(db: Session, creator_id: str) -> list[Event]:
    with storage_errors(db):
        return db.query(Event).filter(Event.creator_id == creator_id).order_by(Event.created_at.desc()).all()


def list_pending_events(db: Session) -> list[Event]:
    with storage_errors(db):
        return db.query(Event).filter(Event.status == "pending").order_by(Event.created_at.asc()).all()


def create_event(db: Session, body: EventIn, actor_id: str, creator_id: str | None = None) -> Event:
    """Admins publish directly; events submitted by a creator wait for approval."""
    _validate(body.title, body.totalPlaces, body.priceCents, body.startDate, body.endDate)
    ev = Event(
        id=str(uuid.uuid4()),
        title=body.title.strip(),
        description=body.description,
        start_at=as_utc(body.startDate),
        end_at=as_utc(body.endDate),
        presenter=body.presenter,
        total_places=body.totalPlaces,
        booked_places=0,
        price_cents=body.priceCents,
        image=body.image,
        creator_id=creator_id,
        status="pending" if creator_id else "approved",
    )
    with storage_errors(db):
        db.add(ev)
        log_audit(db, actor_id, "event.create", "event", ev.id, {"status": ev.status, "creator": creator_id})
        db.commit()
    logger.info("event %s created by %s (status=%s)", ev.id, actor_id, ev.status)
    return ev


def update_event(db: Session, event_id: str, body: EventPatch, actor_id: str) -> Event:
    ev = get_event(db, event_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    title = changes.get("title", ev.title)
    total = changes.get("totalPlaces", ev.total_places)
    price = changes.get("priceCents", ev.price_cents)
    start_at = changes.get("startDate", ev.start_at)
    end_at = changes.get("endDate", ev.end_at)
    _validate(title, total, price, start_at, end_at)
    if total < ev.booked_places:
        raise InvalidArgumentError(f"totalPlaces cannot drop below the {ev.booked_places} places already booked")

    ev.title = title.strip()
    ev.total_places = total
    ev.price_cents = price
    ev.start_at = as_utc(start_at)
    ev.end_at = as_utc(end_at)
    if "description" in changes:
        ev.description = changes["description"]
    if "presenter" in changes:
        ev.presenter = changes["presenter"]
    if "image" in changes:
        ev.image = changes["image"]
    with storage_errors(db):
        log_audit(db, actor_id, "event.update", "event", ev.id, body.model_dump(mode="json", exclude_unset=True, exclude_none=True))
        db.commit()
    return ev


def delete_event(db: Session, event_id: str, actor_id: str) -> int:
    """Delete an event with its bookings, tickets and used-ticket records. Returns bookings removed."""
    ev = get_event(db, event_id)
    with storage_errors(db):
        booking_ids = [bid for (bid,) in db.query(Booking.id).filter(Booking.event_id == event_id).all()]
        used_ids = [tid for (tid,) in db.query(UsedTicketRecord.ticket_id).filter(UsedTicketRecord.event_id == event_id).all()]
        db.query(Ticket).filter(or_(Ticket.booking_id.in_(booking_ids), Ticket.id.in_(used_ids))).delete(synchronize_session=False)
        db.query(UsedTicketRecord).filter(UsedTicketRecord.event_id == event_id).delete(synchronize_session=False)
        db.query(Booking).filter(Booking.event_id == event_id).delete(synchronize_session=False)
        db.delete(ev)
        log_audit(db, actor_id, "event.delete", "event", event_id, {"bookings": len(booking_ids)})
        db.commit()
    logger.info("event %s deleted with %d bookings", event_id, len(booking_ids))
    return len(booking_ids)


def approve_event(db: Session, event_id: str, actor_id: str) -> Event:
    ev = get_event(db, event_id)
    ev.status = "approved"
    ev.rejection_reason = None
    with storage_errors(db):
        log_audit(db, actor_id, "event.approve", "event", ev.id)
        db.commit()
    logger.info("event %s approved by %s", ev.id, actor_id)
    return ev


def reject_event(db: Session, event_id: str, reason: str, actor_id: str) -> Event:
    ev = get_event(db, event_id)
    ev.status = "rejected"
    ev.rejection_reason = (reason or "").strip() or None
    with storage_errors(db):
        log_audit(db, actor_id, "event.reject", "event", ev.id, {"reason": ev.rejection_reason})
        db.commit()
    logger.info("event %s rejected by %s", ev.id, actor_id)
    return ev


# -------------------------
# SEAT COUNTER
# -------------------------
def reserve_places(db: Session, event_id: str, n: int) -> None:
    """Atomically add `n` booked places unless that would exceed capacity. Does not commit."""
    res = db.execute(
        update(Event)
        .where(Event.id == event_id, Event.booked_places + n <= Event.total_places)
        .values(booked_places=Event.booked_places + n, version=Event.version + 1)
        .execution_options(synchronize_session="fetch")
    )
    if res.rowcount == 0:
        if db.get(Event, event_id) is None:
            raise NotFoundError("event", event_id)
        raise CapacityExceededError(event_id, n)


def release_places(db: Session, event_id: str, n: int) -> None:
    """Atomically subtract `n` booked places, floored at 0. Does not commit."""
    if n <= 0:
        return
    db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(
            booked_places=case((Event.booked_places >= n, Event.booked_places - n), else_=0),
            version=Event.version + 1,
        )
        .execution_options(synchronize_session="fetch")
    )
