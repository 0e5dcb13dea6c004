from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketdesk.api.deps import CurrentUser, http_error, require_roles
from ticketdesk.db.session import get_db
from ticketdesk.schemas.booking import BookingOut
from ticketdesk.schemas.event import EventOut, RejectIn
from ticketdesk.schemas.statistics import EventStatsOut, StatisticsOut
from ticketdesk.schemas.ticket import UsedTicketOut
from ticketdesk.core.clock import as_utc
from ticketdesk.services import event_service
from ticketdesk.services.booking_service import list_bookings
from ticketdesk.services.email_service import list_email_logs
from ticketdesk.services.errors import DomainError
from ticketdesk.services.statistics_service import Statistics, get_statistics
from ticketdesk.services.ticket_service import list_used_tickets

router = APIRouter(tags=["admin"])


def statistics_out(st: Statistics) -> StatisticsOut:
    return StatisticsOut(
        totalEvents=st.total_events,
        totalBookings=st.total_bookings,
        totalTicketsSold=st.total_tickets_sold,
        totalTicketsUsed=st.total_tickets_used,
        totalRevenueCents=st.total_revenue_cents,
        eventStats={
            eid: EventStatsOut(
                ticketsSold=es.tickets_sold,
                ticketsUsed=es.tickets_used,
                revenueCents=es.revenue_cents,
                bookingCount=es.booking_count,
            )
            for eid, es in st.event_stats.items()
        },
    )


# -------------------------
# EVENT APPROVAL
# -------------------------
@router.get("/admin/pending-events")
def pending_events(db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        events = event_service.list_pending_events(db)
    except DomainError as e:
        raise http_error(e)
    return {"events": [EventOut.from_model(ev) for ev in events]}


@router.get("/admin/events")
def all_events(db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        events = event_service.list_events(db, include_unapproved=True)
    except DomainError as e:
        raise http_error(e)
    return {"events": [EventOut.from_model(ev) for ev in events]}


@router.post("/admin/approve-event/{event_id}")
def approve_event(event_id: str, db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        ev = event_service.approve_event(db, event_id, actor_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"event": EventOut.from_model(ev)}


@router.post("/admin/reject-event/{event_id}")
def reject_event(event_id: str, body: RejectIn, db: Session = Depends(get_db),
                 me: CurrentUser = Depends(require_roles("admin"))):
    try:
        ev = event_service.reject_event(db, event_id, body.reason, actor_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"event": EventOut.from_model(ev)}


# -------------------------
# REPORTING
# -------------------------
@router.get("/bookings")
def bookings(db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        rows = list_bookings(db)
    except DomainError as e:
        raise http_error(e)
    return {"bookings": [BookingOut.from_model(b) for b in rows]}


@router.get("/used-tickets")
def used_tickets(db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        records = list_used_tickets(db)
    except DomainError as e:
        raise http_error(e)
    return {"usedTickets": [
        UsedTicketOut(
            ticketId=r.ticket_id,
            bookingId=r.booking_id,
            eventId=r.event_id,
            ticketNumber=r.seq,
            usedAt=as_utc(r.used_at).isoformat(),
        )
        for r in records
    ]}


@router.get("/statistics")
def statistics(db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        st = get_statistics(db)
    except DomainError as e:
        raise http_error(e)
    return {"statistics": statistics_out(st)}


@router.get("/email-logs")
def email_logs(limit: int = 200, db: Session = Depends(get_db), me: CurrentUser = Depends(require_roles("admin"))):
    try:
        logs = list_email_logs(db, limit=limit)
    except DomainError as e:
        raise http_error(e)
    return {"logs": [{
        "id": log.id,
        "to": log.to_email,
        "subject": log.subject,
        "bookingId": log.booking_id,
        "status": log.status,
        "timestamp": as_utc(log.created_at).isoformat(),
        "sentAt": as_utc(log.sent_at).isoformat() if log.sent_at else None,
    } for log in logs]}
