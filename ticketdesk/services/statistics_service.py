"""Read-side rollups over events, bookings and the used-ticket log.

compute_statistics is a pure projection: it never mutates its inputs and
keeps no counters between calls, so it can be recomputed at any time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy.orm import Session

from ticketdesk.db.session import storage_errors
from ticketdesk.models.booking import Booking
from ticketdesk.models.event import Event
from ticketdesk.models.used_ticket import UsedTicketRecord


@dataclass
class EventStats:
    tickets_sold: int = 0
    tickets_used: int = 0
    revenue_cents: int = 0
    booking_count: int = 0


@dataclass
class Statistics:
    total_events: int = 0
    total_bookings: int = 0
    total_tickets_sold: int = 0
    total_tickets_used: int = 0
    total_revenue_cents: int = 0
    event_stats: dict[str, EventStats] = field(default_factory=dict)


@dataclass
class CreatorStatistics(Statistics):
    pending_events: int = 0
    approved_events: int = 0
    rejected_events: int = 0


def compute_statistics(events: Iterable[Event], bookings: Iterable[Booking],
                       used_records: Iterable[UsedTicketRecord]) -> Statistics:
    """Per-event and global rollups.

    tickets_sold and revenue_cents come from live bookings only; tickets_used
    counts every used-ticket record. A bulk refund deletes the booking but
    keeps its used tickets, so an event can report more tickets used than
    sold (book 3, redeem 1, refund the rest: used 1, sold 0, revenue 0).
    """
    stats = Statistics()
    per_event = {ev.id: EventStats() for ev in events}
    stats.total_events = len(per_event)

    booking_event: dict[str, str] = {}
    for b in bookings:
        booking_event[b.id] = b.event_id
        es = per_event.get(b.event_id)
        if es is None:
            continue
        es.tickets_sold += b.ticket_count
        es.revenue_cents += b.total_price_cents
        es.booking_count += 1

    for rec in used_records:
        # Join through the booking; bookings removed by a bulk refund fall back to the record's event
        event_id = booking_event.get(rec.booking_id) or rec.event_id
        es = per_event.get(event_id)
        if es is not None:
            es.tickets_used += 1

    for es in per_event.values():
        stats.total_bookings += es.booking_count
        stats.total_tickets_sold += es.tickets_sold
        stats.total_tickets_used += es.tickets_used
        stats.total_revenue_cents += es.revenue_cents
    stats.event_stats = per_event
    return stats


def get_statistics(db: Session) -> Statistics:
    with storage_errors(db):
        events = db.query(Event).all()
        bookings = db.query(Booking).all()
        used = db.query(UsedTicketRecord).all()
    return compute_statistics(events, bookings, used)


def get_creator_statistics(db: Session, creator_id: str) -> CreatorStatistics:
    with storage_errors(db):
        events = db.query(Event).filter(Event.creator_id == creator_id).all()
        event_ids = [ev.id for ev in events]
        bookings = db.query(Booking).filter(Booking.event_id.in_(event_ids)).all() if event_ids else []
        booking_ids = [b.id for b in bookings]
        used = []
        if event_ids:
            used = (
                db.query(UsedTicketRecord)
                .filter(UsedTicketRecord.booking_id.in_(booking_ids) | UsedTicketRecord.event_id.in_(event_ids))
                .all()
            )
    base = compute_statistics(events, bookings, used)
    return CreatorStatistics(
        total_events=base.total_events,
        total_bookings=base.total_bookings,
        total_tickets_sold=base.total_tickets_sold,
        total_tickets_used=base.total_tickets_used,
        total_revenue_cents=base.total_revenue_cents,
        event_stats=base.event_stats,
        pending_events=sum(1 for ev in events if ev.status == "pending"),
        approved_events=sum(1 for ev in events if ev.status == "approved"),
        rejected_events=sum(1 for ev in events if ev.status == "rejected"),
    )
