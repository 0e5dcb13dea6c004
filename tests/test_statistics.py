"""Statistics rollups over events, bookings and used-ticket records."""

from datetime import datetime, timezone

from ticketdesk.models.booking import Booking
from ticketdesk.models.event import Event
from ticketdesk.models.used_ticket import UsedTicketRecord
from ticketdesk.schemas.event import EventIn
from ticketdesk.services import event_service, ticket_service
from ticketdesk.services.booking_service import create_booking
from ticketdesk.services.statistics_service import compute_statistics, get_creator_statistics, get_statistics

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _rows():
    events = [Event(id="e1", title="A"), Event(id="e2", title="B"), Event(id="e3", title="C")]
    bookings = [
        Booking(id="b1", event_id="e1", ticket_count=3, total_price_cents=3000),
        Booking(id="b2", event_id="e1", ticket_count=1, total_price_cents=1000),
        Booking(id="b3", event_id="e2", ticket_count=2, total_price_cents=5000),
    ]
    used = [
        UsedTicketRecord(ticket_id="b1-T1", booking_id="b1", event_id="e1", seq=1, used_at=NOW),
        UsedTicketRecord(ticket_id="b3-T2", booking_id="b3", event_id="e2", seq=2, used_at=NOW),
        # booking removed by a bulk refund; matched through its own event id
        UsedTicketRecord(ticket_id="gone-T1", booking_id="gone", event_id="e2", seq=1, used_at=NOW),
    ]
    return events, bookings, used


def test_per_event_rollup():
    st = compute_statistics(*_rows())
    e1, e2, e3 = st.event_stats["e1"], st.event_stats["e2"], st.event_stats["e3"]
    assert (e1.tickets_sold, e1.tickets_used, e1.revenue_cents, e1.booking_count) == (4, 1, 4000, 2)
    assert (e2.tickets_sold, e2.tickets_used, e2.revenue_cents, e2.booking_count) == (2, 2, 5000, 1)
    assert (e3.tickets_sold, e3.tickets_used, e3.revenue_cents, e3.booking_count) == (0, 0, 0, 0)


def test_totals_match_bookings():
    events, bookings, used = _rows()
    st = compute_statistics(events, bookings, used)
    assert st.total_events == 3
    assert st.total_bookings == 3
    assert st.total_tickets_sold == sum(b.ticket_count for b in bookings)
    assert st.total_revenue_cents == sum(b.total_price_cents for b in bookings)
    assert st.total_tickets_used == 3
    assert sum(es.tickets_sold for es in st.event_stats.values()) == st.total_tickets_sold


def test_projection_does_not_mutate_inputs():
    events, bookings, used = _rows()
    before = [(b.id, b.ticket_count, b.total_price_cents) for b in bookings]
    first = compute_statistics(events, bookings, used)
    second = compute_statistics(events, bookings, used)
    assert [(b.id, b.ticket_count, b.total_price_cents) for b in bookings] == before
    assert first == second


def test_records_for_unknown_events_are_ignored():
    st = compute_statistics([Event(id="e1")], [], [
        UsedTicketRecord(ticket_id="x-T1", booking_id="x", event_id="other", seq=1, used_at=NOW),
    ])
    assert st.total_tickets_used == 0


def test_statistics_follow_lifecycle(db, make_event):
    ev = make_event(price_cents=1500)
    b, issued = create_booking(db, ev.id, "Ada", "ada@example.test", 2)
    ticket_service.redeem(db, issued[0].ticket_id)
    ticket_service.refund(db, b.id, issued[1].ticket_id)

    st = get_statistics(db)
    es = st.event_stats[ev.id]
    assert es.tickets_sold == 1
    assert es.tickets_used == 1
    assert es.revenue_cents == 1500


def test_bulk_refund_leaves_used_tickets_counted(db, make_event):
    ev = make_event(price_cents=1000)
    b, issued = create_booking(db, ev.id, "Ada", "ada@example.test", 3)
    ticket_service.redeem(db, issued[0].ticket_id)
    ticket_service.refund(db, b.id)

    es = get_statistics(db).event_stats[ev.id]
    assert (es.tickets_used, es.tickets_sold, es.revenue_cents, es.booking_count) == (1, 0, 0, 0)


def test_creator_statistics_scope(db, make_event):
    make_event(title="Admin event")
    start = NOW.replace(year=2099)
    mine = event_service.create_event(
        db, EventIn(title="Mine", startDate=start, totalPlaces=5, priceCents=100),
        actor_id="creator-1", creator_id="creator-1",
    )
    other = event_service.create_event(
        db, EventIn(title="Rejected", startDate=start, totalPlaces=5),
        actor_id="creator-1", creator_id="creator-1",
    )
    event_service.approve_event(db, mine.id, actor_id="admin-1")
    event_service.reject_event(db, other.id, "duplicate", actor_id="admin-1")
    create_booking(db, mine.id, "Bo", "bo@example.test", 2)

    st = get_creator_statistics(db, "creator-1")
    assert st.total_events == 2
    assert st.total_tickets_sold == 2
    assert st.total_revenue_cents == 200
    assert (st.pending_events, st.approved_events, st.rejected_events) == (0, 1, 1)
