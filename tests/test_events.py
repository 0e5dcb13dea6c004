"""Event records: approval workflow, edits and cascading delete."""

from datetime import timedelta

import pytest

from conftest import auth
from ticketdesk.core.clock import utcnow
from ticketdesk.models.booking import Booking
from ticketdesk.models.event import Event
from ticketdesk.models.ticket import Ticket
from ticketdesk.models.used_ticket import UsedTicketRecord
from ticketdesk.schemas.event import EventIn, EventPatch
from ticketdesk.services import event_service, ticket_service
from ticketdesk.services.booking_service import create_booking
from ticketdesk.services.errors import InvalidArgumentError, NotFoundError

API = "/api/v1"


def _body(**kw):
    start = utcnow() + timedelta(days=3)
    body = {"title": "Digital Marketing Workshop", "startDate": start.isoformat(), "totalPlaces": 50, "priceCents": 8900}
    body.update(kw)
    return body


class TestCreatorApproval:
    def test_creator_event_hidden_until_approved(self, client, admin_headers, creator_headers):
        r = client.post(f"{API}/creator-events", json=_body(), headers=creator_headers)
        assert r.status_code == 200
        ev = r.json()["event"]
        assert ev["status"] == "pending"
        assert ev["creatorId"] == "creator-1"

        assert client.get(f"{API}/events").json()["events"] == []
        assert client.get(f"{API}/events/{ev['id']}").status_code == 404
        pending = client.get(f"{API}/admin/pending-events", headers=admin_headers).json()["events"]
        assert [e["id"] for e in pending] == [ev["id"]]

        r = client.post(f"{API}/admin/approve-event/{ev['id']}", headers=admin_headers)
        assert r.json()["event"]["status"] == "approved"
        assert [e["id"] for e in client.get(f"{API}/events").json()["events"]] == [ev["id"]]

    def test_rejection_keeps_reason(self, client, admin_headers, creator_headers):
        ev = client.post(f"{API}/creator-events", json=_body(), headers=creator_headers).json()["event"]
        r = client.post(f"{API}/admin/reject-event/{ev['id']}", json={"reason": "Duplicate listing"},
                        headers=admin_headers)
        assert r.json()["event"]["status"] == "rejected"
        assert r.json()["event"]["rejectionReason"] == "Duplicate listing"
        mine = client.get(f"{API}/creator-events/creator-1", headers=creator_headers).json()["events"]
        assert mine[0]["status"] == "rejected"

    def test_booking_a_pending_event_is_refused(self, client, creator_headers):
        ev = client.post(f"{API}/creator-events", json=_body(), headers=creator_headers).json()["event"]
        r = client.post(f"{API}/bookings", json={"eventId": ev["id"], "name": "A", "email": "a@example.test"})
        assert r.status_code == 400

    def test_roles_are_enforced(self, client, creator_headers):
        assert client.post(f"{API}/events", json=_body(), headers=creator_headers).status_code == 403
        assert client.post(f"{API}/creator-events", json=_body(), headers=auth("u", "user")).status_code == 403
        other = client.get(f"{API}/creator-events/creator-2", headers=creator_headers)
        assert other.status_code == 403

    def test_creator_statistics(self, client, admin_headers, creator_headers):
        ev = client.post(f"{API}/creator-events", json=_body(), headers=creator_headers).json()["event"]
        client.post(f"{API}/admin/approve-event/{ev['id']}", headers=admin_headers)
        client.post(f"{API}/bookings", json={"eventId": ev["id"], "name": "A", "email": "a@example.test",
                                             "ticketCount": 2})
        st = client.get(f"{API}/creator-statistics/creator-1", headers=creator_headers).json()["statistics"]
        assert st["approvedEvents"] == 1
        assert st["totalTicketsSold"] == 2
        assert st["totalRevenueCents"] == 17800


class TestEventRecords:
    def test_validation(self, db):
        start = utcnow() + timedelta(days=1)
        with pytest.raises(InvalidArgumentError):
            event_service.create_event(db, EventIn(title=" ", startDate=start, totalPlaces=5), actor_id="a")
        with pytest.raises(InvalidArgumentError):
            event_service.create_event(db, EventIn(title="T", startDate=start, totalPlaces=0), actor_id="a")
        with pytest.raises(InvalidArgumentError):
            event_service.create_event(
                db, EventIn(title="T", startDate=start, endDate=start - timedelta(hours=1), totalPlaces=5),
                actor_id="a",
            )

    def test_unknown_event(self, db):
        with pytest.raises(NotFoundError):
            event_service.get_event(db, "missing")
        with pytest.raises(InvalidArgumentError):
            event_service.get_event(db, "")

    def test_capacity_cannot_drop_below_booked(self, db, make_event):
        ev = make_event(total_places=5)
        create_booking(db, ev.id, "A", "a@example.test", 4)
        with pytest.raises(InvalidArgumentError):
            event_service.update_event(db, ev.id, EventPatch(totalPlaces=3), actor_id="admin-1")
        updated = event_service.update_event(db, ev.id, EventPatch(totalPlaces=8, title="Renamed"), actor_id="admin-1")
        assert updated.total_places == 8 and updated.title == "Renamed"

    def test_is_past(self, make_event):
        ev = make_event()
        assert not ev.is_past
        past = Event(id="p", start_at=utcnow() - timedelta(days=2), end_at=utcnow() - timedelta(days=1))
        assert past.is_past
        running = Event(id="r", start_at=utcnow() - timedelta(hours=1), end_at=utcnow() + timedelta(hours=1))
        assert not running.is_past

    def test_past_event_cannot_be_booked(self, db, make_event):
        ev = make_event()
        ev.start_at = utcnow() - timedelta(days=2)
        ev.end_at = utcnow() - timedelta(days=1)
        db.commit()
        with pytest.raises(InvalidArgumentError):
            create_booking(db, ev.id, "A", "a@example.test", 1)

    def test_delete_cascades(self, db, make_event, client, admin_headers):
        ev = make_event()
        other = make_event(title="Other")
        b, issued = create_booking(db, ev.id, "A", "a@example.test", 2)
        keep, _ = create_booking(db, other.id, "B", "b@example.test", 1)
        ticket_service.redeem(db, issued[0].ticket_id)
        ev_id, b_id, keep_id = ev.id, b.id, keep.id

        r = client.delete(f"{API}/events/{ev_id}", headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["deletedBookings"] == 1

        db.expire_all()
        assert db.get(Event, ev_id) is None
        assert db.get(Booking, b_id) is None
        assert db.query(Ticket).filter(Ticket.booking_id == b_id).count() == 0
        assert db.query(UsedTicketRecord).count() == 0
        assert db.get(Booking, keep_id) is not None

    def test_delete_unknown_event(self, client, admin_headers):
        assert client.delete(f"{API}/events/missing", headers=admin_headers).status_code == 404
