"""HTTP surface: status codes, auth and error mapping."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from conftest import auth, sent_emails
from ticketdesk.api.deps import http_error
from ticketdesk.core.clock import utcnow
from ticketdesk.db.session import storage_errors
from ticketdesk.services.errors import (
    CapacityExceededError, ConflictError, InvalidArgumentError, NotFoundError, StorageError, StorageTimeoutError,
)

API = "/api/v1"


def _event_body(**kw):
    start = utcnow() + timedelta(days=10)
    body = {
        "title": "AI & Machine Learning Summit",
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(hours=8)).isoformat(),
        "presenter": "Prof. Lisa Chen",
        "totalPlaces": 10,
        "priceCents": 1000,
    }
    body.update(kw)
    return body


def _create_event(client, admin_headers, **kw):
    r = client.post(f"{API}/events", json=_event_body(**kw), headers=admin_headers)
    assert r.status_code == 200, r.text
    return r.json()["event"]


def _book(client, event_id, count=3, **kw):
    body = {"eventId": event_id, "name": "Ada", "email": "ada@example.test", "ticketCount": count}
    body.update(kw)
    return client.post(f"{API}/bookings", json=body)


@pytest.mark.parametrize("exc,status", [
    (InvalidArgumentError("bad"), 400),
    (NotFoundError("ticket", "x"), 404),
    (ConflictError(), 409),
    (CapacityExceededError("e", 3), 409),
    (StorageError(), 503),
    (StorageTimeoutError(), 504),
])
def test_error_mapping(exc, status):
    err = http_error(exc)
    assert isinstance(err, HTTPException)
    assert err.status_code == status
    assert err.detail["error"] == exc.code.value


def test_storage_errors_translation(db):
    with pytest.raises(ConflictError):
        with storage_errors(db):
            raise StaleDataError("stale")
    with pytest.raises(StorageTimeoutError):
        with storage_errors(db):
            raise OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))
    with pytest.raises(StorageError) as info:
        with storage_errors(db):
            raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))
    assert not isinstance(info.value, StorageTimeoutError)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_booking_flow_over_http(client, admin_headers):
    ev = _create_event(client, admin_headers)
    r = _book(client, ev["id"], 3)
    assert r.status_code == 200, r.text
    data = r.json()
    booking_id = data["booking"]["id"]
    assert data["booking"]["totalPriceCents"] == 3000
    codes = data["qrCodes"]
    assert [c["ticketNumber"] for c in codes] == [1, 2, 3]
    assert sent_emails and sent_emails[0][0] == "ada@example.test"

    again = client.post(f"{API}/generate-qr", json={"bookingId": booking_id, "ticketCount": 3})
    assert again.status_code == 200
    assert [c["ticketId"] for c in again.json()["qrCodes"]] == [c["ticketId"] for c in codes]

    t1, t2 = codes[0]["ticketId"], codes[1]["ticketId"]
    st = client.get(f"{API}/check-ticket-status/{t1}").json()
    assert st["found"] and not st["isUsed"]

    ok = client.post(f"{API}/use-ticket", json={"ticketId": t1})
    assert ok.status_code == 200 and ok.json()["success"]
    used = client.get(f"{API}/validate-ticket/{t1}")
    assert used.status_code == 409
    assert used.json()["error"] == "ALREADY_USED"
    assert used.json()["usedAt"] == ok.json()["usedAt"]

    ineligible = client.post(f"{API}/refund-booking", json={"bookingId": booking_id, "ticketId": t1})
    assert ineligible.status_code == 409
    assert ineligible.json()["error"] == "INELIGIBLE_STATE"

    refunded = client.post(f"{API}/refund-booking", json={"bookingId": booking_id, "ticketId": t2})
    assert refunded.status_code == 200
    assert refunded.json()["refundedTickets"] == 1

    event = client.get(f"{API}/events/{ev['id']}").json()["event"]
    assert event["bookedPlaces"] == 2

    bulk = client.post(f"{API}/refund-booking", json={"bookingId": booking_id})
    assert bulk.status_code == 200
    assert bulk.json()["refundedTickets"] == 1
    assert bulk.json()["requestedTickets"] == 2
    assert bulk.json()["bookingDeleted"] is True


def test_status_check_is_read_only_but_validate_consumes(client, admin_headers):
    ev = _create_event(client, admin_headers)
    t1 = _book(client, ev["id"], 1).json()["qrCodes"][0]["ticketId"]
    for _ in range(2):
        assert client.get(f"{API}/check-ticket-status/{t1}").json()["isUsed"] is False
    assert client.get(f"{API}/validate-ticket/{t1}").status_code == 200
    assert client.get(f"{API}/check-ticket-status/{t1}").json()["isUsed"] is True
    assert client.get(f"{API}/validate-ticket/{t1}").status_code == 409


def test_unknown_ticket_responses(client):
    assert client.get(f"{API}/validate-ticket/nope-T1").status_code == 404
    st = client.get(f"{API}/check-ticket-status/nope-T1")
    assert st.status_code == 200 and st.json()["found"] is False
    r = client.post(f"{API}/refund-booking", json={"bookingId": "nope"})
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "NOT_FOUND"
    r = client.post(f"{API}/generate-qr", json={"bookingId": "nope", "ticketCount": 1})
    assert r.status_code == 404


def test_refund_unknown_ticket_is_404(client, admin_headers):
    ev = _create_event(client, admin_headers)
    booking_id = _book(client, ev["id"], 1).json()["booking"]["id"]
    r = client.post(f"{API}/refund-booking", json={"bookingId": booking_id, "ticketId": "nope-T9"})
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_FOUND"


def test_overbooking_is_rejected(client, admin_headers):
    ev = _create_event(client, admin_headers, totalPlaces=3)
    assert _book(client, ev["id"], 2).status_code == 200
    r = _book(client, ev["id"], 2)
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "CAPACITY_EXCEEDED"
    assert client.get(f"{API}/events/{ev['id']}").json()["event"]["bookedPlaces"] == 2


def test_booking_validation(client, admin_headers):
    ev = _create_event(client, admin_headers)
    assert _book(client, ev["id"], 0).status_code == 422
    assert _book(client, "missing", 1).status_code == 404
    assert _book(client, ev["id"], 1, name="  ").status_code == 400


def test_tickets_pdf(client, admin_headers):
    ev = _create_event(client, admin_headers)
    booking_id = _book(client, ev["id"], 2).json()["booking"]["id"]
    r = client.get(f"{API}/bookings/{booking_id}/tickets.pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")
    assert client.get(f"{API}/bookings/missing/tickets.pdf").status_code == 404


def test_user_views_require_owner_or_admin(client, admin_headers):
    ev = _create_event(client, admin_headers)
    _book(client, ev["id"], 2, userId="user-1")
    assert client.get(f"{API}/user-tickets/user-1").status_code == 401
    assert client.get(f"{API}/user-tickets/user-1", headers=auth("user-2", "user")).status_code == 403

    mine = client.get(f"{API}/user-tickets/user-1", headers=auth("user-1", "user"))
    assert mine.status_code == 200
    assert [t["ticketNumber"] for t in mine.json()["tickets"]] == [1, 2]
    bookings = client.get(f"{API}/user-bookings/user-1", headers=admin_headers)
    assert len(bookings.json()["bookings"]) == 1


def test_admin_reporting(client, admin_headers):
    ev = _create_event(client, admin_headers)
    codes = _book(client, ev["id"], 2).json()["qrCodes"]
    client.post(f"{API}/use-ticket", json={"ticketId": codes[0]["ticketId"]})

    assert client.get(f"{API}/statistics").status_code == 401
    assert client.get(f"{API}/statistics", headers=auth("user-1", "user")).status_code == 403

    st = client.get(f"{API}/statistics", headers=admin_headers).json()["statistics"]
    assert st["totalTicketsSold"] == 2
    assert st["totalTicketsUsed"] == 1
    assert st["totalRevenueCents"] == 2000
    assert st["eventStats"][ev["id"]]["bookingCount"] == 1

    used = client.get(f"{API}/used-tickets", headers=admin_headers).json()["usedTickets"]
    assert [u["ticketId"] for u in used] == [codes[0]["ticketId"]]
    assert len(client.get(f"{API}/bookings", headers=admin_headers).json()["bookings"]) == 1
    logs = client.get(f"{API}/email-logs", headers=admin_headers).json()["logs"]
    assert logs[0]["status"] == "sent"


def test_send_booking_email(client, admin_headers):
    ev = _create_event(client, admin_headers)
    booking_id = _book(client, ev["id"], 1).json()["booking"]["id"]
    r = client.post(f"{API}/send-booking-email", json={"bookingId": booking_id})
    assert r.status_code == 200 and r.json()["success"]
    assert len(sent_emails) == 2
    assert client.post(f"{API}/send-booking-email", json={"bookingId": "nope"}).status_code == 404


def test_invalid_token(client):
    r = client.get(f"{API}/statistics", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
