"""Email queue: immediate send, failure bookkeeping and retries."""

import smtplib

from ticketdesk.models.audit_log import AuditLog
from ticketdesk.models.email_log import EmailLog
from ticketdesk.services import email_service, event_service, ticket_service
from ticketdesk.services.booking_service import create_booking, send_confirmation


def test_confirmation_carries_tickets_pdf(db, make_event, monkeypatch):
    captured = []
    monkeypatch.setattr(email_service, "send_email",
                        lambda to, subject, body, attachments: captured.append((subject, body, attachments)))
    ev = make_event(price_cents=1250)
    b, _ = create_booking(db, ev.id, "Ada", "ada@example.test", 2)
    email_id = send_confirmation(db, b)

    subject, body, attachments = captured[0]
    assert subject == "Ticket confirmation - Conference"
    assert "Total: EUR 25.00" in body
    assert b.id in body
    filename, content, mime = attachments[0]
    assert filename == f"tickets-{b.id}.pdf" and mime == "application/pdf"
    assert content.startswith(b"%PDF")
    assert db.get(EmailLog, email_id).status == "sent"


def test_failed_send_is_retried(db, monkeypatch):
    def _down(*args, **kwargs):
        raise smtplib.SMTPServerDisconnected("relay down")

    monkeypatch.setattr(email_service, "send_email", _down)
    email_id = email_service.queue_email(db, "bo@example.test", "Hi", "Body", booking_id="b1")
    assert db.get(EmailLog, email_id).status == "failed"

    delivered = []
    monkeypatch.setattr(email_service, "send_email", lambda *a: delivered.append(a))
    counts = email_service.process_pending_emails(db, limit=10)
    assert counts == {"processed": 1, "sent": 1, "failed": 0}
    assert delivered[0][0] == "bo@example.test"
    log = db.get(EmailLog, email_id)
    assert log.status == "sent" and log.sent_at is not None
    assert email_service.process_pending_emails(db)["processed"] == 0


def test_admin_actions_are_audited(db, make_event):
    ev = make_event()
    event_service.approve_event(db, ev.id, actor_id="admin-2")
    actions = [a.action for a in db.query(AuditLog).filter(AuditLog.entity_id == ev.id)]
    assert sorted(actions) == ["event.approve", "event.create"]


def test_confirmation_log_outlives_bulk_refund(db, make_event, monkeypatch):
    def _down(*args, **kwargs):
        raise smtplib.SMTPServerDisconnected("relay down")

    monkeypatch.setattr(email_service, "send_email", _down)
    ev = make_event()
    b, _ = create_booking(db, ev.id, "Ada", "ada@example.test", 2)
    booking_id = b.id
    email_id = send_confirmation(db, b)
    ticket_service.refund(db, booking_id)

    resent = []
    monkeypatch.setattr(email_service, "send_email", lambda *a: resent.append(a))
    assert email_service.process_pending_emails(db)["sent"] == 1
    log = db.get(EmailLog, email_id)
    assert log.booking_id == booking_id and log.status == "sent"
    assert resent[0][3] == []  # retries carry the text only
