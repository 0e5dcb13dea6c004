"""Outgoing mail: a log row per message, immediate delivery attempt, beat-driven retries.

Delivery goes through SendGrid when SENDGRID_API_KEY is set, else plain SMTP
(MailHog works for local runs). Attachments are only sent on the first
attempt; retries carry the stored plain-text body.
"""

import base64
import logging
import smtplib
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage

import requests
from sqlalchemy.orm import Session

from ticketdesk.core.config import settings
from ticketdesk.db.session import storage_errors
from ticketdesk.models.email_log import EmailLog

logger = logging.getLogger(__name__)

Attachment = tuple[str, bytes, str]  # (filename, content, mime type)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
DELIVERY_ERRORS = (smtplib.SMTPException, OSError, requests.RequestException, RuntimeError)


def _money(cents: int) -> str:
    return f"EUR {cents // 100}.{cents % 100:02d}"


def booking_confirmation_text(*, name: str, event_title: str, event_start: str, ticket_count: int,
                              total_price_cents: int, booking_id: str) -> tuple[str, str]:
    """Return (subject, plain-text body) for a booking confirmation."""
    lines = [
        f"Dear {name},",
        "",
        "Thank you for your booking.",
        "",
        f"Event: {event_title}",
        f"Date: {event_start}",
        f"Tickets: {ticket_count}",
        f"Total: {_money(total_price_cents)}",
        f"Booking ID: {booking_id}",
        "",
        "Your tickets are attached and also listed under My Tickets.",
        "Each QR code admits one person once.",
    ]
    return f"Ticket confirmation - {event_title}", "\n".join(lines) + "\n"


def _deliver(log: EmailLog, attachments: list[Attachment]) -> bool:
    """Try to send one logged message and record the outcome on the row. Caller commits."""
    try:
        send_email(log.to_email, log.subject, log.body or "", attachments)
    except DELIVERY_ERRORS as e:
        logger.warning("email %s to %s not delivered: %s", log.id, log.to_email, e)
        log.status = "failed"
        return False
    log.status = "sent"
    log.sent_at = datetime.now(timezone.utc)
    return True


def queue_email(db: Session, to_email: str, subject: str, body: str, booking_id: str = "",
                attachments: list[Attachment] | None = None) -> str:
    """Store the message, then attempt delivery. Returns the log id.

    The row is committed before sending so a crash mid-send still leaves it
    for process_pending_emails.
    """
    log = EmailLog(id=str(uuid.uuid4()), to_email=to_email, subject=subject, body=body,
                   status="queued", booking_id=booking_id)
    with storage_errors(db):
        db.add(log)
        db.commit()

    _deliver(log, attachments or [])
    with storage_errors(db):
        db.commit()
    return log.id


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Retry up to `limit` queued or failed messages, oldest first. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_(["queued", "failed"]), EmailLog.body.isnot(None), EmailLog.body != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent = sum(1 for log in pending if _deliver(log, []))
    if pending:
        db.commit()
        logger.info("email retry pass: %d sent, %d still failing", sent, len(pending) - sent)
    return {"processed": len(pending), "sent": sent, "failed": len(pending) - sent}


def list_email_logs(db: Session, limit: int = 200) -> list[EmailLog]:
    with storage_errors(db):
        return db.query(EmailLog).order_by(EmailLog.created_at.desc()).limit(min(limit, 500)).all()


# -------------------------
# TRANSPORTS
# -------------------------
def send_email(to_email: str, subject: str, body: str, attachments: list[Attachment]) -> None:
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body, attachments)
    else:
        _send_via_smtp(to_email, subject, body, attachments)


def _send_via_smtp(to_email: str, subject: str, body: str, attachments: list[Attachment]) -> None:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    for filename, content, mime in attachments:
        maintype, _, subtype = mime.partition("/")
        msg.add_attachment(content, maintype=maintype, subtype=subtype or "octet-stream", filename=filename)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str, attachments: list[Attachment]) -> None:
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }
    if attachments:
        payload["attachments"] = [
            {"content": base64.b64encode(content).decode("ascii"), "type": mime,
             "filename": filename, "disposition": "attachment"}
            for filename, content, mime in attachments
        ]

    r = requests.post(SENDGRID_URL, json=payload,
                      headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"}, timeout=20)
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")
