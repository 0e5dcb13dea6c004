"""Ticket lifecycle: issue, check, redeem, refund.

A ticket is born unused, becomes used exactly once, and is deleted on
refund (only while unused). Every transition is a versioned write: the
UPDATE/DELETE carries the version that was read, so a concurrent redeem
or refund on the same ticket loses with ConflictError instead of silently
overwriting.

Redeem and refund report the expected "no" answers (already used, not
found, ineligible) as result values. Only real failures raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ticketdesk.core.clock import as_utc, utcnow
from ticketdesk.db.session import storage_errors
from ticketdesk.models.booking import Booking
from ticketdesk.models.ticket import Ticket, make_ticket_id
from ticketdesk.models.used_ticket import UsedTicketRecord
from ticketdesk.services.errors import InvalidArgumentError, NotFoundError
from ticketdesk.services.event_service import release_places
from ticketdesk.services.qr_service import build_validation_url, qr_data_url

logger = logging.getLogger(__name__)


class RedeemOutcome(Enum):
    REDEEMED = "REDEEMED"
    ALREADY_USED = "ALREADY_USED"
    NOT_FOUND = "NOT_FOUND"


class RefundOutcome(Enum):
    REFUNDED = "REFUNDED"
    INELIGIBLE = "INELIGIBLE_STATE"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class IssuedTicket:
    ticket_id: str
    seq: int
    image: str  # data:image/png;base64 QR of validation_url
    validation_url: str
    is_used: bool = False


@dataclass(frozen=True)
class TicketStatus:
    ticket_id: str
    found: bool
    is_used: bool = False
    used_at: datetime | None = None
    booking_id: str | None = None
    seq: int | None = None


@dataclass(frozen=True)
class RedeemResult:
    ticket_id: str
    outcome: RedeemOutcome
    used_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is RedeemOutcome.REDEEMED


@dataclass(frozen=True)
class RefundResult:
    outcome: RefundOutcome
    refunded_count: int
    requested_count: int
    booking_deleted: bool = False

    @property
    def partial(self) -> bool:
        return self.refunded_count < self.requested_count


def prorate_cents(total_cents: int, old_count: int, new_count: int) -> int:
    """Share of `total_cents` left for `new_count` of `old_count` seats, in whole cents."""
    if old_count <= 0:
        return 0
    return total_cents * new_count // old_count


def _require_id(value: str | None, what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidArgumentError(f"{what} is required")
    return value


# -------------------------
# ISSUANCE
# -------------------------
def mint_tickets(db: Session, booking: Booking) -> list[Ticket]:
    """Add one unused ticket per seat of `booking` to the session. Caller commits."""
    now = utcnow()
    tickets = []
    for seq in range(1, booking.ticket_count + 1):
        tid = make_ticket_id(booking.id, seq)
        t = Ticket(
            id=tid,
            booking_id=booking.id,
            seq=seq,
            total_tickets=booking.ticket_count,
            is_used=False,
            validation_url=build_validation_url(tid),
            created_at=now,
        )
        db.add(t)
        tickets.append(t)
    booking.tickets_issued_at = now
    return tickets


def booking_tickets(db: Session, booking_id: str) -> list[Ticket]:
    return db.query(Ticket).filter(Ticket.booking_id == booking_id).order_by(Ticket.seq.asc()).all()


def to_issued(tickets: list[Ticket]) -> list[IssuedTicket]:
    return [
        IssuedTicket(
            ticket_id=t.id,
            seq=t.seq,
            image=qr_data_url(t.validation_url),
            validation_url=t.validation_url,
            is_used=bool(t.is_used),
        )
        for t in tickets
    ]


def issue_tickets(db: Session, booking_id: str, count: int) -> list[IssuedTicket]:
    """Return the booking's tickets, minting them on the first call only."""
    booking_id = _require_id(booking_id, "bookingId")
    if count is None or count < 1:
        raise InvalidArgumentError("ticketCount must be >= 1")
    with storage_errors(db):
        booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("booking", booking_id)
    if count != booking.ticket_count:
        raise InvalidArgumentError(f"booking holds {booking.ticket_count} tickets, not {count}")

    with storage_errors(db):
        if booking.tickets_issued_at is None:
            try:
                mint_tickets(db, booking)
                db.commit()
                logger.info("issued %d tickets for booking %s", count, booking_id)
            except (IntegrityError, StaleDataError):
                # Lost the race to a concurrent issuance; its tickets are canonical
                db.rollback()
                logger.info("tickets for booking %s already minted concurrently", booking_id)
        tickets = booking_tickets(db, booking_id)
    return to_issued(tickets)


# -------------------------
# STATUS / REDEMPTION
# -------------------------
def check_status(db: Session, ticket_id: str) -> TicketStatus:
    """Read-only view of one ticket; never writes."""
    ticket_id = _require_id(ticket_id, "ticketId")
    with storage_errors(db):
        t = db.get(Ticket, ticket_id)
    if t is None:
        return TicketStatus(ticket_id=ticket_id, found=False)
    return TicketStatus(
        ticket_id=t.id,
        found=True,
        is_used=bool(t.is_used),
        used_at=as_utc(t.used_at),
        booking_id=t.booking_id,
        seq=t.seq,
    )


def redeem(db: Session, ticket_id: str) -> RedeemResult:
    ticket_id = _require_id(ticket_id, "ticketId")
    with storage_errors(db):
        t = db.get(Ticket, ticket_id)
        if t is None:
            logger.warning("redeem of unknown ticket %s", ticket_id)
            return RedeemResult(ticket_id, RedeemOutcome.NOT_FOUND)
        if t.is_used:
            logger.warning("ticket %s already used at %s", ticket_id, t.used_at)
            return RedeemResult(ticket_id, RedeemOutcome.ALREADY_USED, as_utc(t.used_at))

        booking = db.get(Booking, t.booking_id)
        now = utcnow()
        t.is_used = True
        t.used_at = now
        db.flush()  # versioned UPDATE first so a lost race surfaces as a conflict
        db.merge(UsedTicketRecord(
            ticket_id=t.id,
            booking_id=t.booking_id,
            event_id=booking.event_id if booking else "",
            seq=t.seq,
            used_at=now,
        ))
        db.commit()
    logger.info("ticket %s redeemed", ticket_id)
    return RedeemResult(ticket_id, RedeemOutcome.REDEEMED, now)


# -------------------------
# REFUND
# -------------------------
def refund(db: Session, booking_id: str, ticket_id: str | None = None) -> RefundResult:
    """Refund one unused ticket, or every unused ticket of the booking when no ticket is given."""
    booking_id = _require_id(booking_id, "bookingId")
    if ticket_id is not None and ticket_id.strip():
        return _refund_one(db, booking_id, ticket_id.strip())

    with storage_errors(db):
        booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("booking", booking_id)
    return _refund_all(db, booking)


def _refund_one(db: Session, booking_id: str, ticket_id: str) -> RefundResult:
    with storage_errors(db):
        t = db.get(Ticket, ticket_id)
        if t is None or t.booking_id != booking_id:
            logger.warning("refund of unknown ticket %s (booking %s)", ticket_id, booking_id)
            return RefundResult(RefundOutcome.NOT_FOUND, 0, 1)
        if t.is_used:
            logger.warning("refund rejected, ticket %s already used", ticket_id)
            return RefundResult(RefundOutcome.INELIGIBLE, 0, 1)

        booking = db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("booking", booking_id)

        db.delete(t)
        db.query(UsedTicketRecord).filter(UsedTicketRecord.ticket_id == ticket_id).delete(synchronize_session=False)
        db.flush()  # versioned DELETE; conflicts with a concurrent redeem

        old_count = booking.ticket_count
        new_count = old_count - 1
        release_places(db, booking.event_id, 1)
        deleted = new_count <= 0
        if deleted:
            db.delete(booking)
        else:
            booking.total_price_cents = prorate_cents(booking.total_price_cents, old_count, new_count)
            booking.ticket_count = new_count
        db.commit()
    logger.info("ticket %s refunded (booking %s, deleted=%s)", ticket_id, booking_id, deleted)
    return RefundResult(RefundOutcome.REFUNDED, 1, 1, booking_deleted=deleted)


def _refund_all(db: Session, booking: Booking) -> RefundResult:
    booking_id = booking.id
    with storage_errors(db):
        tickets = booking_tickets(db, booking_id)
        requested = max(booking.ticket_count, len(tickets))
        unused = [t for t in tickets if not t.is_used]
        unused_ids = [t.id for t in unused]
        for t in unused:
            db.delete(t)
        if unused_ids:
            db.query(UsedTicketRecord).filter(UsedTicketRecord.ticket_id.in_(unused_ids)).delete(synchronize_session=False)
        db.flush()

        release_places(db, booking.event_id, len(unused))
        # Used tickets stay behind, detached, as redemption history
        db.delete(booking)
        db.commit()
    skipped = len(tickets) - len(unused)
    if skipped:
        logger.warning("bulk refund of booking %s skipped %d used tickets", booking_id, skipped)
    logger.info("bulk refund of booking %s released %d tickets", booking_id, len(unused))
    return RefundResult(RefundOutcome.REFUNDED, len(unused), requested, booking_deleted=True)


def list_used_tickets(db: Session) -> list[UsedTicketRecord]:
    with storage_errors(db):
        return db.query(UsedTicketRecord).order_by(UsedTicketRecord.used_at.desc()).all()
