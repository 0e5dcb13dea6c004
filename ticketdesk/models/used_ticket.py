from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from ticketdesk.db.session import Base, SCHEMA_VERSION

class UsedTicketRecord(Base):
    """Write-once reporting row per redeemed ticket. Ticket.is_used stays authoritative."""

    __tablename__ = "used_tickets"

    ticket_id: Mapped[str] = mapped_column(String(48), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)
    seq: Mapped[int] = mapped_column(Integer)
    used_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    schema_version: Mapped[int] = mapped_column(Integer, default=SCHEMA_VERSION)
