from sqlalchemy import String, Integer, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketdesk.db.session import Base, SCHEMA_VERSION


def make_ticket_id(booking_id: str, seq: int) -> str:
    """Deterministic per (booking, seat); re-issuing never mints a second id."""
    return f"{booking_id}-T{seq}"


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (UniqueConstraint("booking_id", "seq", name="uq_tickets_booking_seq"),)

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    # No FK: used tickets outlive their booking after a bulk refund
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    seq: Mapped[int] = mapped_column(Integer)
    total_tickets: Mapped[int] = mapped_column(Integer)

    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validation_url: Mapped[str] = mapped_column(String(500))

    schema_version: Mapped[int] = mapped_column(Integer, default=SCHEMA_VERSION)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
