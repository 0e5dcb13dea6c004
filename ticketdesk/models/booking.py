from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketdesk.db.session import Base, SCHEMA_VERSION

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)  # bare event id

    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320), index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    ticket_count: Mapped[int] = mapped_column(Integer)  # live (non-refunded) tickets
    total_price_cents: Mapped[int] = mapped_column(Integer, default=0)

    tickets_issued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    schema_version: Mapped[int] = mapped_column(Integer, default=SCHEMA_VERSION)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
