from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketdesk.core.clock import as_utc, utcnow
from ticketdesk.db.session import Base, SCHEMA_VERSION

class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    presenter: Mapped[str] = mapped_column(String(200), default="")

    total_places: Mapped[int] = mapped_column(Integer)
    booked_places: Mapped[int] = mapped_column(Integer, default=0)
    price_cents: Mapped[int] = mapped_column(Integer, default=0)  # per seat
    image: Mapped[str] = mapped_column(String(500), default="")

    creator_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(12), default="approved", index=True)  # pending, approved, rejected
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    schema_version: Mapped[int] = mapped_column(Integer, default=SCHEMA_VERSION)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_past(self) -> bool:
        ends = as_utc(self.end_at) or as_utc(self.start_at)
        return ends is not None and ends < utcnow()
