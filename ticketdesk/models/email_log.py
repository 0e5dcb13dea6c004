from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketdesk.db.session import Base

class EmailLog(Base):
    """Outgoing booking confirmation. Rows left queued or failed are resent by the retry task."""
    __tablename__ = "email_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    to_email: Mapped[str] = mapped_column(String(320), index=True)
    subject: Mapped[str] = mapped_column(String(200))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)  # plain text; retries resend it without the tickets PDF
    status: Mapped[str] = mapped_column(String(30), default="queued")  # queued | sent | failed
    booking_id: Mapped[str] = mapped_column(String(36), default="", index=True)  # no FK, survives a bulk refund
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
