from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketdesk.db.session import Base

class AuditLog(Base):
    """Who approved, rejected, edited or deleted which event."""
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    actor_user_id: Mapped[str] = mapped_column(String(36), index=True)  # token subject
    action: Mapped[str] = mapped_column(String(80), index=True)  # event.create, event.approve, event.delete
    entity_type: Mapped[str] = mapped_column(String(40), index=True)
    entity_id: Mapped[str] = mapped_column(String(48), index=True)
    details_json: Mapped[str] = mapped_column(Text, default="{}")  # status change or cascade counts
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
