import logging
import uuid
from datetime import timedelta

from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError

from ticketdesk.core.clock import utcnow
from ticketdesk.db.session import SessionLocal
from ticketdesk.models.event import Event

logger = logging.getLogger(__name__)

# (title, presenter, days ahead, hours long, places, price cents)
DEMO_EVENTS = [
    ("Future of Technology Conference", "Dr. Sarah Johnson", 14, 8, 150, 12500),
    ("Digital Marketing Workshop", "Mark van der Berg", 21, 6, 50, 8900),
    ("AI & Machine Learning Summit", "Prof. Lisa Chen", 35, 8, 200, 17500),
    ("Leadership Development Training", "Jan Pieters", 42, 8, 30, 19500),
]


def run(db: Session | None = None) -> int:
    """Insert the demo events when the catalogue is empty. Returns how many were added."""
    own = db is None
    if own:
        db = SessionLocal()
    try:
        try:
            if db.query(Event.id).first():
                return 0
        except ProgrammingError:
            # Migrations not applied yet; seeding must not crash the API.
            db.rollback()
            logger.warning("events table not found yet, skipping seed (run alembic upgrade head)")
            return 0

        today = utcnow().replace(hour=9, minute=0, second=0, microsecond=0)
        for title, presenter, days, hours, places, price in DEMO_EVENTS:
            start = today + timedelta(days=days)
            db.add(Event(
                id=str(uuid.uuid4()),
                title=title,
                description="",
                start_at=start,
                end_at=start + timedelta(hours=hours),
                presenter=presenter,
                total_places=places,
                booked_places=0,
                price_cents=price,
                status="approved",
            ))
        db.commit()
        logger.info("seeded %d demo events", len(DEMO_EVENTS))
        return len(DEMO_EVENTS)
    finally:
        if own:
            db.close()
