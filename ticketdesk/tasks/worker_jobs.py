import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError

from ticketdesk.db.session import SessionLocal
from ticketdesk.services.email_service import process_pending_emails

logger = logging.getLogger(__name__)


def process_email_queue(limit: int = 50) -> dict:
    """Retry queued/failed emails. Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("email queue skipped: tables missing")
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
