import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ticketdesk.core.config import settings
from ticketdesk.services.errors import ConflictError, StorageError, StorageTimeoutError

logger = logging.getLogger(__name__)

# Bumped whenever a lifecycle table changes shape; stored on every row.
SCHEMA_VERSION = 1

_TIMEOUT_MARKERS = ("timeout", "timed out", "statement timeout", "database is locked")


class Base(DeclarativeBase):
    pass


def _engine_kwargs(url: str) -> dict:
    timeout = settings.STORE_TIMEOUT_SECONDS
    if url.startswith("sqlite"):
        kw = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        # In-memory DB must be shared by every connection (tests, TestClient threads)
        if url in ("sqlite://", "sqlite:///:memory:"):
            kw["poolclass"] = StaticPool
        return kw
    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        },
    }


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _is_timeout(exc: OperationalError) -> bool:
    msg = str(exc.orig or exc).lower()
    return any(m in msg for m in _TIMEOUT_MARKERS)


@contextmanager
def storage_errors(db: Session):
    """Roll back and translate SQLAlchemy failures into domain errors."""
    try:
        yield
    except StaleDataError as e:
        db.rollback()
        logger.warning("optimistic lock lost: %s", e)
        raise ConflictError() from e
    except OperationalError as e:
        db.rollback()
        if _is_timeout(e):
            logger.error("store round-trip timed out: %s", e)
            raise StorageTimeoutError() from e
        logger.error("store operational error: %s", e)
        raise StorageError() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("store error: %s", e)
        raise StorageError() from e
