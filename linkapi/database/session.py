import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from linkapi.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def _close(db: Session, failed: bool) -> None:
    if failed and db.in_transaction():
        logger.debug("Rolling back open transaction after request error")
        db.rollback()
    db.close()


def get_db() -> Iterator[Session]:
    """Request-scoped session; services commit their own units of work."""
    db = SessionLocal()
    failed = False
    try:
        yield db
    except Exception:
        failed = True
        raise
    finally:
        _close(db, failed)


@contextmanager
def get_db_context(
    session_factory: Callable[[], Session] = SessionLocal,
) -> Iterator[Session]:
    """Session for scripts: commits when the block exits cleanly."""
    db = session_factory()
    failed = False
    try:
        yield db
        db.commit()
    except Exception:
        failed = True
        raise
    finally:
        _close(db, failed)
