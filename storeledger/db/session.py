"""Database engine, session factory and transaction scope."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from storeledger.core.config import get_settings

settings = get_settings()

engine = create_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_UNIT_OF_WORK_KEY = "unit_of_work_depth"


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block of ledger mutations as one atomic transaction.

    The outermost block commits on success and rolls back on any error.
    Nested blocks join the outer transaction, so a service operation that
    calls other service operations still commits exactly once.

    Usage:
        with unit_of_work(db):
            create_journal_entry(db, ...)
            db.add(receivable)
    """
    depth = db.info.get(_UNIT_OF_WORK_KEY, 0)
    db.info[_UNIT_OF_WORK_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[_UNIT_OF_WORK_KEY] = depth
