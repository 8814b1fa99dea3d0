# Overview: Scoped database transaction used by every multi-step mutation.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StorageError


@contextmanager
def scoped_transaction(session: Session):
    """
    Run a block of reads/writes as one all-or-nothing unit.

    Commits when the block exits normally. Any exception rolls back every
    write made on ``session`` since the transaction began and propagates;
    driver/ORM failures are re-raised as StorageError so callers never see
    storage internals. No retries: a failed sale is not safe to replay blindly.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError("Storage operation failed") from exc
    except BaseException:
        session.rollback()
        raise
