"""Utility helpers for working with the SQLAlchemy session.

SQLite holds a write lock for the duration of a transaction, which can
surface as ``database is locked`` when two requests write at roughly the
same time. :func:`safe_commit` retries with exponential backoff. A rollback
discards the pending changes, so only a unit of work passed as ``work`` can
be replayed; a bare commit is attempted once.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.session import Session

LOCKED_MESSAGES = {"database is locked", "database is busy"}

T = TypeVar("T")


def _is_lock_error(error: OperationalError) -> bool:
    """Return ``True`` if the OperationalError was caused by a lock."""

    message = str(error).lower()
    return any(token in message for token in LOCKED_MESSAGES)


def safe_commit(
    session: Session,
    work: Optional[Callable[[], T]] = None,
    retries: int = 5,
    initial_delay: float = 0.1,
) -> Optional[T]:
    """Run ``work`` (if given) and commit, retrying when SQLite is locked.

    Args:
        session: The SQLAlchemy session to commit.
        work: Callable that stages the changes. It is re-run after a lock
            error since the rollback throws its changes away.
        retries: Maximum number of attempts before the error is re-raised.
        initial_delay: Delay in seconds before the first retry, doubled
            after every attempt.

    Returns:
        Whatever ``work`` returned.

    Raises:
        OperationalError: If the commit still fails after ``retries``
            attempts, or fails for a reason other than SQLite locking.
    """

    delay = initial_delay
    for attempt in range(retries):
        try:
            result = work() if work is not None else None
            session.commit()
            return result
        except OperationalError as exc:  # pragma: no cover - retriable path
            session.rollback()
            if work is None or attempt == retries - 1 or not _is_lock_error(exc):
                raise

            time.sleep(delay)
            delay *= 2
    return None


def run_in_transaction(
    session: Session,
    work: Callable[[], T],
    conflict_retries: int = 1,
) -> T:
    """Run ``work`` in a transaction, replaying it after a uniqueness conflict.

    A concurrent writer that inserts the same unique row first makes our
    flush fail with ``IntegrityError``. Replaying ``work`` lets it observe
    the winner's row and take its update/resume path instead.
    """

    for attempt in range(conflict_retries + 1):
        try:
            return safe_commit(session, work)
        except IntegrityError:
            session.rollback()
            if attempt == conflict_retries:
                raise
    raise RuntimeError("unreachable")  # pragma: no cover
