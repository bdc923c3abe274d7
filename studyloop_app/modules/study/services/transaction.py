"""Shared transaction wrapper for the study services."""

from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from studyloop_app.models import db
from studyloop_app.utils.db_session import run_in_transaction

from ..exceptions import StudyError, StudyStorageError

T = TypeVar("T")


def atomic(work: Callable[[], T], description: str) -> T:
    """Commit ``work`` as one unit.

    Domain errors roll back and propagate unchanged. Storage errors roll
    back and surface as ``StudyStorageError`` so callers can tell them apart
    from domain failures and retry.
    """
    try:
        return run_in_transaction(db.session, work)
    except StudyError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"Storage error while {description}: {exc}", exc_info=True)
        raise StudyStorageError() from exc
