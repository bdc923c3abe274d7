"""Final session statistics."""

import math

from ..schemas import SessionReport
from .state import ReviewState


def round_half_up(value: float) -> int:
    """Round like a calculator: 2.5 -> 3 (``round`` would give 2)."""
    return int(math.floor(value + 0.5))


def build_session_report(session, state: ReviewState) -> SessionReport:
    """Combine the ledger's durable counters with the in-memory trace.

    Args:
        session: Anything exposing ``cards_studied`` and
            ``correct_answers`` (normally the ``StudySession`` row).
        state: The machine's final ``ReviewState``.
    """
    studied = session.cards_studied or 0
    correct = session.correct_answers or 0

    average = None
    if state.is_timed and studied > 0:
        average = state.elapsed_seconds / studied

    return SessionReport(
        correct=correct,
        incorrect=studied - correct,
        accuracy=round_half_up(100 * correct / studied) if studied else 0,
        skipped=len(state.skipped_ids),
        total_elapsed_seconds=state.elapsed_seconds,
        average_seconds_per_card=average,
        wrong_card_ids=list(state.wrong_ids),
        bookmarked_card_ids=list(state.bookmarked_ids),
    )
