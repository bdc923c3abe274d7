from dataclasses import dataclass

from flask import current_app

from studyloop_app.core.signals import card_reviewed

from .catalog_service import CatalogService
from .ledger_service import SessionLedgerService
from .mastery_service import MasteryService
from .transaction import atomic


@dataclass
class ReviewOutcome:
    counted: bool
    mastery_level: int
    total_reviews: int
    correct_reviews: int


class ReviewService:
    """Persists one rated card: session counters and card mastery together."""

    @staticmethod
    def record(session_id, user_id, deck_id, card_id, is_correct) -> ReviewOutcome:
        """Apply a rating to the session ledger and the mastery tracker.

        Both writes share one transaction, so a rating either lands in both
        places or in neither.

        Raises:
            StudyNotFoundError: The card is not in an owned deck.
            SessionNotFoundError: The session is missing, foreign, completed
                or belongs to another deck.
        """
        CatalogService.require_card_in_deck(card_id, deck_id, user_id)

        def work():
            counted = SessionLedgerService._stage_record_review(session_id, user_id, is_correct, deck_id=deck_id)
            progress = MasteryService._stage_review(card_id, user_id, deck_id, is_correct)
            return ReviewOutcome(
                counted=counted,
                mastery_level=progress.mastery_level,
                total_reviews=progress.total_reviews,
                correct_reviews=progress.correct_reviews,
            )

        outcome = atomic(work, f"reviewing card {card_id} in session {session_id}")
        current_app.logger.debug(
            f"Session {session_id}: card {card_id} rated correct={is_correct}, mastery={outcome.mastery_level}"
        )
        card_reviewed.send(
            None,
            user_id=user_id,
            session_id=session_id,
            card_id=card_id,
            deck_id=deck_id,
            is_correct=is_correct,
            mastery_level=outcome.mastery_level,
        )
        return outcome
