from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import select, update

from studyloop_app.models import CardProgress, db

from ..config import StudyConfig
from ..schemas import DeckProgress
from .catalog_service import CatalogService
from .transaction import atomic


def compute_mastery(correct_reviews, total_reviews):
    """Percentage of correct reviews, floored. 0 before the first review."""
    if total_reviews <= 0:
        return 0
    return min(100, (100 * correct_reviews) // total_reviews)


class MasteryService:
    """
    Cumulative accuracy per (card, user).

    There is no forgetting model: every review recomputes the mastery level
    from the running counts. The tracker knows nothing about sessions and can
    be called for ad hoc reviews.
    """

    @staticmethod
    def get_card_progress(card_id, user_id):
        return CardProgress.query.filter_by(card_id=card_id, user_id=user_id).first()

    @staticmethod
    def _stage_review(card_id, user_id, deck_id, is_correct) -> CardProgress:
        """Apply one review without committing.

        The increment and the mastery recomputation run as a single UPDATE
        so concurrent reviews of the same card cannot lose an update. A
        concurrent first review surfaces as ``IntegrityError`` on flush and
        is replayed by the caller's transaction wrapper.
        """
        now = datetime.now(timezone.utc)
        inc = 1 if is_correct else 0

        result = db.session.execute(
            update(CardProgress)
            .where(CardProgress.card_id == card_id, CardProgress.user_id == user_id)
            .values(
                total_reviews=CardProgress.total_reviews + 1,
                correct_reviews=CardProgress.correct_reviews + inc,
                mastery_level=(100 * (CardProgress.correct_reviews + inc)) // (CardProgress.total_reviews + 1),
                last_reviewed=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return db.session.execute(
                select(CardProgress)
                .where(CardProgress.card_id == card_id, CardProgress.user_id == user_id)
                .execution_options(populate_existing=True)
            ).scalar_one()

        progress = CardProgress(
            card_id=card_id,
            user_id=user_id,
            deck_id=deck_id,
            total_reviews=1,
            correct_reviews=inc,
            mastery_level=compute_mastery(inc, 1),
            last_reviewed=now,
        )
        db.session.add(progress)
        db.session.flush()
        return progress

    @staticmethod
    def review(card_id, user_id, deck_id, is_correct) -> CardProgress:
        """Record one review of a card by a user and return the new progress."""
        progress = atomic(
            lambda: MasteryService._stage_review(card_id, user_id, deck_id, is_correct),
            f"updating progress for card {card_id}",
        )
        current_app.logger.debug(
            f"Card {card_id} reviewed (correct={is_correct}): "
            f"{progress.correct_reviews}/{progress.total_reviews} -> mastery {progress.mastery_level}"
        )
        return progress

    @staticmethod
    def deck_progress(deck_id, user_id) -> DeckProgress:
        """Aggregate mastery over a deck for one user."""
        total_cards = CatalogService.count_deck_cards(deck_id)
        if total_cards == 0:
            return DeckProgress()

        rows = (
            db.session.query(CardProgress.card_id, CardProgress.mastery_level, CardProgress.total_reviews)
            .filter(CardProgress.deck_id == deck_id, CardProgress.user_id == user_id)
            .all()
        )

        threshold = StudyConfig.mastery_threshold()
        studied_cards = len(rows)
        mastered_cards = sum(1 for row in rows if row.mastery_level >= threshold)
        average_mastery = sum(row.mastery_level for row in rows) // studied_cards if studied_cards else 0

        return DeckProgress(
            total_cards=total_cards,
            studied_cards=studied_cards,
            mastered_cards=mastered_cards,
            average_mastery=average_mastery,
            progress_percentage=(100 * studied_cards) // total_cards,
            card_progress=[
                {'cardId': row.card_id, 'masteryLevel': row.mastery_level, 'totalReviews': row.total_reviews}
                for row in rows
            ],
        )
