"""
Study Interface
===============
Public API of the study module for the presentation layer and other
modules. Every call resolves the authenticated user, validates its input
and returns a plain dict: ``{'success': True, ...}`` or the ``to_dict()``
of the study error that stopped it.
"""

from typing import Any, Dict, Optional

from flask import current_app
from flask_login import current_user

from .config import StudyConfig
from .engine import ReviewStateMachine, SessionTicker
from .exceptions import SessionNotFoundError, StudyError, UnauthorizedError
from .schemas import (
    CompleteSessionSchema,
    DeckProgressSchema,
    HistorySchema,
    ReviewCardSchema,
    StartSessionSchema,
    load_or_raise,
)
from .services import CatalogService, MasteryService, ReviewService, ServiceGateway, SessionLedgerService


def get_authenticated_user_id() -> str:
    """Id of the logged-in user.

    Raises:
        UnauthorizedError: Nobody is logged in.
    """
    if not current_user.is_authenticated:
        raise UnauthorizedError()
    return current_user.get_id()


def _failure(error: StudyError) -> Dict[str, Any]:
    current_app.logger.info(f"[STUDY] {error.code}: {error.message}")
    return error.to_dict()


class StudyInterface:
    """Public interface for study session operations."""

    @staticmethod
    def start_session(deck_id, mode=StudyConfig.DEFAULT_MODE) -> Dict[str, Any]:
        """Start a session on a deck, or resume the open one.

        Returns:
            ``{success, sessionId, resumed, mode, totalCards, cards, message}``
        """
        try:
            user_id = get_authenticated_user_id()
            data = load_or_raise(StartSessionSchema(), {'deckId': deck_id, 'mode': mode})
            started = SessionLedgerService.start(data['deck_id'], user_id, data['mode'])
        except StudyError as e:
            return _failure(e)

        session = started.session
        return {
            'success': True,
            'sessionId': session.id,
            'resumed': started.resumed,
            'mode': session.mode,
            'totalCards': session.total_cards,
            'cards': [card.to_dict() for card in started.sequence],
            'message': 'Resumed study session' if started.resumed else 'Study session started',
        }

    @staticmethod
    def review_card(session_id, card_id, deck_id, is_correct) -> Dict[str, Any]:
        """Persist one rating against the session counters and card mastery."""
        try:
            user_id = get_authenticated_user_id()
            data = load_or_raise(ReviewCardSchema(), {
                'sessionId': session_id,
                'cardId': card_id,
                'deckId': deck_id,
                'isCorrect': is_correct,
            })
            outcome = ReviewService.record(
                data['session_id'], user_id, data['deck_id'], data['card_id'], data['is_correct']
            )
        except StudyError as e:
            return _failure(e)

        return {
            'success': True,
            'counted': outcome.counted,
            'masteryLevel': outcome.mastery_level,
            'totalReviews': outcome.total_reviews,
            'correctReviews': outcome.correct_reviews,
        }

    @staticmethod
    def complete_session(session_id, deck_id) -> Dict[str, Any]:
        """Mark a session completed. Completing it again is acknowledged."""
        try:
            user_id = get_authenticated_user_id()
            data = load_or_raise(CompleteSessionSchema(), {'sessionId': session_id, 'deckId': deck_id})
            session = SessionLedgerService.get_session(data['session_id'], user_id)
            if session.deck_id != data['deck_id']:
                raise SessionNotFoundError(data['session_id'])
            newly_completed = SessionLedgerService.complete(data['session_id'], user_id)
            session = SessionLedgerService.get_session(data['session_id'], user_id)
        except StudyError as e:
            return _failure(e)

        return {
            'success': True,
            'alreadyCompleted': not newly_completed,
            'session': session.to_dict(),
        }

    @staticmethod
    def get_deck_progress(deck_id) -> Dict[str, Any]:
        """Mastery aggregate of the user's deck."""
        try:
            user_id = get_authenticated_user_id()
            data = load_or_raise(DeckProgressSchema(), {'deckId': deck_id})
            CatalogService.require_deck(data['deck_id'], user_id)
            progress = MasteryService.deck_progress(data['deck_id'], user_id)
        except StudyError as e:
            return _failure(e)

        return {'success': True, **progress.to_dict()}

    @staticmethod
    def get_study_history(limit: Optional[int] = None) -> Dict[str, Any]:
        """Most recent sessions of the user, newest first."""
        try:
            user_id = get_authenticated_user_id()
            if limit is None:
                limit = current_app.config.get('STUDY_HISTORY_LIMIT', StudyConfig.DEFAULT_HISTORY_LIMIT)
            data = load_or_raise(HistorySchema(), {'limit': limit})
            sessions = SessionLedgerService.get_user_sessions(user_id, data['limit'])
        except StudyError as e:
            return _failure(e)

        return {'success': True, 'sessions': sessions}

    @staticmethod
    def create_machine(deck_id, mode=StudyConfig.DEFAULT_MODE) -> ReviewStateMachine:
        """A not-yet-started state machine for the logged-in user.

        Raises:
            UnauthorizedError: Nobody is logged in.
            StudyValidationError: Invalid deck id or mode.
        """
        user_id = get_authenticated_user_id()
        data = load_or_raise(StartSessionSchema(), {'deckId': deck_id, 'mode': mode})
        return ReviewStateMachine(ServiceGateway(), data['deck_id'], user_id, data['mode'])

    @staticmethod
    def create_ticker(machine: ReviewStateMachine, scheduler=None) -> SessionTicker:
        """A tick source for ``machine``, bound to the running app.

        Ticks run on a scheduler thread inside an app context so timed-mode
        auto-ratings persist through the services. Call ``start()`` once the
        machine is started; the ticker stops itself when the session
        completes.
        """
        return SessionTicker(
            machine,
            app=current_app._get_current_object(),
            interval=StudyConfig.TICK_INTERVAL_SECONDS,
            scheduler=scheduler,
        )
