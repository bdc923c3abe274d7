from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import update

from studyloop_app.core.signals import session_completed, session_started
from studyloop_app.models import Deck, StudySession, db

from ..config import StudyConfig
from ..engine.sequencer import sequence_cards
from ..exceptions import ActiveSessionError, SessionNotFoundError, StudyValidationError
from ..schemas import SessionStart
from .catalog_service import CatalogService
from .transaction import atomic


class SessionLedgerService:
    """
    Owns the study session records: creation, resumption, counters and
    completion. Every mutation is filtered by the owning user, so a session
    belonging to someone else looks exactly like a missing one.
    """

    @staticmethod
    def get_active_session(deck_id, user_id):
        """Most recent non-completed session for (deck, user), or None."""
        return (
            StudySession.query.filter_by(deck_id=deck_id, user_id=user_id, completed=False)
            .order_by(StudySession.started_at.desc())
            .first()
        )

    @staticmethod
    def get_session(session_id, user_id) -> StudySession:
        session = StudySession.query.filter_by(id=session_id, user_id=user_id).first()
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    @staticmethod
    def get_user_sessions(user_id, limit=StudyConfig.DEFAULT_HISTORY_LIMIT):
        """Session history for a user, newest first, with the deck title."""
        rows = (
            db.session.query(StudySession, Deck)
            .join(Deck, StudySession.deck_id == Deck.id)
            .filter(StudySession.user_id == user_id)
            .order_by(StudySession.started_at.desc(), StudySession.id.desc())
            .limit(limit)
            .all()
        )
        return [
            {'session': session.to_dict(), 'deck': {'id': deck.id, 'title': deck.title}}
            for session, deck in rows
        ]

    @staticmethod
    def start(deck_id, user_id, mode, cards=None, rng=None) -> SessionStart:
        """Start a session, or resume the one already open for this deck.

        Args:
            deck_id: Deck to study; must belong to ``user_id``.
            user_id: Authenticated owner.
            mode: ``standard``, ``shuffle`` or ``timed``.
            cards: Working set override (e.g. the wrong cards of a finished
                session). Defaults to every card of the deck.
            rng: Random source for ``shuffle``.

        Raises:
            StudyNotFoundError: The deck is missing or not owned by the user.
            EmptyDeckError: There are no cards to study. Nothing is written.
            ActiveSessionError: ``cards`` was given while a session is still
                open on the deck; only a whole-deck start resumes.
        """
        if mode not in StudyConfig.MODES:
            raise StudyValidationError(f"Unknown study mode {mode!r}", errors={'mode': list(StudyConfig.MODES)})

        CatalogService.require_deck(deck_id, user_id)
        override = cards is not None
        if not override:
            cards = CatalogService.get_deck_cards(deck_id, user_id)

        def work():
            existing = SessionLedgerService.get_active_session(deck_id, user_id)
            if existing is not None:
                if override:
                    raise ActiveSessionError(existing.id)
                # Re-sequenced from the current deck; a resumed shuffle gets a fresh order
                return SessionStart(existing, tuple(sequence_cards(cards, existing.mode, rng)), resumed=True)

            # Sequenced once; the length is the immutable snapshot
            sequence = tuple(sequence_cards(cards, mode, rng))
            session = StudySession(
                deck_id=deck_id,
                user_id=user_id,
                mode=mode,
                total_cards=len(sequence),
                cards_studied=0,
                correct_answers=0,
                completed=False,
            )
            db.session.add(session)
            db.session.flush()
            return SessionStart(session, sequence, resumed=False)

        started = atomic(work, f"starting a study session for deck {deck_id}")

        if started.resumed:
            current_app.logger.info(f"Resuming study session {started.session_id} for deck {deck_id}")
        else:
            current_app.logger.info(
                f"Started study session {started.session_id} (deck={deck_id}, mode={mode}, "
                f"total_cards={started.session.total_cards})"
            )
            session_started.send(
                None,
                user_id=user_id,
                session_id=started.session_id,
                deck_id=deck_id,
                mode=mode,
                total_cards=started.session.total_cards,
            )
        return started

    @staticmethod
    def _stage_record_review(session_id, user_id, is_correct, deck_id=None) -> bool:
        """Increment the counters in one UPDATE; no commit.

        Returns False when the session already counted ``total_cards``
        reviews (the counters never exceed the snapshot).

        Raises:
            SessionNotFoundError: No matching open session owned by the user.
        """
        conditions = [
            StudySession.id == session_id,
            StudySession.user_id == user_id,
            StudySession.completed.is_(False),
        ]
        if deck_id is not None:
            conditions.append(StudySession.deck_id == deck_id)

        result = db.session.execute(
            update(StudySession)
            .where(*conditions, StudySession.cards_studied < StudySession.total_cards)
            .values(
                cards_studied=StudySession.cards_studied + 1,
                correct_answers=StudySession.correct_answers + (1 if is_correct else 0),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return True

        still_open = StudySession.query.filter(*conditions).first()
        if still_open is None:
            raise SessionNotFoundError(session_id)
        current_app.logger.warning(
            f"Study session {session_id} already counted {still_open.total_cards} reviews; counters unchanged"
        )
        return False

    @staticmethod
    def record_review(session_id, user_id, is_correct) -> bool:
        """Count one rated card against the session.

        Raises:
            SessionNotFoundError: No matching open session owned by the user.
        """
        return atomic(
            lambda: SessionLedgerService._stage_record_review(session_id, user_id, is_correct),
            f"recording a review on session {session_id}",
        )

    @staticmethod
    def complete(session_id, user_id) -> bool:
        """Mark the session completed.

        Idempotent: a second call leaves the counters and ``completed_at``
        untouched and returns False. Returns True only for the call that
        actually completed the session.

        Raises:
            SessionNotFoundError: The session is missing or not owned.
        """
        def work():
            result = db.session.execute(
                update(StudySession)
                .where(
                    StudySession.id == session_id,
                    StudySession.user_id == user_id,
                    StudySession.completed.is_(False),
                )
                .values(completed=True, completed_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                return True
            if StudySession.query.filter_by(id=session_id, user_id=user_id).first() is None:
                raise SessionNotFoundError(session_id)
            return False

        newly_completed = atomic(work, f"completing study session {session_id}")
        if newly_completed:
            session = SessionLedgerService.get_session(session_id, user_id)
            current_app.logger.info(
                f"Study session {session_id} completed: {session.correct_answers}/{session.cards_studied} correct"
            )
            session_completed.send(
                None,
                user_id=user_id,
                session_id=session_id,
                deck_id=session.deck_id,
                cards_studied=session.cards_studied,
                correct_answers=session.correct_answers,
            )
        else:
            current_app.logger.debug(f"Study session {session_id} was already completed")
        return newly_completed
