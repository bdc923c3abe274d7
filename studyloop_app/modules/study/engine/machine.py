"""
Review State Machine driver
===========================
Holds one session's ``ReviewState`` and turns user events into pure
transitions, applying the resulting persistence effects through a
``StudyGateway``.

Lifecycle::

    machine = ReviewStateMachine(gateway, deck_id, user_id, mode)
    machine.start()
    machine.reveal(); machine.rate('easy'); ...
    report = machine.report()

The new state is committed only after its effects were persisted, so a
storage failure leaves the machine where it was and the event can be
retried. When a failure strikes after some effects already succeeded (the
rating was saved but completing the session failed), only the remaining
effects run on the retry.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence, Tuple

from ..config import StudyConfig
from . import state as transitions
from .reporter import build_session_report
from .state import CompleteSession, RecordReview, ReviewState, Transition

logger = logging.getLogger(__name__)


class StudyGateway(ABC):
    """Persistence the state machine needs. Implemented over the services."""

    @abstractmethod
    def start_session(self, deck_id, user_id, mode, cards=None) -> Tuple[int, Sequence]:
        """Start or resume; return ``(session_id, sequenced cards)``."""
        ...

    @abstractmethod
    def record_review(self, session_id, user_id, deck_id, card_id, is_correct) -> None:
        ...

    @abstractmethod
    def complete_session(self, session_id, user_id) -> None:
        ...

    @abstractmethod
    def get_session(self, session_id, user_id) -> Any:
        """Return the durable record (``cards_studied``, ``correct_answers``)."""
        ...


class ReviewStateMachine:
    """Drives one study attempt for one user over one deck."""

    def __init__(self, gateway: StudyGateway, deck_id, user_id, mode=StudyConfig.DEFAULT_MODE,
                 cards=None, card_duration: Optional[int] = None):
        self.gateway = gateway
        self.deck_id = deck_id
        self.user_id = user_id
        self.mode = mode
        self.session_id = None
        self._cards = cards
        self._card_duration = card_duration or StudyConfig.timed_card_seconds()
        self._state = ReviewState(mode=mode, card_duration=self._card_duration, time_left=self._card_duration)
        self._lock = threading.Lock()
        self._pending = None

    @property
    def state(self) -> ReviewState:
        return self._state

    # ── lifecycle ────────────────────────────────────────────────────

    def start(self) -> ReviewState:
        """NotStarted -> Active. Calling it again is a no-op."""
        with self._lock:
            if self._state.status != transitions.NOT_STARTED:
                return self._state
            session_id, sequence = self.gateway.start_session(self.deck_id, self.user_id, self.mode, self._cards)
            self.session_id = session_id
            self._state = transitions.begin(sequence, self.mode, self._card_duration)
            logger.info("Session %s active with %d cards (mode=%s)", session_id, len(sequence), self.mode)
            return self._state

    def report(self):
        """Statistics from the durable counters and this attempt's trace."""
        if self.session_id is None:
            return None
        session = self.gateway.get_session(self.session_id, self.user_id)
        return build_session_report(session, self._state)

    def restart_with_wrong_cards(self) -> Optional['ReviewStateMachine']:
        """Start a fresh session over the cards answered incorrectly.

        Returns None unless this attempt is completed with at least one
        wrong card.
        """
        if not self._state.is_completed or not self._state.wrong_ids:
            return None
        wrong = set(self._state.wrong_ids)
        subset = [card for card in self._state.cards if card.id in wrong]
        follow_up = ReviewStateMachine(
            self.gateway, self.deck_id, self.user_id, self.mode,
            cards=subset, card_duration=self._card_duration,
        )
        follow_up.start()
        return follow_up

    # ── events ───────────────────────────────────────────────────────

    def reveal(self) -> ReviewState:
        return self._dispatch(transitions.reveal)

    def rate(self, difficulty: str) -> ReviewState:
        return self._dispatch(transitions.rate, difficulty)

    def skip(self) -> ReviewState:
        return self._dispatch(transitions.skip)

    def go_back(self) -> ReviewState:
        return self._dispatch(transitions.go_back)

    def go_forward(self) -> ReviewState:
        return self._dispatch(transitions.go_forward)

    def toggle_pause(self) -> ReviewState:
        return self._dispatch(transitions.toggle_pause)

    def toggle_bookmark(self) -> ReviewState:
        return self._dispatch(transitions.toggle_bookmark)

    def tick(self) -> ReviewState:
        return self._dispatch(transitions.tick)

    # ── internals ────────────────────────────────────────────────────

    def _dispatch(self, transition: Callable[..., Transition], *args) -> ReviewState:
        # One event at a time per session; a re-entrant event is dropped
        if not self._lock.acquire(blocking=False):
            logger.debug("Session %s busy, dropped %s", self.session_id, transition.__name__)
            return self._state
        try:
            if self._pending is not None:
                # The retried event finishes the effects left over by the failed one
                state, effects = self._pending
                self._pending = None
                self._commit(state, effects, resuming=True)
                return self._state

            result = transition(self._state, *args)
            if result.state is self._state:
                logger.debug("Session %s ignored %s in state %s", self.session_id, transition.__name__,
                             self._state.status)
                return self._state
            self._commit(result.state, result.effects)
            return self._state
        finally:
            self._lock.release()

    def _commit(self, state: ReviewState, effects, resuming: bool = False) -> None:
        """Apply ``effects`` in order, then adopt ``state``.

        Effects that already succeeded are never applied twice: when a later
        one fails, the remainder is kept in ``_pending`` for the next event.
        """
        remaining = list(effects)
        try:
            while remaining:
                self._apply(remaining[0])
                remaining.pop(0)
        finally:
            if remaining and (resuming or len(remaining) < len(effects)):
                self._pending = (state, tuple(remaining))
                logger.warning("Session %s has %d unapplied effect(s) awaiting retry",
                               self.session_id, len(remaining))
        self._state = state

    def _apply(self, effect) -> None:
        if isinstance(effect, RecordReview):
            self.gateway.record_review(self.session_id, self.user_id, self.deck_id,
                                       effect.card_id, effect.is_correct)
        elif isinstance(effect, CompleteSession):
            self.gateway.complete_session(self.session_id, self.user_id)
            logger.info("Session %s reached the last card", self.session_id)
