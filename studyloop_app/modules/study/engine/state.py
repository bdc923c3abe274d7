"""
Review state and its transitions.

``ReviewState`` is an immutable value. Every transition is a pure function
``(state, ...) -> Transition`` returning the next state plus the persistence
effects the driver must apply. Nothing here touches the database.

States::

    not_started -> active(index, revealed, paused) -> completed

Transitions that are not allowed from the current state return the state
unchanged with no effects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..config import StudyConfig
from ..exceptions import StudyValidationError
from ..schemas import CardItem

NOT_STARTED = 'not_started'
ACTIVE = 'active'
COMPLETED = 'completed'


# ── Effects ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RecordReview:
    """Persist one rating (mastery + session counters)."""
    card_id: int
    is_correct: bool


@dataclass(frozen=True)
class CompleteSession:
    """Mark the session completed."""


@dataclass(frozen=True)
class Transition:
    state: 'ReviewState'
    effects: Tuple[object, ...] = ()


# ── State ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ReviewState:
    mode: str = StudyConfig.DEFAULT_MODE
    status: str = NOT_STARTED
    cards: Tuple[CardItem, ...] = ()
    index: int = 0
    revealed: bool = False
    paused: bool = False
    card_duration: int = StudyConfig.DEFAULT_TIMED_CARD_SECONDS
    time_left: int = StudyConfig.DEFAULT_TIMED_CARD_SECONDS
    elapsed_seconds: int = 0
    skipped_ids: Tuple[int, ...] = ()
    bookmarked_ids: Tuple[int, ...] = ()
    wrong_ids: Tuple[int, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def is_timed(self) -> bool:
        return self.mode == 'timed'

    @property
    def current_card(self) -> Optional[CardItem]:
        if not self.cards or self.status != ACTIVE:
            return None
        return self.cards[self.index]

    @property
    def is_last_card(self) -> bool:
        return self.index >= len(self.cards) - 1

    def to_dict(self) -> dict:
        card = self.current_card
        return {
            'status': self.status,
            'mode': self.mode,
            'index': self.index,
            'total': len(self.cards),
            'card': card.to_dict() if card else None,
            'revealed': self.revealed,
            'paused': self.paused,
            'timeLeft': self.time_left if self.is_timed else None,
            'elapsedSeconds': self.elapsed_seconds,
            'skippedIds': list(self.skipped_ids),
            'bookmarkedIds': list(self.bookmarked_ids),
            'wrongIds': list(self.wrong_ids),
        }


def _with(ids: Tuple[int, ...], card_id: int) -> Tuple[int, ...]:
    return ids if card_id in ids else ids + (card_id,)


def _accepts_input(state: ReviewState) -> bool:
    return state.status == ACTIVE and not state.paused


def _move_to(state: ReviewState, index: int) -> ReviewState:
    return replace(state, index=index, revealed=False, time_left=state.card_duration)


def _advance(state: ReviewState) -> Transition:
    """Move past the current card, completing the session after the last one."""
    if state.is_last_card:
        return Transition(replace(state, status=COMPLETED, revealed=False), (CompleteSession(),))
    return Transition(_move_to(state, state.index + 1))


# ── Transitions ──────────────────────────────────────────────────────


def begin(cards, mode: str, card_duration: int = StudyConfig.DEFAULT_TIMED_CARD_SECONDS) -> ReviewState:
    """Build the first active state over an already sequenced working set."""
    return ReviewState(
        mode=mode,
        status=ACTIVE,
        cards=tuple(cards),
        card_duration=card_duration,
        time_left=card_duration,
    )


def reveal(state: ReviewState) -> Transition:
    if not _accepts_input(state) or state.revealed:
        return Transition(state)
    return Transition(replace(state, revealed=True))


def rate(state: ReviewState, difficulty: str) -> Transition:
    """Rate the revealed card.

    Raises:
        StudyValidationError: If ``difficulty`` is not a known rating.
    """
    if difficulty not in StudyConfig.DIFFICULTIES:
        raise StudyValidationError(
            f"Unknown difficulty {difficulty!r}",
            errors={'difficulty': list(StudyConfig.DIFFICULTIES)},
        )
    if not _accepts_input(state) or not state.revealed:
        return Transition(state)

    card_id = state.current_card.id
    is_correct = difficulty != StudyConfig.INCORRECT
    rated = state if is_correct else replace(state, wrong_ids=_with(state.wrong_ids, card_id))

    advanced = _advance(rated)
    return Transition(advanced.state, (RecordReview(card_id, is_correct),) + advanced.effects)


def skip(state: ReviewState) -> Transition:
    """Bypass scoring for the current card and advance."""
    if not _accepts_input(state):
        return Transition(state)
    skipped = replace(state, skipped_ids=_with(state.skipped_ids, state.current_card.id))
    return _advance(skipped)


def go_back(state: ReviewState) -> Transition:
    if not _accepts_input(state) or state.index == 0:
        return Transition(state)
    return Transition(_move_to(state, state.index - 1))


def go_forward(state: ReviewState) -> Transition:
    if not _accepts_input(state) or state.is_last_card:
        return Transition(state)
    return Transition(_move_to(state, state.index + 1))


def toggle_pause(state: ReviewState) -> Transition:
    if state.status != ACTIVE:
        return Transition(state)
    return Transition(replace(state, paused=not state.paused))


def toggle_bookmark(state: ReviewState) -> Transition:
    if not _accepts_input(state):
        return Transition(state)
    card_id = state.current_card.id
    if card_id in state.bookmarked_ids:
        bookmarked = tuple(i for i in state.bookmarked_ids if i != card_id)
    else:
        bookmarked = state.bookmarked_ids + (card_id,)
    return Transition(replace(state, bookmarked_ids=bookmarked))


def tick(state: ReviewState) -> Transition:
    """Advance the clocks by one second.

    Suspended while paused. In timed mode the countdown runs only on a
    revealed card and, on reaching zero, rates the card as ``medium``.
    """
    if not _accepts_input(state):
        return Transition(state)

    ticked = replace(state, elapsed_seconds=state.elapsed_seconds + 1)
    if not (ticked.is_timed and ticked.revealed):
        return Transition(ticked)

    if ticked.time_left > 1:
        return Transition(replace(ticked, time_left=ticked.time_left - 1))

    expired = rate(ticked, StudyConfig.TIMEOUT_DIFFICULTY)
    return Transition(replace(expired.state, time_left=ticked.card_duration), expired.effects)
