import pytest
from sqlalchemy.exc import IntegrityError

from studyloop_app.core.signals import session_completed, session_started
from studyloop_app.models import StudySession, db
from studyloop_app.modules.study.exceptions import (
    ActiveSessionError,
    EmptyDeckError,
    SessionNotFoundError,
    StudyNotFoundError,
    StudyValidationError,
)
from studyloop_app.modules.study.services import CatalogService, SessionLedgerService

from conftest import make_deck


def test_start_creates_snapshot(app, user, deck):
    started = SessionLedgerService.start(deck.id, user.user_id, 'standard')

    session = started.session
    assert started.resumed is False
    assert session.total_cards == 3
    assert session.cards_studied == 0
    assert session.correct_answers == 0
    assert session.completed is False
    assert len(started.sequence) == 3


def test_start_twice_resumes_same_session(app, user, deck):
    first = SessionLedgerService.start(deck.id, user.user_id, 'standard')
    second = SessionLedgerService.start(deck.id, user.user_id, 'shuffle')

    assert second.resumed is True
    assert second.session_id == first.session_id
    # The stored mode wins over the requested one
    assert second.session.mode == 'standard'
    assert StudySession.query.count() == 1


def test_empty_deck_creates_no_session(app, user):
    empty = make_deck(user.user_id, title='Empty', cards=())

    with pytest.raises(EmptyDeckError):
        SessionLedgerService.start(empty.id, user.user_id, 'standard')

    assert StudySession.query.count() == 0


def test_foreign_deck_is_not_found(app, other_user, deck):
    with pytest.raises(StudyNotFoundError):
        SessionLedgerService.start(deck.id, other_user.user_id, 'standard')


def test_unknown_mode_is_rejected(app, user, deck):
    with pytest.raises(StudyValidationError):
        SessionLedgerService.start(deck.id, user.user_id, 'marathon')


def test_record_review_increments_counters(app, user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id

    assert SessionLedgerService.record_review(session_id, user.user_id, True) is True
    assert SessionLedgerService.record_review(session_id, user.user_id, False) is True

    session = SessionLedgerService.get_session(session_id, user.user_id)
    db.session.refresh(session)
    assert session.cards_studied == 2
    assert session.correct_answers == 1


def test_counters_never_exceed_total(app, user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id

    results = [SessionLedgerService.record_review(session_id, user.user_id, True) for _ in range(5)]

    assert results == [True, True, True, False, False]
    session = SessionLedgerService.get_session(session_id, user.user_id)
    db.session.refresh(session)
    assert session.cards_studied == 3
    assert session.correct_answers == 3


def test_record_review_rejects_foreign_session(app, user, other_user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id

    with pytest.raises(SessionNotFoundError):
        SessionLedgerService.record_review(session_id, other_user.user_id, True)


def test_complete_is_idempotent(app, user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    SessionLedgerService.record_review(session_id, user.user_id, True)

    assert SessionLedgerService.complete(session_id, user.user_id) is True
    completed_at = SessionLedgerService.get_session(session_id, user.user_id).completed_at

    assert SessionLedgerService.complete(session_id, user.user_id) is False
    session = SessionLedgerService.get_session(session_id, user.user_id)
    db.session.refresh(session)
    assert session.completed is True
    assert session.completed_at == completed_at
    assert session.cards_studied == 1


def test_record_review_after_complete_is_rejected(app, user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    SessionLedgerService.complete(session_id, user.user_id)

    with pytest.raises(SessionNotFoundError):
        SessionLedgerService.record_review(session_id, user.user_id, True)


def test_complete_foreign_session_is_not_found(app, user, other_user, deck):
    session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id

    with pytest.raises(SessionNotFoundError):
        SessionLedgerService.complete(session_id, other_user.user_id)


def test_new_session_after_completion(app, user, deck):
    first = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    SessionLedgerService.complete(first, user.user_id)

    second = SessionLedgerService.start(deck.id, user.user_id, 'timed')

    assert second.resumed is False
    assert second.session_id != first
    assert second.session.mode == 'timed'


def test_second_active_session_violates_unique_index(app, user, deck):
    SessionLedgerService.start(deck.id, user.user_id, 'standard')

    db.session.add(StudySession(deck_id=deck.id, user_id=user.user_id, mode='standard', total_cards=3))
    with pytest.raises(IntegrityError):
        db.session.flush()
    db.session.rollback()


def test_history_is_newest_first_and_limited(app, user, deck):
    ids = []
    for _ in range(3):
        session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
        SessionLedgerService.complete(session_id, user.user_id)
        ids.append(session_id)

    history = SessionLedgerService.get_user_sessions(user.user_id, limit=2)

    assert [row['session']['id'] for row in history] == [ids[2], ids[1]]
    assert history[0]['deck'] == {'id': deck.id, 'title': 'Capitals'}


def test_signals_fire_once(app, user, deck):
    started, completed = [], []

    with session_started.connected_to(lambda sender, **kw: started.append(kw)), \
            session_completed.connected_to(lambda sender, **kw: completed.append(kw)):
        session_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
        SessionLedgerService.start(deck.id, user.user_id, 'standard')
        SessionLedgerService.record_review(session_id, user.user_id, True)
        SessionLedgerService.complete(session_id, user.user_id)
        SessionLedgerService.complete(session_id, user.user_id)

    assert len(started) == 1
    assert started[0]['total_cards'] == 3
    assert len(completed) == 1
    assert completed[0]['cards_studied'] == 1
    assert completed[0]['correct_answers'] == 1


def test_start_resumes_winner_after_concurrent_insert(app, user, deck, monkeypatch):
    winner_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    lookup = SessionLedgerService.get_active_session
    calls = []

    def stale_then_fresh(deck_id, user_id):
        # First read misses the winner, as if it committed just after
        calls.append(deck_id)
        if len(calls) == 1:
            return None
        return lookup(deck_id, user_id)

    monkeypatch.setattr(SessionLedgerService, 'get_active_session', staticmethod(stale_then_fresh))

    started = SessionLedgerService.start(deck.id, user.user_id, 'standard')

    assert len(calls) == 2
    assert started.resumed is True
    assert started.session_id == winner_id
    assert StudySession.query.count() == 1


def test_card_subset_is_rejected_while_a_session_is_open(app, user, deck):
    open_id = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    subset = CatalogService.get_deck_cards(deck.id, user.user_id)[:1]

    with pytest.raises(ActiveSessionError) as excinfo:
        SessionLedgerService.start(deck.id, user.user_id, 'standard', cards=subset)

    assert excinfo.value.session_id == open_id
    assert excinfo.value.status_code == 409
    assert StudySession.query.count() == 1


def test_card_subset_starts_a_new_session_after_completion(app, user, deck):
    first = SessionLedgerService.start(deck.id, user.user_id, 'standard').session_id
    SessionLedgerService.complete(first, user.user_id)
    subset = CatalogService.get_deck_cards(deck.id, user.user_id)[:1]

    started = SessionLedgerService.start(deck.id, user.user_id, 'standard', cards=subset)

    assert started.resumed is False
    assert started.session.total_cards == 1
    assert len(started.sequence) == 1


def test_resumed_shuffle_keeps_the_same_cards(app, user, deck):
    first = SessionLedgerService.start(deck.id, user.user_id, 'shuffle')
    resumed = SessionLedgerService.start(deck.id, user.user_id, 'shuffle')

    assert resumed.resumed is True
    assert sorted(c.id for c in resumed.sequence) == sorted(c.id for c in first.sequence)
    assert len(resumed.sequence) == resumed.session.total_cards
