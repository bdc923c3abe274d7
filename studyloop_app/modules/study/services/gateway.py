from ..engine.machine import StudyGateway
from .ledger_service import SessionLedgerService
from .review_service import ReviewService


class ServiceGateway(StudyGateway):
    """``StudyGateway`` backed by the SQLAlchemy services. Needs an app context."""

    def start_session(self, deck_id, user_id, mode, cards=None):
        started = SessionLedgerService.start(deck_id, user_id, mode, cards=cards)
        return started.session_id, started.sequence

    def record_review(self, session_id, user_id, deck_id, card_id, is_correct):
        ReviewService.record(session_id, user_id, deck_id, card_id, is_correct)

    def complete_session(self, session_id, user_id):
        SessionLedgerService.complete(session_id, user_id)

    def get_session(self, session_id, user_id):
        return SessionLedgerService.get_session(session_id, user_id)
