"""
Central signal registry.

Uses blinker so modules can react to study events without importing each
other.

Usage:
    # Publisher
    from studyloop_app.core.signals import card_reviewed
    card_reviewed.send(None, user_id='u1', card_id=2, ...)

    # Subscriber (in a module's events.py)
    @card_reviewed.connect
    def on_card_reviewed(sender, **kwargs):
        ...
"""
from blinker import Namespace

study_signals = Namespace()

# Fired after a rating has been persisted
# Payload: user_id, session_id, card_id, deck_id, is_correct, mastery_level
card_reviewed = study_signals.signal('card_reviewed')

# Fired when a study session is marked completed (first completion only)
# Payload: user_id, session_id, deck_id, cards_studied, correct_answers
session_completed = study_signals.signal('session_completed')

# Fired when a new session record is created (not on resume)
# Payload: user_id, session_id, deck_id, mode, total_cards
session_started = study_signals.signal('session_started')
