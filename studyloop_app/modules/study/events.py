"""
Event handlers for the study module.

Activity logging hooked onto the study signals. Publishers never import
this module; ``setup_module`` imports it once so the decorators run.
"""
from flask import current_app

from studyloop_app.core.signals import card_reviewed, session_completed, session_started


@session_started.connect
def on_session_started(sender, **kwargs):
    current_app.logger.info(
        f"[STUDY] User {kwargs.get('user_id')} started session {kwargs.get('session_id')} "
        f"on deck {kwargs.get('deck_id')} ({kwargs.get('mode')}, {kwargs.get('total_cards')} cards)"
    )


@card_reviewed.connect
def on_card_reviewed(sender, **kwargs):
    current_app.logger.debug(
        f"[STUDY] Card {kwargs.get('card_id')} -> mastery {kwargs.get('mastery_level')} "
        f"(user={kwargs.get('user_id')}, correct={kwargs.get('is_correct')})"
    )


@session_completed.connect
def on_session_completed(sender, **kwargs):
    studied = kwargs.get('cards_studied') or 0
    correct = kwargs.get('correct_answers') or 0
    current_app.logger.info(
        f"[STUDY] User {kwargs.get('user_id')} finished session {kwargs.get('session_id')}: "
        f"{correct}/{studied} correct"
    )


def register_events():
    """Listeners connect at import time; blinker ignores repeated connects."""
    return [on_session_started, on_card_reviewed, on_session_completed]
