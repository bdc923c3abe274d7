"""
Study engine: sequencing, the review state machine, its tick source and
reporting.
Framework-agnostic; persistence goes through a ``StudyGateway``.
"""

from .machine import ReviewStateMachine, StudyGateway
from .reporter import build_session_report
from .sequencer import fisher_yates_shuffle, sequence_cards
from .state import ReviewState
from .ticker import SessionTicker

__all__ = [
    'ReviewStateMachine',
    'StudyGateway',
    'SessionTicker',
    'ReviewState',
    'build_session_report',
    'sequence_cards',
    'fisher_yates_shuffle',
]
