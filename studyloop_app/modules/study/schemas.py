"""
Study Schemas
=============
marshmallow schemas validate presentation-layer input; dataclass DTOs carry
results between the engine, the services and the API.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from marshmallow import Schema, ValidationError, fields, validate

from .config import StudyConfig
from .exceptions import StudyValidationError


# ==============================================================================
# Input schemas
# ==============================================================================

_positive_id = validate.Range(min=1, error='Must be a positive integer.')


class StartSessionSchema(Schema):
    deck_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='deckId')
    mode = fields.Str(load_default=StudyConfig.DEFAULT_MODE, validate=validate.OneOf(StudyConfig.MODES))


class ReviewCardSchema(Schema):
    session_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='sessionId')
    card_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='cardId')
    deck_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='deckId')
    is_correct = fields.Bool(required=True, truthy={True}, falsy={False}, data_key='isCorrect')


class CompleteSessionSchema(Schema):
    session_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='sessionId')
    deck_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='deckId')


class DeckProgressSchema(Schema):
    deck_id = fields.Int(required=True, strict=True, validate=_positive_id, data_key='deckId')


class HistorySchema(Schema):
    limit = fields.Int(load_default=StudyConfig.DEFAULT_HISTORY_LIMIT, validate=validate.Range(min=1, max=100))


def load_or_raise(schema: Schema, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate ``data`` with ``schema``, raising ``StudyValidationError``."""
    try:
        return schema.load(data or {})
    except ValidationError as exc:
        raise StudyValidationError('Invalid input', errors=exc.messages) from exc


# ==============================================================================
# Dataclass DTOs
# ==============================================================================

@dataclass(frozen=True)
class CardItem:
    """One card of the working set, as consumed by the state machine."""
    id: int
    front: str
    back: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SessionStart:
    """Result of ``SessionLedgerService.start``."""
    session: Any  # StudySession
    sequence: Tuple[CardItem, ...]
    resumed: bool = False

    @property
    def session_id(self) -> int:
        return self.session.id


@dataclass
class DeckProgress:
    total_cards: int = 0
    studied_cards: int = 0
    mastered_cards: int = 0
    average_mastery: int = 0
    progress_percentage: int = 0
    card_progress: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalCards': self.total_cards,
            'studiedCards': self.studied_cards,
            'masteredCards': self.mastered_cards,
            'averageMastery': self.average_mastery,
            'progressPercentage': self.progress_percentage,
            'cardProgress': list(self.card_progress),
        }


@dataclass
class SessionReport:
    """Final statistics of one session attempt."""
    correct: int = 0
    incorrect: int = 0
    accuracy: int = 0
    skipped: int = 0
    total_elapsed_seconds: int = 0
    average_seconds_per_card: Optional[float] = None
    wrong_card_ids: List[int] = field(default_factory=list)
    bookmarked_card_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'correct': self.correct,
            'incorrect': self.incorrect,
            'accuracy': self.accuracy,
            'skipped': self.skipped,
            'totalElapsedSeconds': self.total_elapsed_seconds,
            'averageSecondsPerCard': self.average_seconds_per_card,
            'wrongCardIds': list(self.wrong_card_ids),
            'bookmarkedCardIds': list(self.bookmarked_card_ids),
        }
