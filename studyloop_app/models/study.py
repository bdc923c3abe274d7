from datetime import datetime, timezone

from sqlalchemy import text

from ..db_instance import db


def _utcnow():
    return datetime.now(timezone.utc)


class StudySession(db.Model):
    """
    One attempt at studying a deck.

    At most one non-completed session may exist per (deck, user). The partial
    unique index below enforces that at the storage layer so two concurrent
    starts cannot both insert.
    """
    __tablename__ = 'study_sessions'
    __table_args__ = (
        db.Index(
            'uq_study_sessions_active_deck_user',
            'deck_id',
            'user_id',
            unique=True,
            sqlite_where=text('completed = 0'),
            postgresql_where=text('completed = false'),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    deck_id = db.Column(db.Integer, db.ForeignKey('decks.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(255), nullable=False, index=True)
    mode = db.Column(db.String(50), nullable=False)

    # Snapshot taken at creation, never updated
    total_cards = db.Column(db.Integer, nullable=False)
    cards_studied = db.Column(db.Integer, nullable=False, default=0)
    correct_answers = db.Column(db.Integer, nullable=False, default=0)

    completed = db.Column(db.Boolean, nullable=False, default=False)
    started_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    completed_at = db.Column(db.DateTime(timezone=True))

    deck = db.relationship(
        'Deck',
        backref=db.backref('study_sessions', lazy='dynamic', cascade='all, delete-orphan', passive_deletes=True),
        lazy=True,
    )

    def to_dict(self):
        """Serialize session to dictionary."""
        return {
            'id': self.id,
            'deck_id': self.deck_id,
            'user_id': self.user_id,
            'mode': self.mode,
            'total_cards': self.total_cards,
            'cards_studied': self.cards_studied,
            'correct_answers': self.correct_answers,
            'completed': self.completed,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self):
        return f'<StudySession {self.id} deck={self.deck_id} {self.cards_studied}/{self.total_cards}>'


class CardProgress(db.Model):
    """Cumulative mastery record for one (card, user) pair."""

    __tablename__ = 'card_progress'
    __table_args__ = (
        db.UniqueConstraint('card_id', 'user_id', name='uq_card_progress_card_user'),
        db.Index('ix_card_progress_deck_user', 'deck_id', 'user_id'),
    )

    id = db.Column(db.Integer, primary_key=True)
    card_id = db.Column(db.Integer, db.ForeignKey('cards.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(255), nullable=False)
    # Denormalized so deck aggregates need no join through the catalog
    deck_id = db.Column(db.Integer, db.ForeignKey('decks.id', ondelete='CASCADE'), nullable=False)

    total_reviews = db.Column(db.Integer, nullable=False, default=0)
    correct_reviews = db.Column(db.Integer, nullable=False, default=0)
    last_reviewed = db.Column(db.DateTime(timezone=True))
    mastery_level = db.Column(db.Integer, nullable=False, default=0)  # 0-100

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
