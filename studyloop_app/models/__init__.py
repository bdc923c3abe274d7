"""Database models package for StudyLoop."""

from ..db_instance import db

from .user import User
from .deck import Card, Deck
from .study import CardProgress, StudySession

__all__ = [
    'db',
    'User',
    'Deck',
    'Card',
    'StudySession',
    'CardProgress',
]
