from typing import List, Optional

from studyloop_app.models import Card, Deck, db

from ..exceptions import StudyNotFoundError


class CatalogService:
    """
    Read-only access to the deck/card catalog.
    Every lookup is scoped to the owning user.
    """

    @staticmethod
    def get_deck(deck_id, user_id) -> Optional[Deck]:
        return Deck.query.filter_by(id=deck_id, user_id=user_id).first()

    @staticmethod
    def require_deck(deck_id, user_id) -> Deck:
        deck = CatalogService.get_deck(deck_id, user_id)
        if deck is None:
            raise StudyNotFoundError('Deck not found', resource='deck')
        return deck

    @staticmethod
    def get_deck_cards(deck_id, user_id) -> List[Card]:
        """Cards of an owned deck, most recently updated first."""
        return (
            Card.query.join(Deck, Card.deck_id == Deck.id)
            .filter(Card.deck_id == deck_id, Deck.user_id == user_id)
            .order_by(Card.updated_at.desc(), Card.id.desc())
            .all()
        )

    @staticmethod
    def count_deck_cards(deck_id) -> int:
        return db.session.query(db.func.count(Card.id)).filter(Card.deck_id == deck_id).scalar() or 0

    @staticmethod
    def require_card_in_deck(card_id, deck_id, user_id) -> Card:
        card = (
            Card.query.join(Deck, Card.deck_id == Deck.id)
            .filter(Card.id == card_id, Card.deck_id == deck_id, Deck.user_id == user_id)
            .first()
        )
        if card is None:
            raise StudyNotFoundError('Card not found', resource='card')
        return card
