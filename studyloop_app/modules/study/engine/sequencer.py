"""Card sequencing per study mode.

The sequence is computed once at session start and handed to the state
machine as a tuple, so it cannot change while the session runs.
"""

import random
from typing import Iterable, List, Optional, Sequence

from ..config import StudyConfig
from ..exceptions import EmptyDeckError, StudyValidationError
from ..schemas import CardItem


def _as_card_item(card) -> CardItem:
    if isinstance(card, CardItem):
        return card
    if isinstance(card, dict):
        return CardItem(id=card['id'], front=card.get('front', ''), back=card.get('back', ''))
    return CardItem(id=card.id, front=card.front, back=card.back)


def fisher_yates_shuffle(items: Sequence, rng: Optional[random.Random] = None) -> List:
    """Return a uniformly random permutation of ``items``.

    Walks from the last index down, swapping each slot with a uniformly
    chosen index in ``[0, i]``.
    """
    rng = rng or random.Random()
    arranged = list(items)
    for i in range(len(arranged) - 1, 0, -1):
        j = rng.randint(0, i)
        arranged[i], arranged[j] = arranged[j], arranged[i]
    return arranged


def sequence_cards(cards: Iterable, mode: str, rng: Optional[random.Random] = None) -> List[CardItem]:
    """Derive the ordered working set for a session.

    Args:
        cards: Deck cards in source order (``Card`` rows, dicts or
            ``CardItem``).
        mode: ``standard``, ``shuffle`` or ``timed``.
        rng: Random source for ``shuffle`` (tests pass a seeded one).

    Raises:
        EmptyDeckError: If ``cards`` is empty.
        StudyValidationError: If ``mode`` is unknown.
    """
    if mode not in StudyConfig.MODES:
        raise StudyValidationError(f"Unknown study mode {mode!r}", errors={'mode': list(StudyConfig.MODES)})

    items = [_as_card_item(card) for card in cards]
    if not items:
        raise EmptyDeckError()

    if mode == 'shuffle':
        return fisher_yates_shuffle(items, rng)
    # standard and timed keep source order; timing is the state machine's job
    return items
