"""Track flashcards the learner most recently got wrong."""

from __future__ import annotations

from enum import Enum

from .models import Deck, FlashcardItem, WrongSet


class ReviewMode(Enum):
    """Which cards of a deck a flashcard session draws from."""

    ALL = "all"
    WRONG = "wrong"


def on_outcome(wrong_set: WrongSet, item_id: str, was_correct: bool) -> WrongSet:
    """Apply one self-graded answer: correct clears the id, wrong marks it."""
    if was_correct:
        return wrong_set - {item_id}
    return wrong_set | {item_id}


def pool_for(deck: Deck, mode: ReviewMode, wrong_set: WrongSet) -> tuple[FlashcardItem, ...]:
    """Return the deck's cards eligible for a session in the given mode.

    Ids in `wrong_set` that belong to other decks are ignored.
    """
    if mode is ReviewMode.ALL:
        return deck.cards
    return tuple(card for card in deck.cards if card.id in wrong_set)


def clear(wrong_set: WrongSet, deck: Deck) -> WrongSet:
    """Forget wrong marks for one deck, leaving other decks' marks intact."""
    return wrong_set - deck.card_ids()


def wrong_count(deck: Deck, wrong_set: WrongSet) -> int:
    """Number of the deck's cards currently marked wrong."""
    return sum(1 for card in deck.cards if card.id in wrong_set)
