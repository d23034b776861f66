"""Core domain models for flashcard review and practice tests."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

WrongSet = frozenset[str]


@dataclass(frozen=True)
class FlashcardItem:
    """One self-graded flashcard.

    `id` is already namespaced with its deck prefix, so it is unique across decks.
    """

    id: str
    deck_id: str
    question: str
    answer: str


@dataclass(frozen=True)
class Deck:
    """Named, immutable collection of flashcards."""

    id: str
    title: str
    cards: tuple[FlashcardItem, ...]

    def card_ids(self) -> frozenset[str]:
        return frozenset(card.id for card in self.cards)

    def __len__(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class Option:
    """One multiple-choice option."""

    key: str
    text: str


@dataclass(frozen=True)
class QuestionView:
    """Practice-test question as shown before answering (no answer key)."""

    id: int
    category: str
    question: str
    options: tuple[Option, ...]

    def option_keys(self) -> tuple[str, ...]:
        return tuple(option.key for option in self.options)


@dataclass(frozen=True)
class QuestionItem:
    """Practice-test question including its answer key."""

    id: int
    category: str
    question: str
    options: tuple[Option, ...]
    correct_option_key: str

    def view(self) -> QuestionView:
        """Return the question with the answer key withheld."""
        return QuestionView(id=self.id, category=self.category, question=self.question, options=self.options)


@dataclass(frozen=True)
class Category:
    """Named group of practice-test questions."""

    name: str
    questions: tuple[QuestionItem, ...]


@dataclass(frozen=True)
class CategorySummary:
    """Category listing row."""

    name: str
    count: int


@dataclass(frozen=True)
class CardOutcome:
    """Self-graded result for one flashcard."""

    item_id: str
    correct: bool


@dataclass(frozen=True)
class AnswerOutcome:
    """Checked result for one practice-test question."""

    item: QuestionView
    selected_key: str
    correct: bool
    correct_key: str


def compose_decks(decks: Iterable[Deck], deck_id: str, title: str) -> Deck:
    """Union several decks into one, preserving deck then card order."""
    cards: list[FlashcardItem] = []
    seen: dict[str, str] = {}
    for deck in decks:
        for card in deck.cards:
            previous = seen.get(card.id)
            if previous is not None:
                raise ValueError(f"Duplicate card id: {card.id} (in {previous} and {deck.id})")
            seen[card.id] = deck.id
            cards.append(card)
    return Deck(id=deck_id, title=title, cards=tuple(cards))
