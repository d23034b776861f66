"""Read-only access to flashcard decks and the practice-test bank."""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from .content_loader import Content, load_content, load_content_from_dir
from .models import Category, CategorySummary, Deck, QuestionItem, QuestionView, compose_decks
from .sampler import clamp_count, sample
from .scoring import AnswerCheck, check_answer

DEFAULT_QUESTION_COUNT = 20
COMBINED_DECK_ID = "all"


class ValidationError(ValueError):
    """Request is missing identifiers or carries an unusable value."""


class NotFoundError(KeyError):
    """Requested deck, category, or question does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Not found"


class CheckUnavailableError(RuntimeError):
    """Answer check could not be completed; retrying is safe."""


class ItemRepository:
    """Immutable decks and categories shared by every session."""

    def __init__(self, decks: Mapping[str, Deck], categories: Mapping[str, Category]) -> None:
        self.decks: Mapping[str, Deck] = MappingProxyType(dict(decks))
        self.categories: Mapping[str, Category] = MappingProxyType(dict(categories))
        self._combined = compose_decks(self.decks.values(), COMBINED_DECK_ID, "All decks")

    @classmethod
    def from_content(cls, content: Content) -> ItemRepository:
        return cls(content.decks, content.categories)

    @classmethod
    def from_bundled(cls) -> ItemRepository:
        """Build from the packaged content."""
        return cls.from_content(load_content())

    @classmethod
    def from_dir(cls, path: Path | str) -> ItemRepository:
        """Build from a content directory with `decks/` and `tests/` folders."""
        return cls.from_content(load_content_from_dir(Path(path)))

    def deck_ids(self) -> list[str]:
        return list(self.decks)

    def get_deck(self, deck_id: str) -> Deck:
        """Return one deck, or the union of all decks for `COMBINED_DECK_ID`."""
        if deck_id == COMBINED_DECK_ID:
            return self._combined
        deck = self.decks.get(deck_id)
        if deck is None:
            raise NotFoundError(f"Deck not found: {deck_id}")
        return deck

    def combined_deck(self) -> Deck:
        return self._combined

    def get_categories(self) -> list[CategorySummary]:
        """Return category names with question counts, in content order."""
        return [
            CategorySummary(name=category.name, count=len(category.questions)) for category in self.categories.values()
        ]

    def question_pool(self, category_names: Iterable[str]) -> tuple[QuestionView, ...]:
        """Return every question of the selected categories without answer keys."""
        names = _clean_names(category_names)
        if not names:
            raise ValidationError("Categories required")
        missing = sorted(name for name in names if name not in self.categories)
        if missing:
            raise NotFoundError(f"Category not found: {', '.join(missing)}")
        return tuple(
            question.view()
            for category in self.categories.values()
            if category.name in names
            for question in category.questions
        )

    def get_questions(
        self,
        category_names: Iterable[str],
        count: int = DEFAULT_QUESTION_COUNT,
        rng: random.Random | None = None,
    ) -> list[QuestionView]:
        """Return a random draw of up to `count` questions from the selected categories."""
        if count < 1:
            raise ValidationError(f"Question count must be at least 1, got {count}.")
        pool = self.question_pool(category_names)
        return sample(pool, clamp_count(count, len(pool)), rng)

    def check_answer(self, category: str, question_id: int | None, selected_key: str) -> AnswerCheck:
        """Check a submitted option against the stored answer key."""
        if not category or question_id is None or not selected_key:
            raise ValidationError("Missing required fields")
        found = self.categories.get(category)
        if found is None:
            raise NotFoundError("Category not found")
        question = _find_question(found, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return check_answer(question, selected_key)


def _find_question(category: Category, question_id: int) -> QuestionItem | None:
    for question in category.questions:
        if question.id == question_id:
            return question
    return None


def _clean_names(category_names: Iterable[str]) -> set[str]:
    return {name.strip() for name in category_names if name and name.strip()}
