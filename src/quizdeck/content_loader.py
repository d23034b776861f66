"""Load flashcard decks and the practice-test bank from JSON resources."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

from .models import Category, Deck, FlashcardItem, Option, QuestionItem

CONTENT_PACKAGE = "quizdeck.content"
DECKS_DIR = "decks"
TESTS_DIR = "tests"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Content:
    """Everything loaded from one content root."""

    decks: dict[str, Deck]
    categories: dict[str, Category]


def _card_from_dict(deck_id: str, prefix: str, raw: dict[str, Any]) -> FlashcardItem:
    """Build a namespaced flashcard from raw JSON content."""
    raw_id = str(raw.get("id", "")).strip()
    if not raw_id:
        raise ValueError(f"Deck '{deck_id}' has a card without an id.")
    question = str(raw.get("question", "")).strip()
    answer = str(raw.get("answer", "")).strip()
    if not question or not answer:
        raise ValueError(f"Card '{prefix}-{raw_id}' needs both a question and an answer.")
    return FlashcardItem(id=f"{prefix}-{raw_id}", deck_id=deck_id, question=question, answer=answer)


def _deck_from_dict(raw: dict[str, Any]) -> Deck:
    """Build a deck from raw JSON content."""
    deck_id = str(raw["id"]).strip()
    prefix = str(raw.get("prefix") or deck_id).strip()
    cards = tuple(_card_from_dict(deck_id, prefix, item) for item in raw.get("cards", []))
    seen: set[str] = set()
    for card in cards:
        if card.id in seen:
            raise ValueError(f"Duplicate card id: {card.id} (in {deck_id})")
        seen.add(card.id)
    return Deck(id=deck_id, title=str(raw.get("title") or deck_id), cards=cards)


def _question_from_dict(category: str, raw: dict[str, Any]) -> QuestionItem:
    """Build a practice-test question and check its answer key."""
    try:
        question_id = int(raw["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Category '{category}' has a question with an invalid id: {raw.get('id')!r}") from exc

    options: list[Option] = []
    for item in raw.get("options", []):
        key = str(item.get("key", "")).strip()
        if len(key) != 1:
            raise ValueError(f"Question {category}/{question_id} has an invalid option key: {key!r}")
        options.append(Option(key=key, text=str(item.get("text", "")).strip()))

    keys = [option.key for option in options]
    if len(keys) < 2:
        raise ValueError(f"Question {category}/{question_id} needs at least two options.")
    if len(set(keys)) != len(keys):
        raise ValueError(f"Question {category}/{question_id} has duplicate option keys: {', '.join(keys)}")

    correct_key = str(raw.get("correctOptionKey", "")).strip()
    if correct_key not in keys:
        raise ValueError(
            f"Question {category}/{question_id} has correct key {correct_key!r} not among options {', '.join(keys)}."
        )

    return QuestionItem(
        id=question_id,
        category=category,
        question=str(raw.get("question", "")).strip(),
        options=tuple(options),
        correct_option_key=correct_key,
    )


def _category_from_dict(raw: dict[str, Any]) -> Category:
    """Build a category from raw JSON content."""
    name = str(raw["category"]).strip()
    questions = tuple(_question_from_dict(name, item) for item in raw.get("questions", []))
    seen: set[int] = set()
    for question in questions:
        if question.id in seen:
            raise ValueError(f"Duplicate question id {question.id} in category '{name}'.")
        seen.add(question.id)
    return Category(name=name, questions=questions)


def _read_json(entry: Traversable | Path) -> Any:
    return json.loads(entry.read_text(encoding="utf-8-sig"))


def _build_content(deck_files: Iterable[Traversable | Path], test_files: Iterable[Traversable | Path]) -> Content:
    decks: dict[str, Deck] = {}
    for entry in deck_files:
        deck = _deck_from_dict(_read_json(entry))
        if deck.id in decks:
            raise ValueError(f"Duplicate deck id: {deck.id}")
        decks[deck.id] = deck
    _validate_unique_card_ids(decks)

    categories: dict[str, Category] = {}
    for entry in test_files:
        raw = _read_json(entry)
        for item in raw.get("categories", []):
            category = _category_from_dict(item)
            if category.name in categories:
                raise ValueError(f"Duplicate category: {category.name}")
            categories[category.name] = category

    logger.info(
        "Loaded %d decks (%d cards) and %d categories (%d questions)",
        len(decks),
        sum(len(deck.cards) for deck in decks.values()),
        len(categories),
        sum(len(category.questions) for category in categories.values()),
    )
    return Content(decks=decks, categories=categories)


def load_content() -> Content:
    """Load bundled decks and test bank."""
    root = resources.files(CONTENT_PACKAGE)
    return _build_content(_json_entries(root / DECKS_DIR), _json_entries(root / TESTS_DIR))


def load_content_from_dir(path: Path) -> Content:
    """Load decks and test bank from a directory with `decks/` and `tests/` subfolders."""
    return _build_content(sorted((path / DECKS_DIR).glob("*.json")), sorted((path / TESTS_DIR).glob("*.json")))


def _json_entries(folder: Traversable) -> list[Traversable]:
    if not folder.is_dir():
        return []
    return sorted((entry for entry in folder.iterdir() if entry.name.endswith(".json")), key=lambda item: item.name)


def _validate_unique_card_ids(decks: dict[str, Deck]) -> None:
    """Validate that namespaced card ids are unique across all decks."""
    seen: dict[str, str] = {}
    for deck in decks.values():
        for card in deck.cards:
            previous = seen.get(card.id)
            if previous is not None:
                raise ValueError(f"Duplicate card id: {card.id} (in {previous} and {deck.id})")
            seen[card.id] = deck.id
