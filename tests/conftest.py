from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from quizdeck.models import Category, Deck, FlashcardItem, Option, QuestionItem  # noqa: E402
from quizdeck.repository import ItemRepository  # noqa: E402


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide per-test temporary directory path inside the workspace.

    Overrides pytest's builtin ``tmp_path`` so temporary files stay under
    ``.tmp_pytest/`` in the project directory.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


def make_card(deck_id: str, raw_id: str, prefix: str | None = None) -> FlashcardItem:
    return FlashcardItem(
        id=f"{prefix or deck_id}-{raw_id}", deck_id=deck_id, question=f"Q {raw_id}", answer=f"A {raw_id}"
    )


def make_question(category: str, question_id: int, correct: str = "B") -> QuestionItem:
    return QuestionItem(
        id=question_id,
        category=category,
        question=f"{category} question {question_id}",
        options=(Option("A", "first"), Option("B", "second"), Option("C", "third")),
        correct_option_key=correct,
    )


@pytest.fixture
def small_repository() -> ItemRepository:
    """Two decks (core: 3 cards, acronyms: 2 cards) and two categories (catA: 3, catB: 2)."""
    core = Deck(id="core", title="Core", cards=tuple(make_card("core", str(i)) for i in range(1, 4)))
    acronyms = Deck(
        id="acronyms",
        title="Acronyms",
        cards=tuple(make_card("acronyms", str(i), prefix="acronym") for i in range(1, 3)),
    )
    cat_a = Category(name="catA", questions=tuple(make_question("catA", i) for i in range(1, 4)))
    cat_b = Category(name="catB", questions=tuple(make_question("catB", i, correct="A") for i in range(1, 3)))
    return ItemRepository({"core": core, "acronyms": acronyms}, {"catA": cat_a, "catB": cat_b})
