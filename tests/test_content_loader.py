import json
from pathlib import Path
from typing import Any

from quizdeck.content_loader import load_content, load_content_from_dir
from quizdeck.repository import ItemRepository


def _write_content(root: Path, decks: list[dict[str, Any]], tests: list[dict[str, Any]]) -> Path:
    (root / "decks").mkdir(parents=True, exist_ok=True)
    (root / "tests").mkdir(parents=True, exist_ok=True)
    for index, deck in enumerate(decks):
        (root / "decks" / f"{index}.json").write_text(json.dumps(deck), encoding="utf-8")
    for index, bank in enumerate(tests):
        (root / "tests" / f"{index}.json").write_text(json.dumps(bank), encoding="utf-8")
    return root


def _question(question_id: int, correct: str = "A") -> dict[str, Any]:
    return {
        "id": question_id,
        "question": f"Question {question_id}?",
        "options": [{"key": "A", "text": "yes"}, {"key": "B", "text": "no"}],
        "correctOptionKey": correct,
    }


def test_load_bundled_content() -> None:
    content = load_content()
    assert "core" in content.decks
    assert "acronyms" in content.decks
    assert all(card.id.startswith("acronym-") for card in content.decks["acronyms"].cards)
    assert all(card.id.startswith("core-") for card in content.decks["core"].cards)
    for category in content.categories.values():
        for question in category.questions:
            keys = [option.key for option in question.options]
            assert keys.count(question.correct_option_key) == 1


def test_load_content_from_dir(tmp_path: Path) -> None:
    root = _write_content(
        tmp_path / "content",
        decks=[
            {"id": "core", "title": "Core", "cards": [{"id": "1", "question": "Q", "answer": "A"}]},
            {"id": "acronyms", "prefix": "acronym", "cards": [{"id": 1, "question": "LTV", "answer": "Loan to value"}]},
        ],
        tests=[{"categories": [{"category": "Finance", "questions": [_question(1), _question(2, "B")]}]}],
    )
    content = load_content_from_dir(root)
    assert content.decks["core"].cards[0].id == "core-1"
    assert content.decks["acronyms"].cards[0].id == "acronym-1"
    assert content.decks["acronyms"].title == "acronyms"
    finance = content.categories["Finance"]
    assert [question.id for question in finance.questions] == [1, 2]
    assert finance.questions[1].correct_option_key == "B"
    assert finance.questions[0].category == "Finance"


def test_same_raw_id_in_two_decks_does_not_collide(tmp_path: Path) -> None:
    root = _write_content(
        tmp_path / "content",
        decks=[
            {"id": "core", "cards": [{"id": "1", "question": "Q", "answer": "A"}]},
            {"id": "acronyms", "prefix": "acronym", "cards": [{"id": "1", "question": "Q", "answer": "A"}]},
        ],
        tests=[],
    )
    repository = ItemRepository.from_dir(root)
    assert [card.id for card in repository.combined_deck().cards] == ["core-1", "acronym-1"]


def test_missing_folders_load_as_empty(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    content = load_content_from_dir(empty)
    assert content.decks == {}
    assert content.categories == {}
