"""Answer checking and per-category scoring for practice tests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from .models import AnswerOutcome, QuestionItem

STRONG_THRESHOLD = 80
MEDIUM_THRESHOLD = 60


class Strength(Enum):
    """Display band for a category percentage."""

    STRONG = "strong"
    MEDIUM = "medium"
    WEAK = "weak"


@dataclass(frozen=True)
class AnswerCheck:
    """Result of checking one selected option."""

    correct: bool
    correct_key: str


@dataclass(frozen=True)
class CategoryResult:
    """Correct/total counts for one category in a finished test."""

    name: str
    correct: int
    total: int

    @property
    def percentage(self) -> int:
        return percentage(self.correct, self.total)

    @property
    def strength(self) -> Strength:
        return classify(self.percentage)


@dataclass(frozen=True)
class ScoreReport:
    """Completion summary for a practice test."""

    correct: int
    total: int
    score: int
    categories: tuple[CategoryResult, ...]


def check_answer(item: QuestionItem, selected_key: str) -> AnswerCheck:
    """Compare a selection with the item's answer key; always reveal the key."""
    return AnswerCheck(correct=selected_key == item.correct_option_key, correct_key=item.correct_option_key)


def percentage(correct: int, total: int) -> int:
    """Return `100 * correct / total` rounded half-up (0 for an empty total)."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def classify(pct: int) -> Strength:
    if pct >= STRONG_THRESHOLD:
        return Strength.STRONG
    if pct >= MEDIUM_THRESHOLD:
        return Strength.MEDIUM
    return Strength.WEAK


def aggregate(outcomes: Sequence[AnswerOutcome]) -> list[CategoryResult]:
    """Group outcomes by category, weakest accuracy first.

    Ties keep the order in which categories first appear in `outcomes`.
    """
    counts: dict[str, list[int]] = {}
    for outcome in outcomes:
        row = counts.setdefault(outcome.item.category, [0, 0])
        row[1] += 1
        if outcome.correct:
            row[0] += 1
    results = [CategoryResult(name=name, correct=correct, total=total) for name, (correct, total) in counts.items()]
    results.sort(key=lambda result: Fraction(result.correct, result.total))
    return results


def overall_score(outcomes: Sequence[AnswerOutcome]) -> int:
    """Overall percentage across every answered question."""
    return percentage(sum(1 for outcome in outcomes if outcome.correct), len(outcomes))


def report(outcomes: Sequence[AnswerOutcome]) -> ScoreReport:
    correct = sum(1 for outcome in outcomes if outcome.correct)
    return ScoreReport(
        correct=correct,
        total=len(outcomes),
        score=percentage(correct, len(outcomes)),
        categories=tuple(aggregate(outcomes)),
    )
