"""Application service tying content, sessions, wrong-card tracking and scoring together."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from . import __version__
from . import session as engine
from .models import AnswerOutcome, CardOutcome, Deck, FlashcardItem, QuestionView, WrongSet
from .progress import SCHEMA_VERSION, ProgressStore, StorageError, WrongSetStorage
from .repository import DEFAULT_QUESTION_COUNT, CheckUnavailableError, ItemRepository, ValidationError
from .scoring import AnswerCheck, ScoreReport, report
from .session import Session, SessionStateError
from .weak_set import ReviewMode, clear, on_outcome, pool_for, wrong_count

EXPORT_FORMAT_VERSION = 1

AnswerChecker = Callable[[str, int, str], AnswerCheck]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeckChoice:
    """Deck listing row with the learner's wrong count."""

    deck: Deck
    wrong_count: int


@dataclass(frozen=True)
class WrongSetTransferSummary:
    """Summary emitted by wrong-list export/import operations."""

    path: str
    item_count: int
    total_marked: int


class StudyService:
    """Coordinates flashcard review, practice tests and the persisted wrong list."""

    def __init__(
        self,
        db_path: Path | str,
        repository: ItemRepository | None = None,
        storage: WrongSetStorage | None = None,
    ) -> None:
        """Load content and the stored wrong list.

        `db_path` is only opened when no `storage` is given; a passed-in storage
        stays owned by the caller and is not closed by `close()`.
        """
        self.repository = repository if repository is not None else ItemRepository.from_bundled()
        self._owned_store: ProgressStore | None = None
        if storage is None:
            self._owned_store = ProgressStore(db_path)
            storage = self._owned_store
        self.storage: WrongSetStorage = storage
        self.wrong_set: WrongSet = self.storage.load_wrong_set()
        logger.info("Loaded %d wrong items", len(self.wrong_set))

    # Flashcards

    def list_decks(self) -> list[DeckChoice]:
        """Return each deck followed by the combined deck."""
        decks = [self.repository.get_deck(deck_id) for deck_id in self.repository.deck_ids()]
        decks.append(self.repository.combined_deck())
        return [DeckChoice(deck=deck, wrong_count=wrong_count(deck, self.wrong_set)) for deck in decks]

    def deck_wrong_count(self, deck_id: str) -> int:
        return wrong_count(self.repository.get_deck(deck_id), self.wrong_set)

    def flashcard_pool(self, deck_id: str, mode: ReviewMode) -> tuple[FlashcardItem, ...]:
        return pool_for(self.repository.get_deck(deck_id), mode, self.wrong_set)

    def start_flashcards(
        self, deck_id: str, mode: ReviewMode = ReviewMode.ALL, rng: random.Random | None = None
    ) -> Session:
        """Start a shuffled run over a deck (or just its wrong cards)."""
        session = engine.start(self.flashcard_pool(deck_id, mode), rng=rng)
        logger.debug("Flashcards %s/%s: %s with %d cards", deck_id, mode.value, session.state.value, session.total)
        return session

    def answer_flashcard(self, session: Session, correct: bool) -> Session:
        """Record a self-graded answer and update the wrong list."""
        item = engine.current_item(session)
        if not isinstance(item, FlashcardItem):
            raise SessionStateError("No flashcard is awaiting an answer.")
        advanced = engine.record_outcome(session, CardOutcome(item_id=item.id, correct=correct))
        self._update_wrong_set(on_outcome(self.wrong_set, item.id, correct))
        return advanced

    def restart_flashcards(
        self, session: Session, deck_id: str, mode: ReviewMode, rng: random.Random | None = None
    ) -> Session:
        """Draw again from the deck, re-filtering wrong-only pools."""
        return engine.restart(session, source=self.flashcard_pool(deck_id, mode), rng=rng)

    def clear_wrong(self, deck_id: str) -> int:
        """Forget wrong marks for one deck and return how many were removed."""
        deck = self.repository.get_deck(deck_id)
        removed = wrong_count(deck, self.wrong_set)
        self._update_wrong_set(clear(self.wrong_set, deck))
        return removed

    # Practice tests

    def start_test(
        self,
        category_names: Iterable[str],
        count: int = DEFAULT_QUESTION_COUNT,
        rng: random.Random | None = None,
    ) -> Session:
        """Start a practice test over the selected categories."""
        if count < 1:
            raise ValidationError(f"Question count must be at least 1, got {count}.")
        pool = self.repository.question_pool(category_names)
        session = engine.start(pool, count, rng)
        logger.debug("Practice test: %d of %d questions", session.total, len(pool))
        return session

    def submit_answer(
        self, session: Session, selected_key: str, checker: AnswerChecker | None = None
    ) -> tuple[Session, AnswerCheck]:
        """Check the selected option for the current question and advance.

        The session only advances once the check returns; if the checker
        raises, the caller keeps the unchanged session and may retry.
        """
        item = engine.current_item(session)
        if session.state is not engine.SessionState.ACTIVE or not isinstance(item, QuestionView):
            raise SessionStateError("No question is awaiting an answer.")
        key = selected_key.strip()
        if not key:
            raise ValidationError("Missing required fields")
        if key not in item.option_keys():
            raise ValidationError(f"Unknown option {key!r}; choose one of {', '.join(item.option_keys())}.")

        check_fn = checker if checker is not None else self.repository.check_answer
        try:
            check = check_fn(item.category, item.id, key)
        except CheckUnavailableError as exc:
            logger.warning("Answer check failed for %s/%s: %s", item.category, item.id, exc)
            raise
        outcome = AnswerOutcome(item=item, selected_key=key, correct=check.correct, correct_key=check.correct_key)
        return engine.record_outcome(session, outcome), check

    def test_report(self, session: Session) -> ScoreReport:
        """Summarize a practice test's answers by category."""
        outcomes = [outcome for outcome in session.outcomes if isinstance(outcome, AnswerOutcome)]
        return report(outcomes)

    def restart_test(self, session: Session, rng: random.Random | None = None) -> Session:
        """Draw a fresh set of questions from the same categories."""
        return engine.restart(session, rng=rng)

    def end_session(self, session: Session) -> Session:
        """Abandon an active run."""
        return engine.abandon(session)

    # Wrong list transfer

    def export_wrong_set(self, export_path: Path | str) -> WrongSetTransferSummary:
        """Write the wrong list to a JSON file."""
        wrong_ids = sorted(self.wrong_set)
        payload = {
            "format_version": EXPORT_FORMAT_VERSION,
            "exported_at": datetime.now(UTC).isoformat(),
            "source": {
                "app_version": __version__,
                "schema_version": SCHEMA_VERSION,
            },
            "wrong_ids": wrong_ids,
        }
        path = Path(export_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("Exported %d wrong items to %s", len(wrong_ids), path)
        return WrongSetTransferSummary(path=str(path), item_count=len(wrong_ids), total_marked=len(wrong_ids))

    def import_wrong_set(self, import_path: Path | str, merge: bool = True) -> WrongSetTransferSummary:
        """Load a wrong list export, merging into (or replacing) the current list."""
        path = Path(import_path)
        raw_obj: object = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw_obj, dict):
            raise ValueError("Import file root must be a JSON object.")
        raw = cast(dict[str, object], raw_obj)

        format_version = _coerce_int(raw.get("format_version", 0))
        if format_version is None:
            raise ValueError("Import file has invalid format_version.")
        if format_version > EXPORT_FORMAT_VERSION:
            raise ValueError(
                f"Import file format version {format_version} is newer than supported {EXPORT_FORMAT_VERSION}."
            )

        imported = _normalize_wrong_ids(raw.get("wrong_ids"))
        updated = (self.wrong_set | imported) if merge else imported
        self._update_wrong_set(updated)
        logger.info("Imported %d wrong items from %s", len(imported), path)
        return WrongSetTransferSummary(path=str(path), item_count=len(imported), total_marked=len(self.wrong_set))

    def _update_wrong_set(self, updated: WrongSet) -> None:
        """Replace the in-memory wrong list and persist it best-effort."""
        if updated == self.wrong_set:
            return
        self.wrong_set = updated
        try:
            self.storage.save_wrong_set(updated)
        except StorageError as exc:
            logger.warning("Could not save wrong list (%d items): %s", len(updated), exc)

    def close(self) -> None:
        """Close the progress database if this service opened it."""
        if self._owned_store is not None:
            self._owned_store.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass


def _normalize_wrong_ids(raw: object) -> frozenset[str]:
    """Keep non-blank string ids from an import payload."""
    if not isinstance(raw, list):
        return frozenset()
    raw_items = cast(list[object], raw)
    return frozenset(item.strip() for item in raw_items if isinstance(item, str) and item.strip())


def _coerce_int(value: object, default: int | None = None) -> int | None:
    """Coerce an int or numeric string from an import payload."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default
