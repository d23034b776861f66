"""CLI entrypoint for flashcard review and practice tests."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import cast

from .models import FlashcardItem, QuestionView
from .repository import DEFAULT_QUESTION_COUNT, CheckUnavailableError, ItemRepository, NotFoundError, ValidationError
from .scoring import ScoreReport
from .service import StudyService
from .session import Session, SessionState, current_item
from .weak_set import ReviewMode

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q", ":b", ":back"}
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
YES_ANSWERS = {"y", "yes"}
DB_ENV_VAR = "QUIZDECK_DB"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _default_db_path() -> Path:
    override = os.environ.get(DB_ENV_VAR, "").strip()
    if override:
        return Path(override)
    return Path(".quizdeck") / "progress.db"


def _service(db_path: Path | None = None, content_dir: Path | None = None) -> StudyService:
    """Create app service with local database path."""
    repository = ItemRepository.from_dir(content_dir) if content_dir is not None else None
    return StudyService(db_path=db_path or _default_db_path(), repository=repository)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="quizdeck", description="Flashcards and practice tests")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    parser.add_argument(
        "--db", type=Path, default=None, help=f"progress database (default: ${DB_ENV_VAR} or .quizdeck/progress.db)"
    )
    parser.add_argument("--content", type=Path, default=None, help="directory with decks/ and tests/ JSON files")
    parser.add_argument(
        "--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="log verbosity"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    return play_shell(db_path=args.db, content_dir=args.content)


def play_shell(
    input_fn: InputFn = input,
    print_fn: PrintFn = print,
    *,
    db_path: Path | None = None,
    content_dir: Path | None = None,
) -> int:
    """Run persistent menu-driven shell."""
    try:
        service = _service(db_path, content_dir)
    except ValueError as exc:
        print_fn(f"Could not load study content: {exc}")
        return 1
    try:
        while True:
            print_fn("\n=== Study ===")
            print_fn(f"Cards marked wrong: {len(service.wrong_set)}")
            print_fn("1) Flashcards")
            print_fn("2) Practice test")
            print_fn("3) Export wrong list")
            print_fn("4) Import wrong list")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice == "1":
                _flashcards_flow(service, input_fn, print_fn)
            elif choice == "2":
                _practice_test_flow(service, input_fn, print_fn)
            elif choice == "3":
                _export_wrong_flow(service, input_fn, print_fn)
            elif choice == "4":
                _import_wrong_flow(service, input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Invalid choice.")
    except QuitApp:
        return 0
    finally:
        service.close()


def _flashcards_flow(service: StudyService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick a deck, then a review mode."""
    choices = service.list_decks()
    print_fn("\n=== Flashcards ===")
    for idx, choice in enumerate(choices, start=1):
        print_fn(f"{idx}) {choice.deck.title} ({len(choice.deck)} cards, {choice.wrong_count} wrong)")
    print_fn("b) Back")
    print_fn("q) Quit")
    selected = input_fn("Choose deck: ").strip().lower()
    if selected in MENU_BACK_COMMANDS:
        return
    if selected in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not selected.isdecimal() or not (0 < int(selected) <= len(choices)):
        print_fn("Invalid choice.")
        return
    _deck_flow(service, choices[int(selected) - 1].deck.id, input_fn, print_fn)


def _deck_flow(service: StudyService, deck_id: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Mode menu for one deck."""
    deck = service.repository.get_deck(deck_id)
    while True:
        wrong = service.deck_wrong_count(deck_id)
        print_fn(f"\n=== {deck.title} ===")
        print_fn(f"1) All cards ({len(deck)})")
        print_fn(f"2) Wrong only ({wrong})")
        if wrong > 0:
            print_fn("c) Clear wrong list")
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose mode: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if choice == "1":
            _run_flashcards(service, deck_id, ReviewMode.ALL, input_fn, print_fn)
        elif choice == "2":
            _run_flashcards(service, deck_id, ReviewMode.WRONG, input_fn, print_fn)
        elif choice == "c" and wrong > 0:
            removed = service.clear_wrong(deck_id)
            print_fn(f"Cleared {removed} wrong cards from {deck.title}.")
        else:
            print_fn("Invalid choice.")


def _run_flashcards(
    service: StudyService, deck_id: str, mode: ReviewMode, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """Show cards one at a time and collect right/wrong self-grades."""
    session = service.start_flashcards(deck_id, mode)
    while True:
        if session.state is SessionState.EMPTY:
            print_fn("\nNo cards to review!")
            if mode is ReviewMode.WRONG:
                print_fn("You've mastered all the cards in this deck.")
            return

        print_fn("Type :q to stop.")
        while session.state is SessionState.ACTIVE:
            item = cast(FlashcardItem, current_item(session))
            print_fn(f"\nCard {session.position + 1} of {session.total}")
            print_fn(f"Question: {item.question}")
            reveal = input_fn("Press Enter to reveal: ").strip().lower()
            if reveal in FLOW_EXIT_COMMANDS:
                _end_early(service, session, print_fn)
                return
            print_fn(f"Answer: {item.answer}")
            grade = _ask_grade(input_fn, print_fn)
            if grade is None:
                _end_early(service, session, print_fn)
                return
            session = service.answer_flashcard(session, grade)

        print_fn("\nSession complete!")
        print_fn(f"Correct: {session.correct_count}")
        print_fn(f"Wrong: {session.wrong_count}")
        again = input_fn("Start again? [y/N]: ").strip().lower()
        if again not in YES_ANSWERS:
            return
        session = service.restart_flashcards(session, deck_id, mode)


def _ask_grade(input_fn: InputFn, print_fn: PrintFn) -> bool | None:
    """Return True for right, False for wrong, None to stop."""
    while True:
        grade = input_fn("Did you get it? [r]ight/[w]rong: ").strip().lower()
        if grade in FLOW_EXIT_COMMANDS:
            return None
        if grade in {"r", "right"}:
            return True
        if grade in {"w", "wrong"}:
            return False
        print_fn("Please answer r or w.")


def _end_early(service: StudyService, session: Session, print_fn: PrintFn) -> None:
    service.end_session(session)
    print_fn(f"\nSession ended early: {session.correct_count} right, {session.wrong_count} wrong.")


def _practice_test_flow(service: StudyService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick categories and a question count, then run a test."""
    categories = service.repository.get_categories()
    if not categories:
        print_fn("No practice tests available.")
        return

    print_fn("\n=== Practice Test ===")
    for idx, category in enumerate(categories, start=1):
        print_fn(f"{idx}) {category.name} ({category.count})")
    print_fn("a) All categories")
    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose categories (e.g. 1,3): ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if choice == "a":
        names = [category.name for category in categories]
    else:
        indexes = [part.strip() for part in choice.split(",") if part.strip()]
        if not indexes or not all(part.isdecimal() and 0 < int(part) <= len(categories) for part in indexes):
            print_fn("Invalid choice.")
            return
        names = [categories[int(part) - 1].name for part in indexes]

    count_text = input_fn(f"How many questions? [{DEFAULT_QUESTION_COUNT}]: ").strip()
    if count_text and not count_text.isdecimal():
        print_fn("Invalid number.")
        return
    count = int(count_text) if count_text else DEFAULT_QUESTION_COUNT

    try:
        session = service.start_test(names, count)
    except (ValidationError, NotFoundError) as exc:
        print_fn(f"Could not start test: {exc}")
        return
    _run_test(service, session, input_fn, print_fn)


def _run_test(service: StudyService, session: Session, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Ask each question, check the answer, then show the category report."""
    while True:
        if session.state is SessionState.EMPTY:
            print_fn("\nNo questions to practice!")
            return

        print_fn(f"\nQuestions this round: {session.total}")
        print_fn("Type :q to stop.")
        while session.state is SessionState.ACTIVE:
            item = cast(QuestionView, current_item(session))
            print_fn(f"\nQuestion {session.position + 1} of {session.total} [{item.category}]")
            print_fn(item.question)
            for option in item.options:
                print_fn(f"  {option.key}) {option.text}")
            raw = input_fn("Your answer: ").strip()
            if raw.lower() in FLOW_EXIT_COMMANDS:
                _end_early(service, session, print_fn)
                return
            try:
                session, check = service.submit_answer(session, _match_option_key(item, raw))
            except ValidationError as exc:
                print_fn(str(exc))
                continue
            except CheckUnavailableError as exc:
                print_fn(f"Could not check your answer ({exc}). Please try again.")
                continue
            except NotFoundError as exc:
                print_fn(f"Error: {exc}")
                return
            if check.correct:
                print_fn("Correct!")
            else:
                print_fn(f"Incorrect. Correct answer: {check.correct_key}) {_option_text(item, check.correct_key)}")

        _print_report(service.test_report(session), print_fn)
        again = input_fn("New test with the same categories? [y/N]: ").strip().lower()
        if again not in YES_ANSWERS:
            return
        session = service.restart_test(session)


def _match_option_key(item: QuestionView, raw: str) -> str:
    """Accept option keys case-insensitively."""
    for key in item.option_keys():
        if key.lower() == raw.lower():
            return key
    return raw


def _option_text(item: QuestionView, key: str) -> str:
    for option in item.options:
        if option.key == key:
            return option.text
    return ""


def _print_report(summary: ScoreReport, print_fn: PrintFn) -> None:
    """Print overall score and the per-category table, weakest first."""
    print_fn("\n=== Test Complete ===")
    print_fn(f"Score: {summary.score}% ({summary.correct}/{summary.total})")
    if not summary.categories:
        return
    name_width = max(len("Category"), max(len(item.name) for item in summary.categories))
    header = f"{'Category':<{name_width}} {'Correct':>7} {'%':>4} Strength"
    print_fn(header)
    print_fn("-" * len(header))
    for item in summary.categories:
        print_fn(
            f"{item.name:<{name_width}} "
            f"{f'{item.correct}/{item.total}':>7} "
            f"{item.percentage:>4} "
            f"{item.strength.value}"
        )


def _export_wrong_flow(service: StudyService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Export the wrong list to a JSON file."""
    print_fn("\n=== Export Wrong List ===")
    path_text = input_fn("Export file path: ").strip()
    if not path_text:
        print_fn("File path is required.")
        return
    try:
        summary = service.export_wrong_set(path_text)
    except OSError as exc:
        print_fn(f"Export failed: {exc}")
        return
    print_fn(f"Exported {summary.item_count} wrong cards to {summary.path}")


def _import_wrong_flow(service: StudyService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Import a wrong list export, merging or replacing."""
    print_fn("\n=== Import Wrong List ===")
    path_text = input_fn("Import file path: ").strip()
    if not path_text:
        print_fn("File path is required.")
        return
    replace = input_fn("Replace current list instead of merging? [y/N]: ").strip().lower() in YES_ANSWERS
    try:
        summary = service.import_wrong_set(path_text, merge=not replace)
    except (OSError, ValueError) as exc:
        print_fn(f"Import failed: {exc}")
        return
    print_fn(f"Imported {summary.item_count} wrong cards; {summary.total_marked} now marked.")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
