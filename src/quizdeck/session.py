"""Study/test session state machine.

A session moves `SETUP -> ACTIVE -> COMPLETE`. `ACTIVE -> SETUP` abandons a
run and `COMPLETE -> ACTIVE` restarts it with a fresh draw. When nothing can be
drawn the session lands in `EMPTY`, a terminal "nothing to review" state that
can later be restarted. Every transition returns a new `Session`; the engine
knows nothing about rendering.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

from .models import AnswerOutcome, CardOutcome, FlashcardItem, QuestionView
from .sampler import clamp_count, sample

Item = FlashcardItem | QuestionView
Outcome = CardOutcome | AnswerOutcome

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle tag for a session."""

    SETUP = "setup"
    ACTIVE = "active"
    COMPLETE = "complete"
    EMPTY = "empty"


class SessionStateError(ValueError):
    """Raised when an operation is not valid in the session's current state."""


@dataclass(frozen=True)
class Session:
    """One study or test run.

    `source` is the selection the pool is drawn from; `pool` is the draw itself
    and stays fixed for the whole run.
    """

    source: tuple[Item, ...]
    requested: int | None
    state: SessionState
    pool: tuple[Item, ...] = ()
    position: int = 0
    outcomes: tuple[Outcome, ...] = ()

    @property
    def complete(self) -> bool:
        return self.state is SessionState.COMPLETE

    @property
    def total(self) -> int:
        return len(self.pool)

    @property
    def correct_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.correct)

    @property
    def wrong_count(self) -> int:
        return len(self.outcomes) - self.correct_count


def setup(source: Sequence[Item], count: int | None = None) -> Session:
    """Hold a selection without drawing from it yet."""
    return Session(source=tuple(source), requested=count, state=SessionState.SETUP)


def begin(session: Session, rng: random.Random | None = None) -> Session:
    """Draw the pool for a session in `SETUP` and make it active."""
    _require(session, SessionState.SETUP, "begin")
    return _draw(session.source, session.requested, rng)


def start(source: Sequence[Item], count: int | None = None, rng: random.Random | None = None) -> Session:
    """Draw `count` items from `source` and enter `ACTIVE` (or `EMPTY`)."""
    return begin(setup(source, count), rng)


def current_item(session: Session) -> Item | None:
    """Return the item awaiting an answer, if any."""
    if session.position >= len(session.pool):
        return None
    return session.pool[session.position]


def record_outcome(session: Session, outcome: Outcome) -> Session:
    """Record the result for the current item and advance.

    This is the only operation that moves `position`.
    """
    _require(session, SessionState.ACTIVE, "record an outcome")
    position = session.position + 1
    state = SessionState.COMPLETE if position == len(session.pool) else SessionState.ACTIVE
    if state is SessionState.COMPLETE:
        logger.info("Session complete: %d/%d correct", session.correct_count + int(outcome.correct), position)
    return replace(session, position=position, outcomes=session.outcomes + (outcome,), state=state)


def restart(
    session: Session, source: Sequence[Item] | None = None, rng: random.Random | None = None
) -> Session:
    """Draw a fresh pool from the originating selection.

    Pass `source` when the selection must be re-derived (e.g. a wrong-only
    deck whose membership changed during the run).
    """
    if session.state not in (SessionState.COMPLETE, SessionState.EMPTY):
        raise SessionStateError(f"Cannot restart a session that is {session.state.value}.")
    selection = tuple(source) if source is not None else session.source
    logger.debug("Restarting session over %d items", len(selection))
    return _draw(selection, session.requested, rng)


def abandon(session: Session) -> Session:
    """Leave an active run and return to setup, keeping the selection."""
    _require(session, SessionState.ACTIVE, "abandon")
    logger.debug("Session abandoned at %d/%d", session.position, len(session.pool))
    return setup(session.source, session.requested)


def _draw(source: tuple[Item, ...], requested: int | None, rng: random.Random | None) -> Session:
    if requested is not None and requested <= 0:
        size = 0
    else:
        size = clamp_count(requested, len(source))
    if size == 0:
        logger.debug("Nothing to draw from %d items", len(source))
        return Session(source=source, requested=requested, state=SessionState.EMPTY)
    pool = tuple(sample(source, size, rng))
    logger.debug("Drew %d of %d items", size, len(source))
    return Session(source=source, requested=requested, state=SessionState.ACTIVE, pool=pool)


def _require(session: Session, state: SessionState, action: str) -> None:
    if session.state is not state:
        raise SessionStateError(f"Cannot {action} while session is {session.state.value}.")
