"""GameStateMachine: turns input events into successive session snapshots."""

import logging
import time
from collections.abc import Callable
from dataclasses import replace

import numpy as np

from notetrainer.models import NoteEvent, SessionSnapshot, SessionSummary
from notetrainer.scoring import (
    final_score,
    score_for_correct,
    session_duration,
    update_avg_response_time,
)
from notetrainer.sequence_generator import SequenceGenerator
from notetrainer.settings import GameSettings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: a monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


class GameStateMachine:
    """
    Session state machine over immutable ``SessionSnapshot`` values.

    States
    ------
    - **Active-Waiting** – ``is_paused`` and ``is_game_over`` both False;
      input is judged against ``snapshot.expected_note``.
    - **Active-Paused** – input is ignored until ``resume``.
    - **GameOver** – terminal; every transition except ``reset`` returns the
      snapshot unchanged.

    The machine keeps only its settings, clock and sequence generator. It
    never holds on to a snapshot, so the caller owns the session chain and
    must deliver one input at a time.
    """

    def __init__(
        self,
        settings: GameSettings,
        clock: Clock | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """
        Args:
            settings: Session configuration.
            clock:    Zero-argument callable returning monotonic milliseconds.
            rng:      Randomness for sequence generation.
        """
        self.settings = settings
        self.clock = clock if clock is not None else monotonic_ms
        self.generator = SequenceGenerator(settings, rng)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _handle_correct(self, snapshot: SessionSnapshot, now: float) -> SessionSnapshot:
        response_ms = now - snapshot.expecting_note_since
        update = score_for_correct(snapshot.score, snapshot.streak)
        correct = snapshot.correct + 1
        avg_ms = update_avg_response_time(snapshot.avg_response_ms, response_ms, correct)

        next_index = snapshot.current_index + 1
        sequence = snapshot.sequence
        if next_index >= len(sequence):
            # Endless progression: a completed sequence is replaced by a fresh one.
            sequence = self.generator.regenerate()
            next_index = 0

        return replace(
            snapshot,
            sequence=sequence,
            current_index=next_index,
            score=update.score,
            streak=update.streak,
            best_streak=max(snapshot.best_streak, update.streak),
            correct=correct,
            avg_response_ms=avg_ms,
            expecting_note_since=now,
            last_was_correct=True,
            flash_error=False,
        )

    def _handle_incorrect(self, snapshot: SessionSnapshot, now: float) -> SessionSnapshot:
        lives = snapshot.lives - 1
        if lives <= 0:
            logger.debug(
                "Game over: score=%d attempts=%d correct=%d",
                snapshot.score, snapshot.attempts, snapshot.correct,
            )
            return replace(
                snapshot,
                lives=0,
                streak=0,
                is_game_over=True,
                last_was_correct=False,
                flash_error=True,
            )

        return replace(
            snapshot,
            sequence=self.generator.regenerate(),
            current_index=0,
            lives=lives,
            streak=0,
            expecting_note_since=now,
            last_was_correct=False,
            flash_error=True,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> SessionSnapshot:
        """Begin a new session with a fresh sequence and full lives."""
        now = self.clock()
        return SessionSnapshot(
            sequence=self.generator.generate(),
            lives=self.settings.lives,
            started_at=now,
            expecting_note_since=now,
        )

    def reset(self, snapshot: SessionSnapshot | None = None) -> SessionSnapshot:
        """Abandon ``snapshot`` (if any) and start over."""
        return self.start()

    def handle_input(self, snapshot: SessionSnapshot, note_number: int) -> SessionSnapshot:
        """
        Judge one played note against the expected note.

        Returns ``snapshot`` itself when paused or game over, so repeated
        input on a finished session is idempotent.
        """
        if snapshot.is_paused or snapshot.is_game_over:
            return snapshot

        now = self.clock()
        expected = snapshot.sequence[snapshot.current_index]
        attempted = replace(snapshot, attempts=snapshot.attempts + 1)

        if note_number == expected.note_number:
            return self._handle_correct(attempted, now)
        return self._handle_incorrect(attempted, now)

    def handle_event(self, snapshot: SessionSnapshot, event: NoteEvent) -> SessionSnapshot:
        """Judge a device note-on event; velocity does not affect correctness."""
        return self.handle_input(snapshot, event.note_number)

    def pause(self, snapshot: SessionSnapshot) -> SessionSnapshot:
        if snapshot.is_game_over:
            return snapshot
        return replace(snapshot, is_paused=True)

    def resume(self, snapshot: SessionSnapshot) -> SessionSnapshot:
        """Unpause and restart the response timer so paused time is never charged."""
        if snapshot.is_game_over:
            return snapshot
        return replace(snapshot, is_paused=False, expecting_note_since=self.clock())

    def clear_flash_error(self, snapshot: SessionSnapshot) -> SessionSnapshot:
        """Drop the wrong-note flag once the caller's flash has run its course."""
        return replace(snapshot, flash_error=False)

    def summarize(self, snapshot: SessionSnapshot) -> SessionSummary:
        """Compute end-of-session figures, including the speed-bonus final score."""
        duration = session_duration(snapshot.started_at, self.clock())
        return SessionSummary(
            score=snapshot.score,
            final_score=final_score(snapshot.score, duration, snapshot.correct),
            accuracy=snapshot.accuracy,
            best_streak=snapshot.best_streak,
            correct=snapshot.correct,
            attempts=snapshot.attempts,
            avg_response_ms=snapshot.avg_response_ms,
            notes_per_minute=snapshot.notes_per_minute,
            duration_seconds=duration,
            difficulty=self.settings.difficulty.value,
        )
