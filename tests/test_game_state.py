"""Unit tests for the session state machine."""

import numpy as np
import pytest

from notetrainer.game_state import GameStateMachine, monotonic_ms
from notetrainer.models import NoteEvent, SessionSnapshot
from notetrainer.settings import GameSettings

from conftest import FakeClock


def _machine(clock: FakeClock, **overrides: object) -> GameStateMachine:
    values: dict[str, object] = {"difficulty": "beginner", "lives": 3, "sequence_length": 5}
    values.update(overrides)
    return GameStateMachine(GameSettings(**values), clock=clock, rng=np.random.default_rng(7))  # type: ignore[arg-type]


def _expected(snapshot: SessionSnapshot) -> int:
    note = snapshot.expected_note
    assert note is not None
    return note.note_number


def _wrong(snapshot: SessionSnapshot) -> int:
    return _expected(snapshot) + 1


def test_start_initial_snapshot(clock: FakeClock) -> None:
    snapshot = _machine(clock).start()
    assert len(snapshot.sequence) == 5
    assert snapshot.current_index == 0
    assert snapshot.score == 0
    assert snapshot.streak == 0
    assert snapshot.best_streak == 0
    assert snapshot.attempts == 0
    assert snapshot.correct == 0
    assert snapshot.lives == 3
    assert snapshot.avg_response_ms == 0
    assert snapshot.started_at == clock.now
    assert snapshot.expecting_note_since == clock.now
    assert not snapshot.is_paused
    assert not snapshot.is_game_over
    assert snapshot.last_was_correct is None
    assert not snapshot.flash_error


def test_start_respects_lives(clock: FakeClock) -> None:
    assert _machine(clock, lives=5).start().lives == 5


def test_correct_then_incorrect_scenario(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()

    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.score == 10
    assert snapshot.correct == 1
    assert snapshot.streak == 1
    assert snapshot.current_index == 1
    assert snapshot.last_was_correct is True

    previous_sequence = snapshot.sequence
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    assert snapshot.lives == 2
    assert snapshot.streak == 0
    assert snapshot.current_index == 0
    assert snapshot.attempts == 2
    assert snapshot.correct == 1
    assert snapshot.accuracy == 50
    assert snapshot.score == 10
    assert snapshot.flash_error
    assert snapshot.last_was_correct is False
    assert snapshot.sequence is not previous_sequence


def test_transitions_do_not_mutate_previous_snapshot(clock: FakeClock) -> None:
    machine = _machine(clock)
    start = machine.start()
    after = machine.handle_input(start, _expected(start))
    assert start.score == 0
    assert start.attempts == 0
    assert after is not start


def test_response_time_tracks_clock(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()

    clock.advance(1000)
    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.avg_response_ms == 1000
    assert snapshot.expecting_note_since == clock.now
    assert snapshot.notes_per_minute == 60

    clock.advance(500)
    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.avg_response_ms == 850


def test_completing_a_sequence_starts_a_new_one(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    original = snapshot.sequence

    for _ in range(5):
        snapshot = machine.handle_input(snapshot, _expected(snapshot))

    assert snapshot.current_index == 0
    assert len(snapshot.sequence) == 5
    assert snapshot.sequence is not original
    assert snapshot.streak == 5
    assert snapshot.best_streak == 5
    # Four notes at 10 plus the fifth with the streak bonus.
    assert snapshot.score == 55


def test_streak_continues_across_sequences(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    for _ in range(12):
        snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.streak == 12
    assert snapshot.correct == 12
    assert snapshot.current_index == 2


def test_best_streak_survives_a_miss(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    for _ in range(3):
        snapshot = machine.handle_input(snapshot, _expected(snapshot))
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.streak == 1
    assert snapshot.best_streak == 3


def test_miss_on_last_life_ends_the_game(clock: FakeClock) -> None:
    machine = _machine(clock, lives=1)
    snapshot = machine.start()
    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    before_sequence = snapshot.sequence

    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    assert snapshot.is_game_over
    assert snapshot.lives == 0
    assert snapshot.streak == 0
    assert snapshot.flash_error
    assert snapshot.last_was_correct is False
    assert snapshot.sequence is before_sequence
    assert snapshot.current_index == 1
    assert snapshot.expected_note is None


def test_input_after_game_over_is_idempotent(clock: FakeClock) -> None:
    machine = _machine(clock, lives=1)
    snapshot = machine.start()
    over = machine.handle_input(snapshot, _wrong(snapshot))

    again = machine.handle_input(over, 60)
    assert again is over
    assert again.score == over.score
    assert again.attempts == over.attempts == 1


def test_lives_count_down_to_game_over(clock: FakeClock) -> None:
    machine = _machine(clock, lives=3)
    snapshot = machine.start()
    for expected_lives in (2, 1):
        snapshot = machine.handle_input(snapshot, _wrong(snapshot))
        assert snapshot.lives == expected_lives
        assert not snapshot.is_game_over
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    assert snapshot.lives == 0
    assert snapshot.is_game_over


def test_input_while_paused_is_ignored(clock: FakeClock) -> None:
    machine = _machine(clock)
    paused = machine.pause(machine.start())
    assert paused.is_paused
    assert machine.handle_input(paused, _expected(paused)) is paused


def test_pause_changes_only_the_flag(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    paused = machine.pause(snapshot)
    assert paused == SessionSnapshot(**{**snapshot.__dict__, "is_paused": True})


def test_resume_restarts_the_response_timer(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    clock.advance(300)
    snapshot = machine.pause(snapshot)
    clock.advance(60_000)
    snapshot = machine.resume(snapshot)
    assert not snapshot.is_paused
    assert snapshot.expecting_note_since == clock.now

    clock.advance(400)
    snapshot = machine.handle_input(snapshot, _expected(snapshot))
    assert snapshot.avg_response_ms == 400


def test_pause_and_resume_leave_game_over_alone(clock: FakeClock) -> None:
    machine = _machine(clock, lives=1)
    snapshot = machine.start()
    over = machine.handle_input(snapshot, _wrong(snapshot))
    assert machine.pause(over) is over
    assert machine.resume(over) is over


def test_clear_flash_error(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    assert snapshot.flash_error
    cleared = machine.clear_flash_error(snapshot)
    assert not cleared.flash_error
    assert cleared.lives == snapshot.lives


def test_handle_event_ignores_velocity(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    soft = machine.handle_event(snapshot, NoteEvent(_expected(snapshot), velocity=1))
    assert soft.correct == 1


def test_note_event_validates_ranges() -> None:
    with pytest.raises(ValueError):
        NoteEvent(128)
    with pytest.raises(ValueError):
        NoteEvent(60, velocity=-1)


def test_reset_starts_over(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))
    fresh = machine.reset(snapshot)
    assert fresh.lives == 3
    assert fresh.attempts == 0
    assert not fresh.flash_error


def test_attempts_never_below_correct(clock: FakeClock) -> None:
    machine = _machine(clock, lives=5)
    snapshot = machine.start()
    for step in range(20):
        note = _expected(snapshot) if step % 3 else _wrong(snapshot)
        snapshot = machine.handle_input(snapshot, note)
        assert snapshot.attempts >= snapshot.correct
        assert 0 <= snapshot.current_index <= len(snapshot.sequence)
        assert (snapshot.lives == 0) == snapshot.is_game_over
        if snapshot.is_game_over:
            break


def test_generated_sequences_stay_valid(clock: FakeClock) -> None:
    machine = _machine(clock, difficulty="advanced", clef="both", sequence_length=4)
    snapshot = machine.start()
    for _ in range(12):
        assert machine.generator.validate(snapshot.sequence)
        snapshot = machine.handle_input(snapshot, _expected(snapshot))


def test_summarize(clock: FakeClock) -> None:
    machine = _machine(clock)
    snapshot = machine.start()
    for _ in range(4):
        clock.advance(2000)
        snapshot = machine.handle_input(snapshot, _expected(snapshot))
    snapshot = machine.handle_input(snapshot, _wrong(snapshot))

    summary = machine.summarize(snapshot)
    assert summary.score == 40
    assert summary.duration_seconds == 8
    # 8 s over 4 notes = 2 s each; (5 - 2) * 4 = 12 bonus points.
    assert summary.final_score == 52
    assert summary.accuracy == 80
    assert summary.best_streak == 4
    assert summary.difficulty == "beginner"


def test_default_clock_is_monotonic() -> None:
    first = monotonic_ms()
    assert monotonic_ms() >= first
