"""Scoring and session metrics: points, streak bonuses, accuracy and speed."""

import math
from dataclasses import dataclass

BASE_POINTS = 10
STREAK_MILESTONE = 5
STREAK_BONUS_POINTS = 5

#: Weight kept by the previous average in the response-time moving average.
EMA_WEIGHT_OLD = 0.7

#: Average seconds per note below which the final score earns a speed bonus.
TARGET_SECONDS_PER_NOTE = 5

MS_PER_MINUTE = 60_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (``round(2.5) == 3``)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class ScoreUpdate:
    """Result of crediting one correct note."""

    score: int
    streak: int
    bonus: int


def score_for_correct(current_score: int, current_streak: int) -> ScoreUpdate:
    """
    Credit a correct note.

    Every note is worth ``BASE_POINTS``; each time the streak reaches a
    multiple of ``STREAK_MILESTONE`` a further ``STREAK_BONUS_POINTS`` is added.
    """
    streak = current_streak + 1
    bonus = STREAK_BONUS_POINTS if streak % STREAK_MILESTONE == 0 else 0
    return ScoreUpdate(score=current_score + BASE_POINTS + bonus, streak=streak, bonus=bonus)


def accuracy(correct: int, attempts: int) -> int:
    """Percentage of correct attempts; an untouched session counts as 100%."""
    if attempts == 0:
        return 100
    return round_half_up(correct / attempts * 100)


def update_avg_response_time(current_avg: float, sample_ms: float, total_correct: int) -> int:
    """
    Fold a new response time into the rolling average.

    Args:
        current_avg:   Average before this note, in milliseconds.
        sample_ms:     Response time for the note just played.
        total_correct: Correct notes so far, including this one.

    Returns:
        The first sample, otherwise an exponential moving average that weights
        the newest sample by ``1 - EMA_WEIGHT_OLD``. Both are rounded half-up
        to whole milliseconds.
    """
    if total_correct == 1:
        return round_half_up(sample_ms)
    return round_half_up(current_avg * EMA_WEIGHT_OLD + sample_ms * (1 - EMA_WEIGHT_OLD))


def notes_per_minute(avg_ms: float) -> int:
    if avg_ms == 0:
        return 0
    return round_half_up(MS_PER_MINUTE / avg_ms)


def session_duration(started_at: float, now: float) -> int:
    """Whole seconds elapsed between two millisecond timestamps."""
    return round_half_up((now - started_at) / 1000)


def format_time(seconds: int) -> str:
    """Format whole seconds as ``mm:ss``."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def final_score(base_score: int, duration_seconds: float, correct: int) -> int:
    """Add a speed bonus for every note answered faster than the target pace."""
    avg_seconds_per_note = duration_seconds / max(1, correct)
    speed_bonus = max(0, math.floor((TARGET_SECONDS_PER_NOTE - avg_seconds_per_note) * correct))
    return base_score + speed_bonus
