"""Value types exchanged between the engine and its callers."""

from dataclasses import dataclass
from enum import Enum

from notetrainer.scoring import accuracy, notes_per_minute

MAX_MIDI_VALUE = 127


class Clef(str, Enum):
    """The staff a single note is written on."""

    TREBLE = "treble"
    BASS = "bass"


class Accidental(str, Enum):
    """Accidental tokens, valued as they appear in pitch names."""

    SHARP = "#"
    FLAT = "b"
    DOUBLE_SHARP = "##"
    DOUBLE_FLAT = "bb"

    @property
    def semitones(self) -> int:
        return _ACCIDENTAL_SHIFT[self]

    @property
    def is_double(self) -> bool:
        return self in (Accidental.DOUBLE_SHARP, Accidental.DOUBLE_FLAT)


_ACCIDENTAL_SHIFT: dict[Accidental, int] = {
    Accidental.SHARP: 1,
    Accidental.FLAT: -1,
    Accidental.DOUBLE_SHARP: 2,
    Accidental.DOUBLE_FLAT: -2,
}


@dataclass(frozen=True)
class NoteSpec:
    """
    One note the player is asked to play.

    Attributes:
        note_number:  Piano key number (21-108), middle C = 60.
        pitch:        Canonical pitch name, e.g. ``"C#4"``.
        notation_key: Notation renderer key, e.g. ``"C#/4"``.
        clef:         Staff the note is written on.
        accidental:   Accidental written on the note, or None for a natural.
    """

    note_number: int
    pitch: str
    notation_key: str
    clef: Clef
    accidental: Accidental | None = None


@dataclass(frozen=True)
class NoteEvent:
    """A note-on event forwarded by an input device."""

    note_number: int
    velocity: int = 100

    def __post_init__(self) -> None:
        if not 0 <= self.note_number <= MAX_MIDI_VALUE:
            raise ValueError(f"note_number must be within 0..127, got {self.note_number}.")
        if not 0 <= self.velocity <= MAX_MIDI_VALUE:
            raise ValueError(f"velocity must be within 0..127, got {self.velocity}.")


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Complete immutable state of one training session.

    Every engine transition returns a new snapshot; the previous one is left
    untouched and may be discarded by the caller.

    Timestamps are milliseconds read from the injected clock.
    """

    sequence: tuple[NoteSpec, ...]
    current_index: int = 0
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    attempts: int = 0
    correct: int = 0
    lives: int = 3
    avg_response_ms: int = 0
    started_at: float = 0.0
    expecting_note_since: float = 0.0
    is_paused: bool = False
    is_game_over: bool = False
    last_was_correct: bool | None = None
    flash_error: bool = False

    @property
    def expected_note(self) -> NoteSpec | None:
        """The note the player must play next, or None once the game is over."""
        if self.is_game_over or self.current_index >= len(self.sequence):
            return None
        return self.sequence[self.current_index]

    @property
    def accuracy(self) -> int:
        return accuracy(self.correct, self.attempts)

    @property
    def notes_per_minute(self) -> int:
        return notes_per_minute(self.avg_response_ms)

    @property
    def is_active(self) -> bool:
        return not self.is_paused and not self.is_game_over


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session figures handed to the persistence layer."""

    score: int
    final_score: int
    accuracy: int
    best_streak: int
    correct: int
    attempts: int
    avg_response_ms: int
    notes_per_minute: int
    duration_seconds: int
    difficulty: str
