"""Game configuration: difficulty tiers, clef choices and validated settings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Final

# ── Configuration bounds ────────────────────────────────────────────────────
MIN_LIVES = 1
MAX_LIVES = 5
MIN_SEQUENCE_LENGTH = 3
MAX_SEQUENCE_LENGTH = 20


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ClefChoice(str, Enum):
    """Clef selection for a whole session; ``BOTH`` assigns a clef per note."""

    TREBLE = "treble"
    BASS = "bass"
    BOTH = "both"


@dataclass(frozen=True)
class DifficultyProfile:
    """
    Fixed generation parameters for one difficulty tier.

    Attributes:
        min_note:                      Lowest note number a sequence may contain.
        max_note:                      Highest note number a sequence may contain.
        naturals_only:                 Restrict every note to a natural pitch class.
        accidental_probability:        Chance that a note carries an accidental.
        double_accidental_probability: Chance of a double accidental; a subset
                                       of ``accidental_probability``.
        max_ledger_lines:              Display hint only, never enforced here.
        default_sequence_length:       Sequence length used by ``for_difficulty``.
    """

    min_note: int
    max_note: int
    naturals_only: bool
    accidental_probability: float
    double_accidental_probability: float
    max_ledger_lines: int
    default_sequence_length: int

    def __post_init__(self) -> None:
        if not 21 <= self.min_note <= self.max_note <= 108:
            raise ValueError(
                f"Invalid note range {self.min_note}..{self.max_note}; must lie within 21..108."
            )
        if not 0.0 <= self.accidental_probability <= 1.0:
            raise ValueError("accidental_probability must be within [0, 1].")
        # The generator divides the double probability by the single one.
        if not 0.0 <= self.double_accidental_probability <= self.accidental_probability:
            raise ValueError(
                "double_accidental_probability must be within [0, accidental_probability]."
            )


DIFFICULTY_PROFILES: Final[dict[Difficulty, DifficultyProfile]] = {
    Difficulty.BEGINNER: DifficultyProfile(
        min_note=48,  # C3
        max_note=72,  # C5
        naturals_only=True,
        accidental_probability=0.0,
        double_accidental_probability=0.0,
        max_ledger_lines=1,
        default_sequence_length=5,
    ),
    Difficulty.INTERMEDIATE: DifficultyProfile(
        min_note=45,  # A2
        max_note=76,  # E5
        naturals_only=False,
        accidental_probability=0.3,
        double_accidental_probability=0.0,
        max_ledger_lines=2,
        default_sequence_length=8,
    ),
    Difficulty.ADVANCED: DifficultyProfile(
        min_note=41,  # F2
        max_note=79,  # G5
        naturals_only=False,
        accidental_probability=0.5,
        double_accidental_probability=0.05,
        max_ledger_lines=3,
        default_sequence_length=12,
    ),
}


@dataclass(frozen=True)
class GameSettings:
    """
    Immutable, validated configuration for one training session.

    ``allow_double_accidentals`` is only honoured on the advanced tier; see
    ``double_accidentals_enabled``.
    """

    difficulty: Difficulty = Difficulty.BEGINNER
    clef: ClefChoice = ClefChoice.TREBLE
    lives: int = 3
    sequence_length: int = 5
    allow_double_accidentals: bool = False
    profile: DifficultyProfile = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept plain strings from the CLI and JSON storage.
        object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        object.__setattr__(self, "clef", ClefChoice(self.clef))
        for name in ("lives", "sequence_length"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}.")
        if not isinstance(self.allow_double_accidentals, bool):
            raise ValueError(
                f"allow_double_accidentals must be a boolean, got {self.allow_double_accidentals!r}."
            )
        if not MIN_LIVES <= self.lives <= MAX_LIVES:
            raise ValueError(f"lives must be within {MIN_LIVES}..{MAX_LIVES}, got {self.lives}.")
        if not MIN_SEQUENCE_LENGTH <= self.sequence_length <= MAX_SEQUENCE_LENGTH:
            raise ValueError(
                f"sequence_length must be within {MIN_SEQUENCE_LENGTH}..{MAX_SEQUENCE_LENGTH}, "
                f"got {self.sequence_length}."
            )
        object.__setattr__(self, "profile", DIFFICULTY_PROFILES[self.difficulty])

    @classmethod
    def for_difficulty(cls, difficulty: Difficulty | str, **overrides: object) -> "GameSettings":
        """Build settings using the tier's default sequence length."""
        tier = Difficulty(difficulty)
        values: dict[str, object] = {
            "difficulty": tier,
            "sequence_length": DIFFICULTY_PROFILES[tier].default_sequence_length,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    @property
    def double_accidentals_enabled(self) -> bool:
        return self.allow_double_accidentals and self.difficulty is Difficulty.ADVANCED

    def to_dict(self) -> dict[str, object]:
        return {
            "difficulty": self.difficulty.value,
            "clef": self.clef.value,
            "lives": self.lives,
            "sequence_length": self.sequence_length,
            "allow_double_accidentals": self.allow_double_accidentals,
        }


DEFAULT_SETTINGS: Final[GameSettings] = GameSettings()
