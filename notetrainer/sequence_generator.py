"""SequenceGenerator: constrained-random note sequences for a training session."""

import logging
from collections.abc import Sequence

import numpy as np

from notetrainer.models import Accidental, Clef, NoteSpec
from notetrainer.pitch_mapper import (
    apply_accidental,
    is_natural,
    note_number_to_pitch,
    pitch_to_notation_key,
    random_natural_in_range,
    suggest_clef,
)
from notetrainer.settings import ClefChoice, GameSettings

logger = logging.getLogger(__name__)

SINGLE_ACCIDENTALS: tuple[Accidental, Accidental] = (Accidental.SHARP, Accidental.FLAT)
DOUBLE_ACCIDENTALS: tuple[Accidental, Accidental] = (
    Accidental.DOUBLE_SHARP,
    Accidental.DOUBLE_FLAT,
)


def assign_clef(choice: ClefChoice, note_number: int) -> Clef:
    """Resolve the session's clef choice into the staff for one note."""
    if choice is ClefChoice.TREBLE:
        return Clef.TREBLE
    if choice is ClefChoice.BASS:
        return Clef.BASS
    return suggest_clef(note_number)


class SequenceGenerator:
    """
    Produces note sequences that respect a session's difficulty and clef rules.

    Algorithm overview
    ------------------
    Each note is drawn independently:

    1. **Naturals-only tiers** – a natural note chosen uniformly in range.

    2. **Accidental draw** – otherwise a uniform draw below the profile's
       ``accidental_probability`` asks for an accidental; anything else is a
       natural note.

    3. **Accidental placement** – a natural base note is raised or lowered
       (sign chosen uniformly). A double accidental needs both the setting
       enabled and a second draw below
       ``double_accidental_probability / accidental_probability``. A shifted
       note that leaves the range silently falls back to its natural base.

    4. **Clef and spelling** – the clef is fixed or suggested from the pitch,
       and the pitch name and notation key come from the pitch mapper.
    """

    def __init__(self, settings: GameSettings, rng: np.random.Generator | None = None) -> None:
        """
        Args:
            settings: Session configuration; its difficulty selects the profile.
            rng:      Source of uniform randomness. A fresh unseeded generator
                      is used when omitted.
        """
        self.settings = settings
        self.profile = settings.profile
        self.rng = rng if rng is not None else np.random.default_rng()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _random_natural(self) -> int:
        return random_natural_in_range(self.profile.min_note, self.profile.max_note, self.rng)

    def _choose_accidental(self) -> Accidental:
        profile = self.profile
        use_double = (
            self.settings.double_accidentals_enabled
            and self.rng.random()
            < profile.double_accidental_probability / profile.accidental_probability
        )
        family = DOUBLE_ACCIDENTALS if use_double else SINGLE_ACCIDENTALS
        return family[int(self.rng.integers(0, 1, endpoint=True))]

    def _pick_note(self) -> tuple[int, str, Accidental | None]:
        """Return (note number, pitch name, accidental) for one position."""
        profile = self.profile
        if profile.naturals_only or self.rng.random() >= profile.accidental_probability:
            note_number = self._random_natural()
            return note_number, note_number_to_pitch(note_number), None

        base = self._random_natural()
        accidental = self._choose_accidental()
        shifted, pitch = apply_accidental(base, accidental)
        if not profile.min_note <= shifted <= profile.max_note:
            logger.debug(
                "Accidental %s on %d leaves range %d..%d; using the natural",
                accidental.value, base, profile.min_note, profile.max_note,
            )
            return base, note_number_to_pitch(base), None
        return shifted, pitch, accidental

    def _generate_note(self) -> NoteSpec:
        note_number, pitch, accidental = self._pick_note()
        clef = assign_clef(self.settings.clef, note_number)
        return NoteSpec(
            note_number=note_number,
            pitch=pitch,
            notation_key=pitch_to_notation_key(pitch, clef),
            clef=clef,
            accidental=accidental,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self) -> tuple[NoteSpec, ...]:
        """Generate ``settings.sequence_length`` notes."""
        return tuple(self._generate_note() for _ in range(self.settings.sequence_length))

    def regenerate(self) -> tuple[NoteSpec, ...]:
        """Replace a sequence mid-session; identical to ``generate``."""
        logger.debug("Regenerating %d-note sequence", self.settings.sequence_length)
        return self.generate()

    def validate(self, sequence: Sequence[NoteSpec]) -> bool:
        return validate_sequence(sequence, self.settings)


def generate_sequence(
    settings: GameSettings, rng: np.random.Generator | None = None
) -> tuple[NoteSpec, ...]:
    return SequenceGenerator(settings, rng).generate()


def regenerate_sequence(
    settings: GameSettings, rng: np.random.Generator | None = None
) -> tuple[NoteSpec, ...]:
    return SequenceGenerator(settings, rng).regenerate()


def validate_sequence(sequence: Sequence[NoteSpec], settings: GameSettings) -> bool:
    """
    Check a sequence against the session's rules.

    Checks range, naturals-only, clef (unless ``both``) and double
    accidentals when they are not enabled. Needs no randomness.
    """
    profile = settings.profile
    for note in sequence:
        if not profile.min_note <= note.note_number <= profile.max_note:
            return False
        if profile.naturals_only and (
            note.accidental is not None or not is_natural(note.note_number)
        ):
            return False
        if settings.clef is not ClefChoice.BOTH and note.clef.value != settings.clef.value:
            return False
        if (
            not settings.double_accidentals_enabled
            and note.accidental is not None
            and note.accidental.is_double
        ):
            return False
    return True
