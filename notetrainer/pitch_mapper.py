"""PitchMapper: conversions between note numbers, pitch names and notation keys."""

import re

import numpy as np

from notetrainer.models import Accidental, Clef

# ── MIDI constants ──────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
MIDDLE_C = 60  # C4 in Scientific Pitch Notation
MAX_VELOCITY = 127

SHARP_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

#: Pitch classes of the seven natural notes (white keys).
NATURAL_PITCH_CLASSES: frozenset[int] = frozenset({0, 2, 4, 5, 7, 9, 11})

#: Semitone offset of each natural letter above C.
LETTER_OFFSETS: dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

#: Order of the natural letters within an octave, for counting staff steps.
LETTERS = "CDEFGAB"

#: Bottom line of each staff: E4 on treble, G2 on bass.
_BOTTOM_LINES: dict[Clef, tuple[str, int]] = {Clef.TREBLE: ("E", 4), Clef.BASS: ("G", 2)}
_TOP_LINE_STEP = 8

_ACCIDENTAL_WORDS: dict[Accidental, str] = {
    Accidental.SHARP: "sharp",
    Accidental.FLAT: "flat",
    Accidental.DOUBLE_SHARP: "double sharp",
    Accidental.DOUBLE_FLAT: "double flat",
}

_PITCH_RE = re.compile(r"^([A-G])(##|#|bb|b)?(-?\d+)$")
# The notation renderer also understands an explicit natural sign.
_NOTATION_RE = re.compile(r"^([A-G])(##|#|bb|b|n)?(-?\d+)$")


class InvalidPitchFormat(ValueError):
    """Raised when a pitch name is not ``<letter>[accidental]<octave>``."""

    def __init__(self, pitch: str) -> None:
        super().__init__(f"Invalid pitch: {pitch!r}")
        self.pitch = pitch


def note_number_to_pitch(note_number: int, prefer_flat: bool = False) -> str:
    """
    Convert a note number to its pitch name.

    MIDI octave numbering: C-1 = 0, C0 = 12, ... C4 (Middle C) = 60.

    Args:
        note_number: MIDI note number.
        prefer_flat: Spell black keys with flats (``Db4``) instead of sharps.

    Returns:
        Pitch name such as ``"C4"`` or ``"F#3"``.
    """
    octave, pitch_class = divmod(note_number, SEMITONES_PER_OCTAVE)
    names = FLAT_NAMES if prefer_flat else SHARP_NAMES
    return f"{names[pitch_class]}{octave - 1}"


def pitch_to_note_number(pitch: str) -> int:
    """
    Parse a pitch name such as ``"C#4"`` or ``"Bbb-1"`` into a note number.

    Raises:
        InvalidPitchFormat: If the name does not match the pitch grammar.
    """
    match = _PITCH_RE.match(pitch)
    if not match:
        raise InvalidPitchFormat(pitch)

    letter, accidental, octave = match.groups()
    offset = LETTER_OFFSETS[letter]
    if accidental:
        offset += Accidental(accidental).semitones
    return (int(octave) + 1) * SEMITONES_PER_OCTAVE + offset


def pitch_to_notation_key(pitch: str, clef: Clef | None = None) -> str:
    """
    Rewrite a pitch name into the ``<letter><accidental>/<octave>`` key form.

    The key is the same for either staff; ``clef`` is accepted so callers can
    pass the note's staff through unchanged.

    Raises:
        InvalidPitchFormat: If the name does not match the pitch grammar.
    """
    match = _NOTATION_RE.match(pitch)
    if not match:
        raise InvalidPitchFormat(pitch)

    letter, accidental, octave = match.groups()
    return f"{letter}{accidental or ''}/{octave}"


def accidental_of(pitch: str) -> Accidental | None:
    """Return the accidental spelled in ``pitch``, or None for a natural or bad name."""
    match = _PITCH_RE.match(pitch)
    if not match or not match.group(2):
        return None
    return Accidental(match.group(2))


def is_natural(note_number: int) -> bool:
    return note_number % SEMITONES_PER_OCTAVE in NATURAL_PITCH_CLASSES


def naturals_in_range(min_note: int, max_note: int) -> list[int]:
    """All natural note numbers in the inclusive range, ascending."""
    return [n for n in range(min_note, max_note + 1) if is_natural(n)]


def random_natural_in_range(min_note: int, max_note: int, rng: np.random.Generator) -> int:
    """
    Pick a natural note uniformly from the inclusive range.

    Raises:
        ValueError: If the range holds no natural note.
    """
    naturals = naturals_in_range(min_note, max_note)
    if not naturals:
        raise ValueError(f"No natural notes between {min_note} and {max_note}.")
    index = int(rng.integers(0, len(naturals) - 1, endpoint=True))
    return naturals[index]


def apply_accidental(note_number: int, accidental: Accidental) -> tuple[int, str]:
    """
    Raise or lower a natural note by ``accidental``.

    The pitch name keeps the base note's letter and octave, so B4 with a sharp
    is spelled ``"B#4"`` even though it sounds as C5.

    Returns:
        (shifted note number, pitch name)
    """
    octave, pitch_class = divmod(note_number, SEMITONES_PER_OCTAVE)
    letter = SHARP_NAMES[pitch_class][0]
    return note_number + accidental.semitones, f"{letter}{accidental.value}{octave - 1}"


def suggest_clef(note_number: int) -> Clef:
    """Middle C and above read in treble, everything lower in bass."""
    return Clef.TREBLE if note_number >= MIDDLE_C else Clef.BASS


def normalize_velocity(velocity: int) -> float:
    """Map a 0-127 velocity into [0, 1]."""
    return max(0.0, min(1.0, velocity / MAX_VELOCITY))


def staff_step(pitch: str, clef: Clef) -> int:
    """
    Diatonic steps from the bottom line of ``clef``'s staff to ``pitch``.

    Even steps sit on a line, odd steps in a space; 0..8 lie on the staff.
    Accidentals do not move a note on the staff.

    Raises:
        InvalidPitchFormat: If the name does not match the pitch grammar.
    """
    match = _PITCH_RE.match(pitch)
    if not match:
        raise InvalidPitchFormat(pitch)
    letter, _, octave = match.groups()
    bottom_letter, bottom_octave = _BOTTOM_LINES[clef]
    return (int(octave) - bottom_octave) * len(LETTERS) + LETTERS.index(letter) - LETTERS.index(bottom_letter)


def _ordinal(n: int) -> str:
    return {1: "1st", 2: "2nd", 3: "3rd"}.get(n, f"{n}th")


def describe_staff_position(pitch: str, clef: Clef) -> str:
    """
    Name where ``pitch`` is written without giving the letter away.

    Examples: ``E4`` on treble is ``"1st line"``, ``C4`` is ``"1st ledger line
    below"``, ``Bb2`` on bass is ``"2nd line, flat"``.
    """
    step = staff_step(pitch, clef)
    if 0 <= step <= _TOP_LINE_STEP:
        number = step // 2 + 1
        position = f"{_ordinal(number)} line" if step % 2 == 0 else f"{_ordinal(number)} space"
    elif step > _TOP_LINE_STEP:
        above = step - _TOP_LINE_STEP
        if above % 2 == 0:
            position = f"{_ordinal(above // 2)} ledger line above"
        elif above == 1:
            position = "space above the staff"
        else:
            position = f"above {_ordinal(above // 2)} ledger line"
    else:
        below = -step
        if below % 2 == 0:
            position = f"{_ordinal(below // 2)} ledger line below"
        elif below == 1:
            position = "space below the staff"
        else:
            position = f"below {_ordinal(below // 2)} ledger line"

    accidental = accidental_of(pitch)
    if accidental is None:
        return position
    return f"{position}, {_ACCIDENTAL_WORDS[accidental]}"
