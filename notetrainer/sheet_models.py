"""Data models for practice-sheet rendering outputs."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StaffNote:
    """A single VexFlow note or rest token on one staff."""

    keys: list[str]
    duration: str
    accidentals: list[str | None]

    @property
    def is_rest(self) -> bool:
        return self.duration.endswith("r")


@dataclass(frozen=True)
class SheetMeasure:
    """One grand-staff measure; each staff holds a note or a rest per beat."""

    treble: list[StaffNote]
    bass: list[StaffNote]


@dataclass(frozen=True)
class SheetDocument:
    """
    Neutral practice-sheet representation consumed by the VexFlow renderer.

    ``answers`` lists the pitch names in sequence order; it is empty unless
    an answer key was requested.
    """

    title: str
    time_signature: str
    beats: int
    beat_value: int
    measures: list[SheetMeasure]
    answers: list[str] = field(default_factory=list)
