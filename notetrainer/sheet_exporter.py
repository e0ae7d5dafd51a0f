"""SheetExporter: writes a note sequence as a printable practice sheet."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Final

from notetrainer.models import Clef, NoteSpec
from notetrainer.sheet_models import SheetDocument, SheetMeasure, StaffNote
from notetrainer.sheet_renderers import (
    SheetRenderer,
    VerovioHtmlRenderer,
    VexflowMarkdownRenderer,
)

SUPPORTED_FORMATS: Final[set[str]] = {"html", "md-vexflow"}

BEATS_PER_MEASURE = 4
BEAT_VALUE = 4

_PITCH_PARTS = re.compile(r"^([A-G])(#{1,2}|b{1,2})?(-?\d+)$")


class SheetExporter:
    """
    Engrave a generated sequence as one quarter note per entry on a grand staff.

    Each note sits on its assigned staff while the other staff rests, four
    notes to a measure. Supported formats:

    - ``html``: music21 score -> MusicXML -> Verovio -> inline SVG worksheet.
    - ``md-vexflow``: Markdown with an embedded VexFlow renderer.
    """

    _REST_KEYS: Final[dict[Clef, str]] = {Clef.TREBLE: "b/4", Clef.BASS: "d/3"}

    def __init__(self, title: str = "", output_format: str = "html", show_answers: bool = False) -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.show_answers = show_answers
        self.renderer = self._build_renderer(normalized)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "html":
            return VerovioHtmlRenderer()
        return VexflowMarkdownRenderer()

    def _answers(self, sequence: Sequence[NoteSpec]) -> list[str]:
        return [note.pitch for note in sequence] if self.show_answers else []

    def _rest(self, clef: Clef) -> StaffNote:
        return StaffNote(keys=[self._REST_KEYS[clef]], duration="qr", accidentals=[None])

    def _staff_note(self, note: NoteSpec) -> StaffNote:
        accidental = note.accidental.value if note.accidental is not None else None
        return StaffNote(keys=[note.notation_key.lower()], duration="q", accidentals=[accidental])

    def _sequence_to_document(self, sequence: Sequence[NoteSpec]) -> SheetDocument:
        measures: list[SheetMeasure] = []
        for start in range(0, len(sequence), BEATS_PER_MEASURE):
            chunk = list(sequence[start:start + BEATS_PER_MEASURE])
            treble: list[StaffNote] = []
            bass: list[StaffNote] = []
            for note in chunk:
                if note.clef is Clef.TREBLE:
                    treble.append(self._staff_note(note))
                    bass.append(self._rest(Clef.BASS))
                else:
                    treble.append(self._rest(Clef.TREBLE))
                    bass.append(self._staff_note(note))
            # Pad a short final measure so both voices stay complete.
            for _ in range(BEATS_PER_MEASURE - len(chunk)):
                treble.append(self._rest(Clef.TREBLE))
                bass.append(self._rest(Clef.BASS))
            measures.append(SheetMeasure(treble=treble, bass=bass))

        return SheetDocument(
            title=self.title,
            time_signature=f"{BEATS_PER_MEASURE}/{BEAT_VALUE}",
            beats=BEATS_PER_MEASURE,
            beat_value=BEAT_VALUE,
            measures=measures,
            answers=self._answers(sequence),
        )

    def _music21_pitch(self, pitch: str) -> str:
        """music21 spells flats with ``-``: ``Bb4`` -> ``B-4``, ``Cbb3`` -> ``C--3``."""
        match = _PITCH_PARTS.match(pitch)
        if not match:
            raise ValueError(f"Cannot engrave pitch {pitch!r}.")
        letter, accidental, octave = match.groups()
        return f"{letter}{(accidental or '').replace('b', '-')}{octave}"

    def _sequence_to_score(self, sequence: Sequence[NoteSpec]) -> Any:
        from music21 import clef, meter, metadata, note, stream

        score = stream.Score()
        score.insert(0, metadata.Metadata(title=self.title))
        parts: dict[Clef, Any] = {}
        for staff, staff_clef in ((Clef.TREBLE, clef.TrebleClef()), (Clef.BASS, clef.BassClef())):
            part = stream.Part()
            part.append(staff_clef)
            part.append(meter.TimeSignature(f"{BEATS_PER_MEASURE}/{BEAT_VALUE}"))
            parts[staff] = part

        for spec in sequence:
            for staff, part in parts.items():
                if staff is spec.clef:
                    part.append(note.Note(self._music21_pitch(spec.pitch), quarterLength=1.0))
                else:
                    part.append(note.Rest(quarterLength=1.0))

        for part in parts.values():
            score.insert(0, part)
        return score

    def _score_to_musicxml_bytes(self, score: Any) -> bytes:
        from music21.musicxml.m21ToXml import GeneralObjectExporter

        exporter = GeneralObjectExporter(score)
        return exporter.parse()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, sequence: Sequence[NoteSpec]) -> str:
        """
        Render ``sequence`` in the selected format.

        Raises:
            ValueError: If the sequence is empty or rendering fails.
        """
        if not sequence:
            raise ValueError("Cannot render an empty sequence.")

        if self.output_format == "html":
            return self.renderer.render(
                title=self.title,
                musicxml_bytes=self._score_to_musicxml_bytes(self._sequence_to_score(sequence)),
                answers=self._answers(sequence),
            )
        return self.renderer.render(title=self.title, document=self._sequence_to_document(sequence))

    def export(self, sequence: Sequence[NoteSpec], output_path: str) -> None:
        """
        Render ``sequence`` and write it to ``output_path``.

        Raises:
            ValueError: If rendering fails.
            OSError: If the output file cannot be written.
        """
        content = self.render(sequence)
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
