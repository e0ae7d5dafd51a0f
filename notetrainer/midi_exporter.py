"""MidiExporter: writes a note sequence to a Standard MIDI File for listening back."""

from collections.abc import Sequence

from midiutil import MIDIFile

from notetrainer.models import Clef, NoteSpec

TRACK_CONDUCTOR = 0  # Tempo only
TRACK_TREBLE = 1     # Notes written on the treble staff
TRACK_BASS = 2       # Notes written on the bass staff

CHANNEL_TREBLE = 0
CHANNEL_BASS = 1


class MidiExporter:
    """
    Writes a generated sequence as one note per beat.

    Track layout (Format 1, 3 tracks)
    ---------------------------------
    Track 0 — conductor track (tempo only).

    Track 1 — "Treble"; notes whose ``clef`` is treble.

    Track 2 — "Bass"; notes whose ``clef`` is bass.

    Splitting by staff keeps the file in step with the practice sheet, so a
    notation app imports it onto the same two staves.
    """

    DEFAULT_TEMPO = 60     # BPM; one note per second
    DEFAULT_VELOCITY = 80
    NOTE_LENGTH = 0.9      # Beats; a short gap separates repeated pitches

    def __init__(self, tempo: int = DEFAULT_TEMPO, velocity: int = DEFAULT_VELOCITY) -> None:
        """
        Args:
            tempo:    Playback tempo in beats per minute.
            velocity: MIDI note-on velocity for every note.
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}.")
        self.tempo = tempo
        self.velocity = velocity

    def build(self, sequence: Sequence[NoteSpec]) -> MIDIFile:
        midi = MIDIFile(numTracks=3, removeDuplicates=False, deinterleave=False)
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)
        # 4/4, matching the practice sheet; the denominator is a power of two.
        midi.addTimeSignature(TRACK_CONDUCTOR, 0, 4, 2, 24)
        midi.addTrackName(TRACK_TREBLE, 0, "Treble")
        midi.addTrackName(TRACK_BASS, 0, "Bass")

        for beat, note in enumerate(sequence):
            if note.clef is Clef.TREBLE:
                track, channel = TRACK_TREBLE, CHANNEL_TREBLE
            else:
                track, channel = TRACK_BASS, CHANNEL_BASS
            midi.addNote(
                track=track,
                channel=channel,
                pitch=note.note_number,
                time=float(beat),
                duration=self.NOTE_LENGTH,
                volume=self.velocity,
            )
        return midi

    def export(self, sequence: Sequence[NoteSpec], output_path: str) -> None:
        """
        Write ``sequence`` to ``output_path``.

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self.build(sequence)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
