"""notetrainer CLI entry point."""

import logging
import sys

import click
import numpy as np

from notetrainer import __version__, storage
from notetrainer.game_state import GameStateMachine
from notetrainer.models import NoteEvent, NoteSpec, SessionSnapshot
from notetrainer.pitch_mapper import describe_staff_position, pitch_to_note_number
from notetrainer.scoring import format_time
from notetrainer.sequence_generator import generate_sequence
from notetrainer.settings import (
    DIFFICULTY_PROFILES,
    MAX_LIVES,
    MAX_SEQUENCE_LENGTH,
    MIN_LIVES,
    MIN_SEQUENCE_LENGTH,
    ClefChoice,
    Difficulty,
    GameSettings,
)

DIFFICULTY_CHOICE = click.Choice([d.value for d in Difficulty], case_sensitive=False)
CLEF_CHOICE = click.Choice([c.value for c in ClefChoice], case_sensitive=False)
OUTPUT_FORMATS = ["text", "html", "md-vexflow", "midi"]

PAUSE_COMMAND = "p"
RESUME_COMMAND = "r"
QUIT_COMMAND = "q"


def _parse_note(raw: str) -> int:
    """
    Turn typed input into a note number: ``61``, ``C#4`` and ``c#4`` all work.

    Raises:
        ValueError: If the text is neither a note number nor a pitch name.
    """
    text = raw.strip()
    if text.lstrip("-").isdigit():
        return NoteEvent(int(text)).note_number
    return pitch_to_note_number(text[:1].upper() + text[1:])


def _resolve_settings(
    stored: GameSettings,
    difficulty: str | None,
    clef: str | None,
    lives: int | None,
    length: int | None,
    double_accidentals: bool | None,
) -> GameSettings:
    """Overlay the options given on the command line onto stored settings."""
    values = stored.to_dict()
    if difficulty is not None:
        values["difficulty"] = difficulty.lower()
        if length is None:
            values["sequence_length"] = DIFFICULTY_PROFILES[Difficulty(difficulty.lower())].default_sequence_length
    if clef is not None:
        values["clef"] = clef.lower()
    if lives is not None:
        values["lives"] = lives
    if length is not None:
        values["sequence_length"] = length
    if double_accidentals is not None:
        values["allow_double_accidentals"] = double_accidentals
    return GameSettings(**values)  # type: ignore[arg-type]


def _describe_note(index: int, note: NoteSpec) -> str:
    return f"  {index:2d}. {note.pitch:<6} {note.notation_key:<7} {note.clef.value:<6}  ({note.note_number})"


def _note_prompt(snapshot: SessionSnapshot, note: NoteSpec, show_names: bool) -> str:
    """Where to find the note on its staff; the pitch name only with ``show_names``."""
    target = note.notation_key if show_names else describe_staff_position(note.pitch, note.clef)
    return f"[{snapshot.current_index + 1}/{len(snapshot.sequence)}] Play {target} ({note.clef.value} clef)"


def _status_line(snapshot: SessionSnapshot, max_lives: int) -> str:
    hearts = "●" * snapshot.lives + "○" * (max_lives - snapshot.lives)
    return (
        f"score {snapshot.score}  streak {snapshot.streak}  lives {hearts}  "
        f"accuracy {snapshot.accuracy}%  {snapshot.notes_per_minute} notes/min"
    )


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="notetrainer")
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions to stderr.")
def main(verbose: bool) -> None:
    """notetrainer — note-recognition drills for piano players."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── generate subcommand ────────────────────────────────────────────────────────

@main.command()
@click.option("--difficulty", type=DIFFICULTY_CHOICE, default="beginner", show_default=True)
@click.option("--clef", type=CLEF_CHOICE, default="treble", show_default=True)
@click.option(
    "--length",
    type=click.IntRange(MIN_SEQUENCE_LENGTH, MAX_SEQUENCE_LENGTH),
    default=None,
    help="Number of notes. Defaults to the difficulty's sequence length.",
)
@click.option(
    "--double-accidentals/--no-double-accidentals",
    default=False,
    show_default=True,
    help="Allow ## and bb (advanced difficulty only).",
)
@click.option("--seed", type=int, default=None, help="Random seed for a repeatable sequence.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default="text",
    show_default=True,
    help="text listing, printable HTML sheet, Markdown with VexFlow, or a MIDI file.",
)
@click.option("--output", "-o", default=None, metavar="PATH", help="Destination file path.")
@click.option("--answers", is_flag=True, help="Append an answer key to sheet output.")
def generate(
    difficulty: str,
    clef: str,
    length: int | None,
    double_accidentals: bool,
    seed: int | None,
    output_format: str,
    output: str | None,
    answers: bool,
) -> None:
    """
    Generate a practice sequence and print it or write it to a file.

    \b
    Examples:
      notetrainer generate --difficulty intermediate --clef both
      notetrainer generate --difficulty advanced --format html -o drill.html --answers
      notetrainer generate --seed 7 --format midi -o drill.mid
    """
    overrides: dict[str, object] = {
        "clef": clef.lower(),
        "allow_double_accidentals": double_accidentals,
    }
    if length is not None:
        overrides["sequence_length"] = length
    settings = GameSettings.for_difficulty(difficulty.lower(), **overrides)
    sequence = generate_sequence(settings, np.random.default_rng(seed))

    normalized_format = output_format.lower()
    if normalized_format == "text":
        for index, note in enumerate(sequence, start=1):
            click.echo(_describe_note(index, note))
        return

    default_suffix = {"html": ".html", "md-vexflow": ".md", "midi": ".mid"}[normalized_format]
    resolved_output = output if output is not None else f"drill{default_suffix}"
    title = f"{settings.difficulty.value.title()} drill ({settings.clef.value} clef)"

    try:
        if normalized_format == "midi":
            from notetrainer.midi_exporter import MidiExporter

            MidiExporter().export(sequence, resolved_output)
        else:
            from notetrainer.sheet_exporter import SheetExporter

            SheetExporter(title=title, output_format=normalized_format, show_answers=answers).export(
                sequence, resolved_output
            )
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render sequence — {exc}", err=True)
        sys.exit(1)

    click.echo(f"Wrote {len(sequence)} notes → '{resolved_output}'")


# ── play subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.option("--difficulty", type=DIFFICULTY_CHOICE, default=None, help="Defaults to stored settings.")
@click.option("--clef", type=CLEF_CHOICE, default=None, help="Defaults to stored settings.")
@click.option("--lives", type=click.IntRange(MIN_LIVES, MAX_LIVES), default=None)
@click.option("--length", type=click.IntRange(MIN_SEQUENCE_LENGTH, MAX_SEQUENCE_LENGTH), default=None)
@click.option("--double-accidentals/--no-double-accidentals", default=None)
@click.option("--seed", type=int, default=None, help="Random seed for repeatable sequences.")
@click.option("--show-names", is_flag=True, help="Prompt with the pitch name instead of its staff position.")
def play(
    difficulty: str | None,
    clef: str | None,
    lives: int | None,
    length: int | None,
    double_accidentals: bool | None,
    seed: int | None,
    show_names: bool,
) -> None:
    """
    Play a session in the terminal.

    Each prompt names the staff position and accidental of the next note.
    Type it as a pitch name (C#4, Bb3) or a note number (61).
    Enter p to pause, r to resume and q to quit.
    """
    settings = _resolve_settings(
        storage.load_settings(), difficulty, clef, lives, length, double_accidentals
    )
    storage.save_settings(settings)

    machine = GameStateMachine(settings, rng=np.random.default_rng(seed))
    snapshot = machine.start()

    click.echo(f"notetrainer v{__version__}")
    click.echo(
        f"  Difficulty: {settings.difficulty.value}  |  Clef: {settings.clef.value}  |  "
        f"Lives: {settings.lives}  |  Length: {settings.sequence_length}"
    )
    click.echo()

    while not snapshot.is_game_over:
        expected = snapshot.expected_note
        if snapshot.is_paused:
            prompt = "Paused (r to resume)"
        elif expected is not None:
            prompt = _note_prompt(snapshot, expected, show_names)
        else:
            prompt = "Play"

        try:
            raw = click.prompt(prompt, default="", show_default=False)
        except click.Abort:
            break

        command = raw.strip().lower()
        if command == QUIT_COMMAND:
            break
        if command == PAUSE_COMMAND:
            snapshot = machine.pause(snapshot)
            continue
        if command == RESUME_COMMAND:
            snapshot = machine.resume(snapshot)
            continue
        if not command:
            continue
        if snapshot.is_paused:
            click.echo("  Paused; input ignored.")
            continue

        try:
            note_number = _parse_note(raw)
        except ValueError as exc:
            click.echo(f"  ? {exc}", err=True)
            continue

        snapshot = machine.handle_input(snapshot, note_number)
        if snapshot.flash_error:
            click.echo(click.style("  ✗ wrong note", fg="red"))
            snapshot = machine.clear_flash_error(snapshot)
        elif snapshot.last_was_correct:
            click.echo(click.style("  ✓", fg="green"))
        click.echo(f"  {_status_line(snapshot, settings.lives)}")

    summary = machine.summarize(snapshot)
    click.echo()
    click.echo("Game over!" if snapshot.is_game_over else "Session ended.")
    click.echo(f"  Score       : {summary.score}  (final {summary.final_score})")
    click.echo(f"  Accuracy    : {summary.accuracy}%  ({summary.correct}/{summary.attempts})")
    click.echo(f"  Best streak : {summary.best_streak}")
    click.echo(f"  Speed       : {summary.notes_per_minute} notes/min")
    click.echo(f"  Time        : {format_time(summary.duration_seconds)}")

    if snapshot.is_game_over and storage.save_high_score(storage.HighScoreEntry.from_summary(summary)):
        click.echo(click.style("  New high score!", fg="yellow"))


# ── scores subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.option("--clear", is_flag=True, help="Delete stored settings and the high score.")
def scores(clear: bool) -> None:
    """Show the stored high score."""
    if clear:
        storage.clear_all_data()
        click.echo("Stored data cleared.")
        return

    entry = storage.get_high_score()
    if entry is None:
        click.echo("No high score yet.")
        return
    click.echo(
        f"High score: {entry.score}  accuracy {entry.accuracy}%  streak {entry.streak}  "
        f"({entry.difficulty}, {entry.date})"
    )
