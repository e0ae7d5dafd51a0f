"""Persistence of user settings and the best high score as JSON files."""

import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import date as date_type
from pathlib import Path
from typing import Any

from notetrainer.models import SessionSummary
from notetrainer.settings import DEFAULT_SETTINGS, GameSettings

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "NOTETRAINER_HOME"
SETTINGS_FILENAME = "settings.json"
HIGH_SCORE_FILENAME = "highscore.json"


def data_dir() -> Path:
    """Directory holding stored data; ``$NOTETRAINER_HOME`` overrides the default."""
    env_path = os.environ.get(HOME_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".notetrainer"


@dataclass(frozen=True)
class HighScoreEntry:
    score: int
    accuracy: int
    streak: int
    date: str
    difficulty: str

    @classmethod
    def from_summary(cls, summary: SessionSummary, on: date_type | None = None) -> "HighScoreEntry":
        """Record a finished session; the final (speed-bonus) score is the one ranked."""
        day = on if on is not None else date_type.today()
        return cls(
            score=summary.final_score,
            accuracy=summary.accuracy,
            streak=summary.best_streak,
            date=day.isoformat(),
            difficulty=summary.difficulty,
        )


def _read_json(path: Path) -> Any | None:
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def _write_json(path: Path, payload: Any) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
    except OSError as exc:
        logger.warning("Could not write %s: %s", path, exc)
        return False
    return True


def save_settings(settings: GameSettings, directory: Path | None = None) -> None:
    """Store ``settings``; failures are logged and never interrupt a session."""
    _write_json((directory or data_dir()) / SETTINGS_FILENAME, settings.to_dict())


def load_settings(directory: Path | None = None) -> GameSettings:
    """
    Load stored settings merged over the defaults.

    Unknown keys are dropped so older or newer files still load. Returns
    ``DEFAULT_SETTINGS`` when the file is missing, unreadable or invalid.
    """
    stored = _read_json((directory or data_dir()) / SETTINGS_FILENAME)
    if not isinstance(stored, dict):
        return DEFAULT_SETTINGS

    merged = DEFAULT_SETTINGS.to_dict()
    merged.update({key: value for key, value in stored.items() if key in merged})
    try:
        return GameSettings(**merged)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid stored settings: %s", exc)
        return DEFAULT_SETTINGS


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def get_high_score(directory: Path | None = None) -> HighScoreEntry | None:
    stored = _read_json((directory or data_dir()) / HIGH_SCORE_FILENAME)
    if not isinstance(stored, dict):
        return None
    try:
        entry = HighScoreEntry(**stored)
    except TypeError as exc:
        logger.warning("Ignoring invalid stored high score: %s", exc)
        return None
    counts_ok = all(_is_int(value) for value in (entry.score, entry.accuracy, entry.streak))
    if not counts_ok or not isinstance(entry.date, str) or not isinstance(entry.difficulty, str):
        logger.warning("Ignoring invalid stored high score: %r", stored)
        return None
    return entry


def save_high_score(entry: HighScoreEntry, directory: Path | None = None) -> bool:
    """
    Store ``entry`` if it beats the current high score.

    Returns:
        True if the entry was written.
    """
    current = get_high_score(directory)
    if current is not None and entry.score <= current.score:
        return False
    return _write_json((directory or data_dir()) / HIGH_SCORE_FILENAME, asdict(entry))


def clear_all_data(directory: Path | None = None) -> None:
    base = directory or data_dir()
    for filename in (SETTINGS_FILENAME, HIGH_SCORE_FILENAME):
        try:
            (base / filename).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", base / filename, exc)
