"""notetrainer: a note-recognition trainer built around a pure game engine."""

__version__ = "0.1.0"
