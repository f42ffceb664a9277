"""lines - append-only journaling notes with crash-safe writes."""

__version__ = "0.1.0"
