"""Audio duration probing for broadcast uploads."""

from __future__ import annotations

import logging

from mutagen import File as MutagenFile
from mutagen import MutagenError

from config.settings import DEFAULT_SHOW_DURATION

logger = logging.getLogger(__name__)


def get_audio_duration(file_path: str) -> float:
    """Return the audio length in seconds as reported by mutagen.

    Raises:
        ValueError: If the file is not a recognised audio container or
            carries no stream length.
        OSError: If the file cannot be read.
    """
    try:
        audio = MutagenFile(file_path)
    except MutagenError as exc:
        raise ValueError(f"mutagen could not read {file_path}: {exc}") from exc
    if audio is None or getattr(audio, "info", None) is None:
        raise ValueError(f"Unrecognised audio format: {file_path}")
    length = getattr(audio.info, "length", None)
    if not length or length <= 0:
        raise ValueError(f"No duration reported for {file_path}")
    return float(length)


def format_duration(seconds: float) -> str:
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def duration_to_minutes(value: str) -> int:
    """Convert ``HH:MM:SS`` to whole minutes, rounding partial minutes up."""
    parts = [int(part) for part in str(value).split(":")]
    while len(parts) < 3:
        parts.insert(0, 0)
    hours, minutes, seconds = parts[-3:]
    return hours * 60 + minutes + (1 if seconds else 0)


def probe_show_duration(file_path: str) -> str:
    """Return the show duration as ``HH:MM:SS``; probing failures fall back to the default."""
    try:
        return format_duration(get_audio_duration(file_path))
    except (OSError, ValueError) as exc:
        logger.warning("duration_probe_failed path=%s error=%s default=%s", file_path, exc, DEFAULT_SHOW_DURATION)
        return DEFAULT_SHOW_DURATION
