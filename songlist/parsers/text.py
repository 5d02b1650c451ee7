"""Text decoding and title/artist heuristics for loosely structured songlists."""

from __future__ import annotations

import codecs
import logging
import re

from songlist.types import UNKNOWN_ARTIST, UNKNOWN_TITLE, Song

logger = logging.getLogger(__name__)

_BOM = "﻿"

_ORDINAL_PREFIX_RE = re.compile(r"^\d+[.)]\s*")
_HEADER_RE = re.compile(r"track\s*list", re.IGNORECASE)
_FILENAME_RE = re.compile(r"\.(docx|txt|rtf)\b", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^\d+$")

# Any one of these marks a line as the start of the track region.
TRACK_LINE_PATTERNS = (
    re.compile(r"^\d+[.)]\s*\S"),
    re.compile(r"\s[-–]\s"),
    re.compile(r"^[^,]+(,\s*[^,]+)*\s+[-–]\s"),
    re.compile(r"\s{2,}(?!\s|featuring)"),
    re.compile(r"\t+"),
)

# Tried in order; the first one producing a usable split wins.
DELIMITER_PATTERNS = (
    re.compile(r"\s+[-–]\s+"),
    re.compile(r"(?<!\d)[-–](?![^(]*\))"),
    re.compile(r"\t+"),
    re.compile(r"\s{2,}(?!\s|featuring)"),
    re.compile(r"\s*,\s*"),
)


def decode_text(file_bytes: bytes) -> str:
    """Decode songlist bytes, honouring UTF-16 byte-order marks before UTF-8."""
    if file_bytes.startswith(codecs.BOM_UTF16_LE):
        logger.debug("songlist_encoding encoding=utf-16-le")
        text = file_bytes[len(codecs.BOM_UTF16_LE):].decode("utf-16-le", errors="replace")
    elif file_bytes.startswith(codecs.BOM_UTF16_BE):
        logger.debug("songlist_encoding encoding=utf-16-be")
        text = file_bytes[len(codecs.BOM_UTF16_BE):].decode("utf-16-be", errors="replace")
    else:
        text = file_bytes.decode("utf-8", errors="replace")
    if text.startswith(_BOM):
        text = text[1:]
    return text


def split_lines(text: str) -> list[str]:
    return re.split(r"\r\n|\r|\n", text)


def is_header_line(line: str) -> bool:
    return bool(_HEADER_RE.search(line))


def looks_like_track_line(line: str) -> bool:
    return any(pattern.search(line) for pattern in TRACK_LINE_PATTERNS)


def find_track_region_start(lines: list[str], *, title_line: bool = False) -> int | None:
    """Return the index of the first track line, or ``None`` when there is none.

    ``title_line`` treats the first line as a document title unless it is
    explicitly numbered.
    """
    for index, raw in enumerate(lines):
        line = raw.strip()
        if not line or is_header_line(line):
            continue
        if index == 0 and title_line and not _ORDINAL_PREFIX_RE.match(line):
            continue
        if looks_like_track_line(line):
            return index
    return None


def track_lines_from(lines: list[str], start: int) -> list[str]:
    """Strip and filter the track region, dropping blanks, headers, and file names."""
    tracks = []
    for raw in lines[start:]:
        line = raw.strip()
        if not line or is_header_line(line) or _FILENAME_RE.search(line):
            continue
        tracks.append(line)
    return tracks


def strip_ordinal(line: str) -> str:
    return _ORDINAL_PREFIX_RE.sub("", line.strip(), count=1)


def split_title_artist(line: str) -> Song:
    """Split one track line into title (first segment) and artist (the rest)."""
    cleaned = strip_ordinal(line)
    for delimiter in DELIMITER_PATTERNS:
        parts = [part.strip() for part in delimiter.split(cleaned)]
        parts = [part for part in parts if part]
        if len(parts) >= 2 and not _NUMERIC_RE.match(parts[0]):
            return Song(title=parts[0], artist=" - ".join(parts[1:]))
    return Song(title=cleaned or UNKNOWN_TITLE, artist=UNKNOWN_ARTIST)


def split_artist_title(value: str) -> tuple[str | None, str | None]:
    """Split ``Artist - Title`` on a spaced hyphen or en dash, artist first."""
    cleaned = (value or "").strip()
    if not cleaned:
        return None, None
    for separator in (" - ", " – "):
        if separator in cleaned:
            left, right = cleaned.split(separator, 1)
            return left.strip() or None, right.strip() or None
    return None, cleaned
