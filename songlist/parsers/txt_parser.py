from __future__ import annotations

import logging
import re

from songlist.parsers.base import BaseParser
from songlist.parsers.text import (
    decode_text,
    find_track_region_start,
    split_lines,
    split_title_artist,
    track_lines_from,
)
from songlist.types import UNKNOWN_ARTIST, ParseErrorKind, ParseResult, Song

logger = logging.getLogger(__name__)

REKORDBOX_HEADER = "#\tArtwork\tTrack Title\tArtist"

_REKORDBOX_TITLE_COLUMN = 2
_BPM_RE = re.compile(r"^\d+\.\d+$")
_NUMERIC_RE = re.compile(r"^\d+$")


def is_rekordbox_export(first_line: str) -> bool:
    return first_line.lstrip("﻿").startswith(REKORDBOX_HEADER)


def _rekordbox_song(row: str) -> Song | None:
    columns = [column.strip() for column in row.split("\t")]
    for index in range(_REKORDBOX_TITLE_COLUMN, len(columns)):
        value = columns[index]
        if not value or _NUMERIC_RE.match(value):
            continue
        artist = columns[index + 1] if index + 1 < len(columns) else ""
        if not artist or _BPM_RE.match(artist):
            artist = UNKNOWN_ARTIST
        return Song(title=value, artist=artist)
    return None


class TxtParser(BaseParser):
    """Plain-text songlists, including tab-delimited Rekordbox exports."""

    SOURCE_FORMAT = "txt"

    def parse_bytes(self, file_bytes: bytes, file_path: str) -> ParseResult:
        lines = split_lines(decode_text(file_bytes))
        if lines and is_rekordbox_export(lines[0]):
            return self._parse_rekordbox(lines[1:])

        start = find_track_region_start(lines)
        if start is None:
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)
        songs = [split_title_artist(line) for line in track_lines_from(lines, start)]
        return ParseResult.from_songs(songs, empty_error=ParseErrorKind.NO_VALID_SONGS)

    def _parse_rekordbox(self, rows: list[str]) -> ParseResult:
        rows = [row for row in rows if row.strip()]
        if not rows:
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)
        songs = []
        for row in rows:
            song = _rekordbox_song(row)
            if song is None:
                logger.debug("rekordbox_row_skipped row=%r", row)
                continue
            songs.append(song)
        return ParseResult.from_songs(songs, empty_error=ParseErrorKind.NO_VALID_SONGS)
