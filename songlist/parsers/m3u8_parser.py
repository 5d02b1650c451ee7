from __future__ import annotations

import os

from songlist.parsers.base import BaseParser
from songlist.parsers.text import decode_text, split_artist_title, split_lines
from songlist.types import UNKNOWN_ARTIST, UNKNOWN_TITLE, ParseErrorKind, ParseResult, Song

EXTINF_TAG = "#EXTINF:"


def _song_from_extinf(line: str) -> Song:
    _, _, label = line[len(EXTINF_TAG):].partition(",")
    artist, title = split_artist_title(label)
    return Song(title=title or UNKNOWN_TITLE, artist=artist or UNKNOWN_ARTIST)


def _song_from_path(line: str) -> Song:
    stem = os.path.splitext(os.path.basename(line.replace("\\", "/")))[0]
    artist, title = split_artist_title(stem)
    return Song(title=title or UNKNOWN_TITLE, artist=artist or UNKNOWN_ARTIST)


class M3u8Parser(BaseParser):
    """Extended M3U playlists; ``#EXTINF`` labels are ``Artist - Title``."""

    SOURCE_FORMAT = "m3u8"

    def parse_bytes(self, file_bytes: bytes, file_path: str) -> ParseResult:
        lines = [line.strip() for line in split_lines(decode_text(file_bytes))]
        entries = [line for line in lines if line and (line.startswith(EXTINF_TAG) or not line.startswith("#"))]
        if not entries:
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)

        songs = []
        pending_extinf = False
        for line in entries:
            if line.startswith(EXTINF_TAG):
                songs.append(_song_from_extinf(line))
                pending_extinf = True
                continue
            # A path line following #EXTINF belongs to that entry.
            if pending_extinf:
                pending_extinf = False
                continue
            songs.append(_song_from_path(line))
        return ParseResult.from_songs(songs, empty_error=ParseErrorKind.NO_VALID_SONGS)
