from __future__ import annotations

import xml.etree.ElementTree as ET

from songlist.parsers.base import BaseParser
from songlist.types import UNKNOWN_ARTIST, UNKNOWN_TITLE, ParseErrorKind, ParseResult, Song


class NmlParser(BaseParser):
    """Traktor NML collections: one ``ENTRY`` per track with TITLE/ARTIST attributes."""

    SOURCE_FORMAT = "nml"

    def parse_bytes(self, file_bytes: bytes, file_path: str) -> ParseResult:
        if not file_bytes.strip():
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)
        root = ET.fromstring(file_bytes)
        entries = root.findall("./COLLECTION/ENTRY")
        if not entries:
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)

        songs = []
        for entry in entries:
            title = (entry.get("TITLE") or "").strip()
            artist = (entry.get("ARTIST") or "").strip()
            if not title and not artist:
                continue
            songs.append(Song(title=title or UNKNOWN_TITLE, artist=artist or UNKNOWN_ARTIST))
        return ParseResult.from_songs(songs, empty_error=ParseErrorKind.NO_VALID_SONGS)
