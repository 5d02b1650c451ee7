"""Parse result types shared by every songlist parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_ARTIST = "Unknown Artist"


class ParseErrorKind(Enum):
    """Closed set of parse outcomes, ordered read -> detection -> extraction."""

    NONE = "NONE"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    NO_TRACKS_DETECTED = "NO_TRACKS_DETECTED"
    NO_VALID_SONGS = "NO_VALID_SONGS"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(frozen=True)
class Song:
    title: str
    artist: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "artist": self.artist}

    @classmethod
    def from_dict(cls, payload: dict) -> "Song":
        title = str(payload.get("title") or "").strip() or UNKNOWN_TITLE
        artist = str(payload.get("artist") or "").strip() or UNKNOWN_ARTIST
        return cls(title=title, artist=artist)


@dataclass(frozen=True)
class ParseResult:
    songs: list[Song] = field(default_factory=list)
    error: ParseErrorKind = ParseErrorKind.NONE

    @property
    def ok(self) -> bool:
        """True when ``songs`` is authoritative and may be persisted."""
        return self.error is ParseErrorKind.NONE and bool(self.songs)

    @classmethod
    def failure(cls, error: ParseErrorKind) -> "ParseResult":
        return cls(songs=[], error=error)

    @classmethod
    def from_songs(cls, songs: list[Song], *, empty_error: ParseErrorKind) -> "ParseResult":
        if not songs:
            return cls.failure(empty_error)
        return cls(songs=list(songs), error=ParseErrorKind.NONE)
