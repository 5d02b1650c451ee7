"""Canonical songlist and broadcast metadata models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from config.settings import DEFAULT_SHOW_DURATION, SONGLIST_VERSION
from songlist.types import Song

MINIMAL_TRACK = Song(title="Unknown Track", artist="Unknown Artist")


class UserRole(Enum):
    DJ = "DJ"
    ADMIN = "ADMIN"

    @classmethod
    def coerce(cls, value: Any) -> "UserRole":
        """Return the matching role, defaulting to ``DJ`` for anything unknown."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        for role in cls:
            if role.value == text:
                return role
        return cls.DJ


# Metadata records come from a JavaScript front end; accept both spellings.
_FIELD_ALIASES = {
    "broadcast_date": ("broadcast_date", "broadcastDate", "date"),
    "broadcast_time": ("broadcast_time", "broadcastTime", "time"),
    "dj_name": ("dj_name", "djName", "DJ"),
    "title": ("title", "setTitle"),
    "genre": ("genre", "genres"),
    "description": ("description",),
    "artwork": ("artwork", "artworkFilename"),
    "user_role": ("user_role", "userRole"),
    "destinations": ("destinations",),
}

REQUIRED_FIELDS = ("broadcast_date", "dj_name", "title")


class MetadataError(ValueError):
    """Raised when a metadata record is missing required fields or malformed."""


def _lookup(record: dict, field_name: str) -> Any:
    for key in _FIELD_ALIASES[field_name]:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _as_text(value: Any) -> str:
    return str(value or "").strip()


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def _normalize_time(value: str) -> str:
    if not value:
        return "00:00:00"
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value, fmt).strftime("%H:%M:%S")
        except ValueError:
            continue
    raise MetadataError(f"Invalid broadcast time: {value}")


@dataclass(frozen=True)
class BroadcastMetadata:
    broadcast_date: str
    dj_name: str
    title: str
    broadcast_time: str = "00:00:00"
    genre: list[str] = field(default_factory=list)
    description: str = ""
    artwork: str | None = None
    user_role: UserRole = UserRole.DJ
    destinations: list[str] | None = None

    @classmethod
    def from_record(cls, record: dict) -> "BroadcastMetadata":
        """Build metadata from a submitted record, validating required fields."""
        if not isinstance(record, dict):
            raise MetadataError("Metadata record must be an object")
        for name in REQUIRED_FIELDS:
            if not _as_text(_lookup(record, name)):
                raise MetadataError(f"Missing required metadata field: {name}")

        broadcast_date = _as_text(_lookup(record, "broadcast_date"))
        try:
            datetime.strptime(broadcast_date, "%Y-%m-%d")
        except ValueError as exc:
            raise MetadataError(f"Invalid broadcast date: {broadcast_date}") from exc

        raw_destinations = _lookup(record, "destinations")
        destinations = [item.lower() for item in _split_list(raw_destinations)]
        return cls(
            broadcast_date=broadcast_date,
            dj_name=_as_text(_lookup(record, "dj_name")),
            title=_as_text(_lookup(record, "title")),
            broadcast_time=_normalize_time(_as_text(_lookup(record, "broadcast_time"))),
            genre=_split_list(_lookup(record, "genre")),
            description=_as_text(_lookup(record, "description")),
            artwork=_as_text(_lookup(record, "artwork")) or None,
            user_role=UserRole.coerce(_lookup(record, "user_role")),
            destinations=destinations or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "broadcast_date": self.broadcast_date,
            "broadcast_time": self.broadcast_time,
            "dj_name": self.dj_name,
            "title": self.title,
            "genre": list(self.genre),
            "description": self.description,
            "artwork": self.artwork,
            "user_role": self.user_role.value,
            "destinations": list(self.destinations) if self.destinations is not None else None,
        }


@dataclass(frozen=True)
class Songlist:
    broadcast_data: BroadcastMetadata
    track_list: list[Song]
    version: str = SONGLIST_VERSION
    duration: str = DEFAULT_SHOW_DURATION

    @property
    def user_role(self) -> UserRole:
        return self.broadcast_data.user_role

    @property
    def is_minimal(self) -> bool:
        return self.track_list == [MINIMAL_TRACK]

    def to_dict(self) -> dict[str, Any]:
        return {
            "broadcast_data": self.broadcast_data.to_dict(),
            "track_list": [song.to_dict() for song in self.track_list],
            "duration": self.duration,
            "user_role": self.user_role.value,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Songlist":
        if not isinstance(payload, dict):
            raise MetadataError("Songlist payload must be an object")
        broadcast = dict(payload.get("broadcast_data") or {})
        # The top-level role wins over a stale copy inside broadcast data.
        if payload.get("user_role"):
            broadcast["user_role"] = payload["user_role"]
        tracks = payload.get("track_list") or []
        return cls(
            broadcast_data=BroadcastMetadata.from_record(broadcast),
            track_list=[Song.from_dict(item) for item in tracks if isinstance(item, dict)],
            version=_as_text(payload.get("version")) or SONGLIST_VERSION,
            duration=_as_text(payload.get("duration")) or DEFAULT_SHOW_DURATION,
        )


def create_minimal_songlist(metadata: BroadcastMetadata, *, duration: str = DEFAULT_SHOW_DURATION) -> Songlist:
    """Songlist with a single placeholder track, used when parsing yields nothing."""
    return Songlist(broadcast_data=metadata, track_list=[MINIMAL_TRACK], duration=duration)
