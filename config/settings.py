"""Application settings constants."""

from __future__ import annotations

import os


def _env_str(key: str, default: str) -> str:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    items = tuple(part.strip().lower() for part in raw.split(",") if part.strip())
    return items or default


# Every destination the orchestrator knows about, in upload order.
KNOWN_DESTINATIONS = ("azuracast", "mixcloud", "soundcloud")

# Destinations used when an upload does not (or may not) choose its own.
DEFAULT_DESTINATIONS = _env_list("UPLOAD_DISTRIBUTOR_DEFAULT_DESTINATIONS", ("azuracast",))

# Bounded retry policy per destination. The delay is fixed between attempts.
AZURACAST_MAX_RETRIES = _env_int("UPLOAD_DISTRIBUTOR_AZURACAST_MAX_RETRIES", 2)
MIXCLOUD_MAX_RETRIES = _env_int("UPLOAD_DISTRIBUTOR_MIXCLOUD_MAX_RETRIES", 1)
SOUNDCLOUD_MAX_RETRIES = _env_int("UPLOAD_DISTRIBUTOR_SOUNDCLOUD_MAX_RETRIES", 1)
RETRY_DELAY_SECONDS = _env_float("UPLOAD_DISTRIBUTOR_RETRY_DELAY_SECONDS", 1.0)

# Broadcast dates/times arrive in UTC; descriptions are rendered in station time.
STATION_TIMEZONE = _env_str("UPLOAD_DISTRIBUTOR_STATION_TIMEZONE", "Europe/Berlin")

# Refuse AzuraCast uploads when the DJ media folder does not already exist.
AZURACAST_VERIFY_DJ_DIRECTORY = _env_bool("UPLOAD_DISTRIBUTOR_AZURACAST_VERIFY_DJ_DIRECTORY", False)

# Number of tracks kept when Mixcloud rejects a track list.
MIXCLOUD_SIMPLIFIED_TRACK_COUNT = _env_int("UPLOAD_DISTRIBUTOR_MIXCLOUD_SIMPLIFIED_TRACKS", 5)

# Artwork substituted when SoundCloud rejects an upload for artwork/quota reasons.
PLACEHOLDER_ARTWORK_PATH = os.environ.get("UPLOAD_DISTRIBUTOR_PLACEHOLDER_ARTWORK") or None

DEFAULT_SHOW_DURATION = "01:00:00"
DEFAULT_GENRE = "Radio Show"
SONGLIST_VERSION = "1.0"

HTTP_TIMEOUT_SECONDS = _env_float("UPLOAD_DISTRIBUTOR_HTTP_TIMEOUT_SECONDS", 300.0)
