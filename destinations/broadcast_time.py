from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from config.settings import STATION_TIMEZONE
from songlist.models import BroadcastMetadata


def to_station_time(broadcast_date: str, broadcast_time: str, tz_name: str = STATION_TIMEZONE) -> tuple[str, str]:
    """Convert a UTC broadcast date/time to station-local ``(YYYY-MM-DD, HH:MM:SS)``."""
    utc_value = datetime.strptime(f"{broadcast_date} {broadcast_time}", "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc)
    local_value = utc_value.astimezone(ZoneInfo(tz_name))
    return local_value.strftime("%Y-%m-%d"), local_value.strftime("%H:%M:%S")


def default_description(metadata: BroadcastMetadata) -> str:
    local_date, local_time = to_station_time(metadata.broadcast_date, metadata.broadcast_time)
    return f"Broadcast on {local_date} at {local_time}"


def describe(metadata: BroadcastMetadata) -> str:
    return metadata.description or default_description(metadata)


def minutes_from_midnight(broadcast_time: str) -> int:
    hours, minutes = (int(part) for part in broadcast_time.split(":")[:2])
    return hours * 60 + minutes
