"""AzuraCast destination: upload, tag, attach to the DJ playlist, schedule."""

from __future__ import annotations

import base64
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from config.settings import (
    AZURACAST_MAX_RETRIES,
    DEFAULT_GENRE,
    RETRY_DELAY_SECONDS,
)
from destinations.base import DestinationAdapter, DestinationError, DestinationResult
from destinations.broadcast_time import minutes_from_midnight, to_station_time
from destinations.http import JsonApiClient
from engine.retry import RetryPolicy
from media.duration import duration_to_minutes
from songlist.models import Songlist

logger = logging.getLogger(__name__)

DIRECTORY_MISMATCH_MESSAGE = "Media upload folder name mismatch; inform station administrator"

_MINUTES_PER_DAY = 24 * 60
_DEFAULT_SHOW_MINUTES = 60


class AzuraCastError(DestinationError):
    pass


def dj_folder_name(dj_name: str) -> str:
    return re.sub(r"\s+", "_", dj_name.strip().lower())


@dataclass(frozen=True)
class AzuraCastMetadata:
    title: str
    artist: str
    album: str
    genre: str
    schedule_date: str
    start_minutes: int
    duration_minutes: int = _DEFAULT_SHOW_MINUTES

    def to_payload(self) -> dict[str, str]:
        return {"title": self.title, "artist": self.artist, "album": self.album, "genre": self.genre}

    def schedule_items(self) -> list[dict[str, Any]]:
        end_minutes = (self.start_minutes + self.duration_minutes) % _MINUTES_PER_DAY
        return [
            {
                "start_date": self.schedule_date,
                "start_time": self.start_minutes,
                "end_time": end_minutes,
                "loop_once": True,
            }
        ]


class AzuraCastApi(Protocol):
    def get_playlists(self) -> list[dict[str, Any]]: ...

    def upload_file(self, audio_path: str, destination_path: str) -> dict[str, Any]: ...

    def set_metadata_and_playlist(self, file_id: str, metadata: dict[str, str], playlist_ids: list[Any]) -> None: ...

    def schedule_playlist(self, playlist_id: Any, schedule_items: list[dict[str, Any]]) -> None: ...


class AzuraCastClient(JsonApiClient):
    """AzuraCast station API, authenticated with an ``X-API-Key`` header."""

    error_class = AzuraCastError
    platform = "azuracast"

    def __init__(self, host: str, api_key: str, station_id: str, **kwargs: Any) -> None:
        super().__init__(host, **kwargs)
        self.station_id = station_id
        self._session.headers.update({"X-API-Key": api_key})

    def _station(self, suffix: str) -> str:
        return f"/api/station/{self.station_id}/{suffix.lstrip('/')}"

    def get_playlists(self) -> list[dict[str, Any]]:
        payload = self.request_json("GET", self._station("playlists"))
        if not isinstance(payload, list):
            raise AzuraCastError("Unexpected playlist listing from AzuraCast")
        return payload

    def list_files(self) -> list[dict[str, Any]]:
        payload = self.request_json("GET", self._station("files"))
        return payload if isinstance(payload, list) else []

    def upload_file(self, audio_path: str, destination_path: str) -> dict[str, Any]:
        with open(audio_path, "rb") as handle:
            encoded = base64.b64encode(handle.read()).decode("ascii")
        payload = self.request_json("POST", self._station("files"), json={"path": destination_path, "file": encoded})
        if not isinstance(payload, dict) or payload.get("id") is None:
            raise AzuraCastError("AzuraCast upload response missing file id")
        return payload

    def set_metadata_and_playlist(self, file_id: str, metadata: dict[str, str], playlist_ids: list[Any]) -> None:
        body = dict(metadata)
        body["playlists"] = list(playlist_ids)
        self.request_json("PUT", self._station(f"file/{file_id}"), json=body)

    def schedule_playlist(self, playlist_id: Any, schedule_items: list[dict[str, Any]]) -> None:
        self.request_json("PUT", self._station(f"playlist/{playlist_id}"), json={"schedule_items": schedule_items})

    def dj_directory_exists(self, dj_name: str) -> bool:
        folder = dj_folder_name(dj_name)
        for item in self.list_files():
            path = str(item.get("path") or "").replace("\\", "/")
            if path.startswith(f"{folder}/") or f"/{folder}/" in path:
                return True
        return False


def find_dj_playlist(playlists: list[dict[str, Any]], dj_name: str) -> dict[str, Any] | None:
    """Case-insensitive match where either name may contain the other."""
    wanted = dj_name.strip().lower()
    if not wanted:
        return None
    for playlist in playlists:
        name = str(playlist.get("name") or "").strip().lower()
        if not name:
            continue
        if name == wanted or wanted in name or name in wanted:
            return playlist
    return None


class AzuraCastAdapter(DestinationAdapter):
    name = "azuracast"

    def __init__(
        self,
        client: AzuraCastApi,
        *,
        directory_verifier: Callable[[str], bool] | None = None,
        max_retries: int = AZURACAST_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.directory_verifier = directory_verifier
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def build_metadata(self, songlist: Songlist, *, artwork_path: str | None = None) -> AzuraCastMetadata:
        broadcast = songlist.broadcast_data
        local_date, local_time = to_station_time(broadcast.broadcast_date, broadcast.broadcast_time)
        duration_minutes = duration_to_minutes(songlist.duration) or _DEFAULT_SHOW_MINUTES
        return AzuraCastMetadata(
            title=broadcast.title,
            artist=broadcast.dj_name,
            album=f"{local_date} Broadcast",
            genre=", ".join(broadcast.genre) or DEFAULT_GENRE,
            schedule_date=local_date,
            start_minutes=minutes_from_midnight(local_time),
            duration_minutes=duration_minutes,
        )

    def upload(self, audio_path: str, metadata: AzuraCastMetadata) -> DestinationResult:
        if self.directory_verifier is not None:
            try:
                exists = self.directory_verifier(metadata.artist)
            except DestinationError as exc:
                logger.error("azuracast_directory_check_failed dj=%s error=%s", metadata.artist, exc)
                return DestinationResult.failed(str(exc))
            if not exists:
                logger.error("azuracast_directory_missing dj=%s folder=%s", metadata.artist, dj_folder_name(metadata.artist))
                return DestinationResult.failed(DIRECTORY_MISMATCH_MESSAGE)

        try:
            playlist = find_dj_playlist(self.client.get_playlists(), metadata.artist)
        except DestinationError as exc:
            return DestinationResult.failed(str(exc))
        if playlist is None:
            logger.error("azuracast_playlist_missing dj=%s", metadata.artist)
            return DestinationResult.failed(f"No playlist found for DJ: {metadata.artist}")

        destination_path = f"{dj_folder_name(metadata.artist)}/{os.path.basename(audio_path)}"

        def _upload_and_schedule() -> dict[str, Any]:
            uploaded = self.client.upload_file(audio_path, destination_path)
            file_id = str(uploaded["id"])
            logger.info("azuracast_file_uploaded id=%s path=%s", file_id, destination_path)
            self.client.set_metadata_and_playlist(file_id, metadata.to_payload(), [playlist.get("id")])
            self.client.schedule_playlist(playlist.get("id"), metadata.schedule_items())
            logger.info("azuracast_playlist_scheduled playlist=%s date=%s", playlist.get("id"), metadata.schedule_date)
            return uploaded

        policy = RetryPolicy(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            is_retryable=lambda exc: isinstance(exc, DestinationError),
            on_retry=self.log_retry,
            sleep=self._sleep,
        )
        try:
            uploaded = policy.run(_upload_and_schedule)
        except DestinationError as exc:
            logger.error("azuracast_upload_failed title=%s error=%s", metadata.title, exc)
            return DestinationResult.failed(str(exc))
        return DestinationResult(success=True, id=str(uploaded["id"]), url=str(uploaded.get("path") or destination_path))
