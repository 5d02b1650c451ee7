from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, replace
from typing import Any, Callable, Protocol

from config.settings import DEFAULT_GENRE, PLACEHOLDER_ARTWORK_PATH, RETRY_DELAY_SECONDS, SOUNDCLOUD_MAX_RETRIES
from destinations.base import DestinationAdapter, DestinationError, DestinationResult
from destinations.broadcast_time import describe
from destinations.http import JsonApiClient
from engine.retry import RetryPolicy
from songlist.models import Songlist

logger = logging.getLogger(__name__)

SOUNDCLOUD_API_URL = "https://api.soundcloud.com"
PRIVATE_FALLBACK_NOTE = "Uploaded as private due to quota/permission constraints"

_FALLBACK_MARKERS = ("quota", "permission", "artwork")


class SoundCloudError(DestinationError):
    pass


@dataclass(frozen=True)
class SoundCloudMetadata:
    title: str
    description: str
    genre: str
    tag_list: str
    sharing: str = "public"
    artwork: str | None = None

    def form_fields(self) -> dict[str, str]:
        return {
            "track[title]": self.title,
            "track[description]": self.description,
            "track[genre]": self.genre,
            "track[tag_list]": self.tag_list,
            "track[sharing]": self.sharing,
        }


class SoundCloudApi(Protocol):
    def upload_track(self, audio_path: str, metadata: SoundCloudMetadata) -> dict[str, Any]: ...

    def update_track(self, track_id: str, metadata: SoundCloudMetadata) -> dict[str, Any]: ...


class SoundCloudClient(JsonApiClient):
    error_class = SoundCloudError
    platform = "soundcloud"

    def __init__(self, access_token: str, *, base_url: str = SOUNDCLOUD_API_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)
        self._session.headers.update({"Authorization": f"OAuth {access_token}"})

    def upload_track(self, audio_path: str, metadata: SoundCloudMetadata) -> dict[str, Any]:
        with ExitStack() as stack:
            files = {"track[asset_data]": stack.enter_context(open(audio_path, "rb"))}
            if metadata.artwork:
                files["track[artwork_data]"] = stack.enter_context(open(metadata.artwork, "rb"))
            payload = self.request_json("POST", "/tracks", data=metadata.form_fields(), files=files)
        if not isinstance(payload, dict) or payload.get("id") is None:
            raise SoundCloudError("SoundCloud upload response missing track id")
        return payload

    def update_track(self, track_id: str, metadata: SoundCloudMetadata) -> dict[str, Any]:
        payload = self.request_json("PUT", f"/tracks/{track_id}", data=metadata.form_fields())
        return payload if isinstance(payload, dict) else {}


class SoundCloudAdapter(DestinationAdapter):
    """Two-step upload: the audio first, then a metadata update on the new track."""

    name = "soundcloud"

    def __init__(
        self,
        client: SoundCloudApi,
        *,
        max_retries: int = SOUNDCLOUD_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        placeholder_artwork: str | None = PLACEHOLDER_ARTWORK_PATH,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.placeholder_artwork = placeholder_artwork
        self._sleep = sleep

    def build_metadata(self, songlist: Songlist, *, artwork_path: str | None = None) -> SoundCloudMetadata:
        broadcast = songlist.broadcast_data
        return SoundCloudMetadata(
            title=broadcast.title,
            description=describe(broadcast),
            genre=broadcast.genre[0] if broadcast.genre else DEFAULT_GENRE,
            tag_list=" ".join(broadcast.genre),
            sharing="public",
            artwork=artwork_path,
        )

    def upload(self, audio_path: str, metadata: SoundCloudMetadata) -> DestinationResult:
        state = {"metadata": metadata, "private": False}

        def _is_retryable(exc: Exception) -> bool:
            message = str(exc).lower()
            if state["private"] or not any(marker in message for marker in _FALLBACK_MARKERS):
                return False
            state["metadata"] = replace(state["metadata"], sharing="private", artwork=self.placeholder_artwork)
            state["private"] = True
            logger.warning("soundcloud_private_fallback title=%s error=%s", metadata.title, exc)
            return True

        policy = RetryPolicy(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            is_retryable=_is_retryable,
            on_retry=self.log_retry,
            sleep=self._sleep,
        )
        try:
            uploaded = policy.run(lambda: self.client.upload_track(audio_path, state["metadata"]))
        except DestinationError as exc:
            logger.error("soundcloud_upload_failed title=%s error=%s", metadata.title, exc)
            return DestinationResult.failed(str(exc))

        notes = [PRIVATE_FALLBACK_NOTE] if state["private"] else []
        track_id = str(uploaded["id"])
        url = uploaded.get("permalink_url")
        try:
            updated = self.client.update_track(track_id, state["metadata"])
            url = updated.get("permalink_url") or url
        except DestinationError as exc:
            logger.warning("soundcloud_metadata_update_failed track=%s error=%s", track_id, exc)
            notes.append(f"File uploaded but metadata update failed: {exc}")

        logger.info("soundcloud_upload_succeeded track=%s sharing=%s", track_id, state["metadata"].sharing)
        return DestinationResult(success=True, id=track_id, url=url, note="; ".join(notes) or None)
