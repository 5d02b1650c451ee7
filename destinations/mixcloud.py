from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Protocol

from config.settings import MIXCLOUD_MAX_RETRIES, MIXCLOUD_SIMPLIFIED_TRACK_COUNT, RETRY_DELAY_SECONDS
from destinations.base import DestinationAdapter, DestinationError, DestinationResult
from destinations.broadcast_time import describe
from destinations.http import JsonApiClient
from engine.retry import RetryPolicy
from songlist.models import Songlist
from songlist.types import Song

logger = logging.getLogger(__name__)

MIXCLOUD_API_URL = "https://api.mixcloud.com"
MIXCLOUD_SITE_URL = "https://www.mixcloud.com"
MAX_TAGS = 5


class MixcloudError(DestinationError):
    pass


@dataclass(frozen=True)
class MixcloudMetadata:
    name: str
    description: str
    tags: list[str] = field(default_factory=list)
    sections: list[Song] = field(default_factory=list)
    picture: str | None = None

    def form_fields(self) -> dict[str, str]:
        fields = {"name": self.name, "description": self.description}
        for index, tag in enumerate(self.tags):
            fields[f"tags-{index}-tag"] = tag
        for index, song in enumerate(self.sections):
            fields[f"sections-{index}-artist"] = song.artist
            fields[f"sections-{index}-song"] = song.title
        return fields


class MixcloudApi(Protocol):
    def upload(self, audio_path: str, metadata: MixcloudMetadata) -> dict[str, Any]: ...


class MixcloudClient(JsonApiClient):
    error_class = MixcloudError
    platform = "mixcloud"

    def __init__(self, access_token: str, *, base_url: str = MIXCLOUD_API_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)
        self._access_token = access_token

    def upload(self, audio_path: str, metadata: MixcloudMetadata) -> dict[str, Any]:
        with ExitStack() as stack:
            files = {"mp3": stack.enter_context(open(audio_path, "rb"))}
            if metadata.picture:
                files["picture"] = stack.enter_context(open(metadata.picture, "rb"))
            payload = self.request_json(
                "POST",
                "/upload/",
                params={"access_token": self._access_token},
                data=metadata.form_fields(),
                files=files,
            )
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict) or not result.get("success"):
            message = (result or {}).get("message") if isinstance(result, dict) else None
            raise MixcloudError(message or "Mixcloud upload was not accepted")
        return result


class MixcloudAdapter(DestinationAdapter):
    name = "mixcloud"

    def __init__(
        self,
        client: MixcloudApi,
        *,
        max_retries: int = MIXCLOUD_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        simplified_track_count: int = MIXCLOUD_SIMPLIFIED_TRACK_COUNT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.simplified_track_count = simplified_track_count
        self._sleep = sleep

    def build_metadata(self, songlist: Songlist, *, artwork_path: str | None = None) -> MixcloudMetadata:
        broadcast = songlist.broadcast_data
        return MixcloudMetadata(
            name=broadcast.title,
            description=describe(broadcast),
            tags=list(broadcast.genre[:MAX_TAGS]),
            sections=list(songlist.track_list),
            picture=artwork_path,
        )

    def upload(self, audio_path: str, metadata: MixcloudMetadata) -> DestinationResult:
        state = {"metadata": metadata, "simplified": False}

        def _is_retryable(exc: Exception) -> bool:
            # One shot: a rejected track list is retried once, shortened.
            if state["simplified"] or "track list" not in str(exc).lower():
                return False
            current = state["metadata"]
            state["metadata"] = replace(current, sections=current.sections[: self.simplified_track_count])
            state["simplified"] = True
            logger.warning("mixcloud_tracklist_simplified tracks=%s", len(state["metadata"].sections))
            return True

        policy = RetryPolicy(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            is_retryable=_is_retryable,
            on_retry=self.log_retry,
            sleep=self._sleep,
        )
        try:
            result = policy.run(lambda: self.client.upload(audio_path, state["metadata"]))
        except DestinationError as exc:
            logger.error("mixcloud_upload_failed name=%s error=%s", metadata.name, exc)
            return DestinationResult.failed(str(exc))

        key = str(result.get("key") or "")
        url = result.get("url") or (f"{MIXCLOUD_SITE_URL}{key}" if key else None)
        note = "Uploaded with a simplified track list" if state["simplified"] else None
        logger.info("mixcloud_upload_succeeded key=%s", key)
        return DestinationResult(success=True, id=key or None, url=url, note=note)
