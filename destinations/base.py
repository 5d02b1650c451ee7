"""Shared destination types: results, errors, the adapter contract."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any

from songlist.models import Songlist

logger = logging.getLogger(__name__)


class DestinationError(Exception):
    """A destination platform rejected a call or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class DestinationResult:
    success: bool
    id: str | None = None
    url: str | None = None
    error: str | None = None
    recoverable: bool | None = None
    skipped: bool | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                payload[item.name] = value
        return payload

    @classmethod
    def failed(cls, error: str, *, note: str | None = None) -> "DestinationResult":
        """A final failure; a later manual re-run may still succeed."""
        return cls(success=False, error=error, recoverable=True, note=note)

    @classmethod
    def not_selected(cls) -> "DestinationResult":
        return cls(success=True, skipped=True, note="Destination not selected")


class DestinationAdapter(ABC):
    """One external platform's upload protocol and metadata shape."""

    name = ""

    @abstractmethod
    def build_metadata(self, songlist: Songlist, *, artwork_path: str | None = None) -> Any:
        """Derive the platform metadata from the canonical songlist. No I/O."""
        raise NotImplementedError

    @abstractmethod
    def upload(self, audio_path: str, metadata: Any) -> DestinationResult:
        """Run the platform protocol; failures come back as a failed result."""
        raise NotImplementedError

    def log_retry(self, attempt: int, error: Exception, delay: float) -> None:
        logger.warning(
            "destination_retry destination=%s attempt=%s delay=%s error=%s", self.name, attempt, delay, error
        )

    def distribute(self, audio_path: str, songlist: Songlist, *, artwork_path: str | None = None) -> DestinationResult:
        """Build metadata and upload, turning any unexpected crash into a failed result."""
        try:
            metadata = self.build_metadata(songlist, artwork_path=artwork_path)
            return self.upload(audio_path, metadata)
        except Exception as exc:
            logger.exception("destination_upload_crashed destination=%s", self.name)
            return DestinationResult.failed(str(exc))
