"""Durable per-upload status records.

One JSON file per upload id under the status root. Every write replaces the
file atomically so a reader sees either the previous or the next record.
Exactly one orchestrator owns an upload id at a time, so there is no locking.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from songlist.storage import write_json_atomic

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_RECEIVED = "received"
STATUS_PROCESSING = "processing"
STATUS_SONGS_CONFIRMED = "songs_confirmed"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

STATUS_ORDER = (
    STATUS_PENDING,
    STATUS_RECEIVED,
    STATUS_PROCESSING,
    STATUS_SONGS_CONFIRMED,
    STATUS_COMPLETED,
    STATUS_ERROR,
)
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_ERROR})

_UPLOAD_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_upload_id(upload_id: str) -> str:
    value = str(upload_id or "").strip()
    if not _UPLOAD_ID_RE.match(value):
        raise ValueError(f"Invalid upload id: {upload_id!r}")
    return value


def merge_detail(current: dict[str, Any], update: dict[str, Any] | None) -> dict[str, Any]:
    """Merge ``update`` into ``current`` one level deep.

    Nested maps (per-destination results) are merged key by key so a later
    write cannot silently drop an earlier platform's result. Any other value
    replaces the previous one.
    """
    merged = dict(current)
    for key, value in (update or {}).items():
        previous = merged.get(key)
        if isinstance(previous, dict) and isinstance(value, dict):
            merged[key] = {**previous, **value}
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class UploadStatusRecord:
    upload_id: str
    status: str
    message: str
    timestamp: str
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "upload_id": self.upload_id,
            "status": self.status,
            "message": self.message,
            "timestamp": self.timestamp,
            "detail": dict(self.detail),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UploadStatusRecord":
        detail = payload.get("detail")
        return cls(
            upload_id=str(payload.get("upload_id") or ""),
            status=str(payload.get("status") or STATUS_PENDING),
            message=str(payload.get("message") or ""),
            timestamp=str(payload.get("timestamp") or ""),
            detail=dict(detail) if isinstance(detail, dict) else {},
        )


class StatusStore:
    def __init__(self, root_dir: str, *, clock: Callable[[], str] = _utc_now) -> None:
        self.root_dir = root_dir
        self._clock = clock

    def path_for(self, upload_id: str) -> str:
        return os.path.join(self.root_dir, f"{validate_upload_id(upload_id)}.json")

    def read(self, upload_id: str) -> UploadStatusRecord | None:
        path = self.path_for(upload_id)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("status_read_failed upload_id=%s error=%s", upload_id, exc)
            return None
        if not isinstance(payload, dict):
            return None
        return UploadStatusRecord.from_dict(payload)

    def update(
        self,
        upload_id: str,
        status: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> UploadStatusRecord:
        """Overwrite the record, carrying forward and merging existing detail."""
        if status not in STATUS_ORDER:
            raise ValueError(f"Unknown upload status: {status}")
        current = self.read(upload_id)
        record = UploadStatusRecord(
            upload_id=upload_id,
            status=status,
            message=message,
            timestamp=self._clock(),
            detail=merge_detail(current.detail if current else {}, detail),
        )
        write_json_atomic(self.path_for(upload_id), record.to_dict())
        logger.info("status_updated upload_id=%s status=%s message=%s", upload_id, status, message)
        return record

    def merge_detail(self, upload_id: str, detail: dict[str, Any]) -> UploadStatusRecord:
        """Merge detail into the current record without changing status or message."""
        current = self.read(upload_id)
        if current is None:
            return self.update(upload_id, STATUS_PENDING, "", detail)
        return self.update(upload_id, current.status, current.message, detail)
