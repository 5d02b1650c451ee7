"""Persistence of the canonical songlist artifact."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any

from songlist.models import Songlist

logger = logging.getLogger(__name__)


def write_json_atomic(path: str, payload: Any) -> None:
    """Write JSON next to ``path`` then rename, so readers never see partial output."""
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    tmp = tempfile.NamedTemporaryFile("w", delete=False, dir=directory, suffix=".tmp", encoding="utf-8")
    try:
        json.dump(payload, tmp, indent=2, ensure_ascii=False)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp.close()
        os.replace(tmp.name, path)
    finally:
        tmp.close()
        if os.path.exists(tmp.name):
            os.unlink(tmp.name)


def store_songlist(path: str, songlist: Songlist) -> str:
    """Persist the canonical songlist and return its path."""
    write_json_atomic(path, songlist.to_dict())
    logger.info("songlist_stored path=%s tracks=%s", path, len(songlist.track_list))
    return path


def load_songlist(path: str) -> Songlist:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return Songlist.from_dict(payload)


def load_songlist_if_present(path: str) -> Songlist | None:
    """Return a previously stored songlist, or ``None`` when absent or unreadable."""
    if not os.path.isfile(path):
        return None
    try:
        return load_songlist(path)
    except (OSError, ValueError) as exc:
        logger.warning("songlist_artifact_unreadable path=%s error=%s", path, exc)
        return None
