"""Deterministic upload naming helpers shared by intake and archiving."""

from __future__ import annotations

import re
from typing import Any

JOIN_TOKEN = "_"

_INVALID_FS_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
_MULTISPACE_RE = re.compile(r"\s+")


def _get_field(metadata: Any, field: str, default: Any = None) -> Any:
    if isinstance(metadata, dict):
        return metadata.get(field, default)
    return getattr(metadata, field, default)


def sanitize_component(text: Any) -> str:
    """Return an OS-safe filesystem component with stable fallback."""
    sanitized = _INVALID_FS_CHARS_RE.sub("", str(text or ""))
    sanitized = _MULTISPACE_RE.sub(" ", sanitized).strip()
    sanitized = sanitized.rstrip(" .")
    return sanitized or "Unknown"


def join_name(text: Any) -> str:
    """Sanitize a name and collapse whitespace runs into the join token."""
    return _MULTISPACE_RE.sub(JOIN_TOKEN, sanitize_component(text))


def build_file_prefix(metadata: Any) -> str:
    """Build the ``{date}_{dj}_{title}`` prefix used for every upload file."""
    date_value = join_name(_get_field(metadata, "broadcast_date"))
    dj_value = join_name(_get_field(metadata, "dj_name"))
    title_value = join_name(_get_field(metadata, "title"))
    return JOIN_TOKEN.join((date_value, dj_value, title_value))


def build_archive_relative_dir(metadata: Any) -> str:
    """Build the ``{year}/{date}_{dj}`` archive directory for a broadcast."""
    date_value = str(_get_field(metadata, "broadcast_date") or "").strip()
    year = date_value[:4] if len(date_value) >= 4 and date_value[:4].isdigit() else "unknown"
    folder = JOIN_TOKEN.join((join_name(date_value), join_name(_get_field(metadata, "dj_name"))))
    return f"{year}/{folder}"


def build_artifact_filename(prefix: str) -> str:
    return f"{prefix}{JOIN_TOKEN}songlist.json"
