"""Resolve and validate the files an upstream receiver deposited for one upload."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from engine.paths import resolve_upload_dir
from songlist.models import BroadcastMetadata, MetadataError
from songlist.naming import build_artifact_filename, build_file_prefix
from songlist.parsers import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav", ".flac")
ARTWORK_EXTENSIONS = (".jpg", ".jpeg", ".png")


class IntakeError(Exception):
    """An input defect: the upload cannot proceed."""


@dataclass(frozen=True)
class UploadIntake:
    upload_id: str
    upload_dir: str
    metadata: BroadcastMetadata
    prefix: str
    metadata_path: str
    audio_path: str
    songlist_path: str
    artwork_path: str | None = None

    @property
    def artifact_path(self) -> str:
        return os.path.join(self.upload_dir, build_artifact_filename(self.prefix))


def _find_named(upload_dir: str, prefix: str, extensions: tuple[str, ...]) -> str | None:
    wanted = {f"{prefix}{ext}".lower() for ext in extensions}
    for name in sorted(os.listdir(upload_dir)):
        if name.lower() in wanted and os.path.isfile(os.path.join(upload_dir, name)):
            return os.path.join(upload_dir, name)
    return None


def _require_file(path: str | None, label: str, expected: str) -> str:
    if path is None:
        raise IntakeError(f"Missing {label} file: expected {expected}")
    if os.path.getsize(path) == 0:
        raise IntakeError(f"Empty {label} file: {os.path.basename(path)}")
    return path


def read_metadata(metadata_path: str) -> BroadcastMetadata:
    try:
        with open(metadata_path, "r", encoding="utf-8") as handle:
            record = json.load(handle)
    except FileNotFoundError as exc:
        raise IntakeError("Missing metadata file") from exc
    except (OSError, ValueError) as exc:
        raise IntakeError(f"Unreadable metadata file: {exc}") from exc
    try:
        return BroadcastMetadata.from_record(record)
    except MetadataError as exc:
        raise IntakeError(str(exc)) from exc


def _resolve_artwork(upload_dir: str, prefix: str, metadata: BroadcastMetadata) -> str | None:
    if metadata.artwork:
        candidate = os.path.join(upload_dir, os.path.basename(metadata.artwork))
        if os.path.isfile(candidate):
            return candidate
        logger.warning("artwork_missing upload_dir=%s artwork=%s", upload_dir, metadata.artwork)
    return _find_named(upload_dir, prefix, ARTWORK_EXTENSIONS)


def load_intake(received_dir: str, upload_id: str) -> UploadIntake:
    """Validate metadata and locate audio, songlist, and artwork for ``upload_id``."""
    try:
        upload_dir = resolve_upload_dir(received_dir, upload_id)
    except ValueError as exc:
        raise IntakeError(str(exc)) from exc
    if not os.path.isdir(upload_dir):
        raise IntakeError(f"Upload directory not found for {upload_id}")

    metadata_path = os.path.join(upload_dir, METADATA_FILENAME)
    metadata = read_metadata(metadata_path)
    prefix = build_file_prefix(metadata)

    audio_path = _require_file(
        _find_named(upload_dir, prefix, AUDIO_EXTENSIONS),
        "audio",
        f"{prefix}{{{','.join(AUDIO_EXTENSIONS)}}}",
    )
    songlist_path = _require_file(
        _find_named(upload_dir, prefix, SUPPORTED_EXTENSIONS),
        "songlist",
        f"{prefix}{{{','.join(SUPPORTED_EXTENSIONS)}}}",
    )
    intake = UploadIntake(
        upload_id=upload_id,
        upload_dir=upload_dir,
        metadata=metadata,
        prefix=prefix,
        metadata_path=metadata_path,
        audio_path=audio_path,
        songlist_path=songlist_path,
        artwork_path=_resolve_artwork(upload_dir, prefix, metadata),
    )
    logger.info(
        "intake_ready upload_id=%s prefix=%s audio=%s songlist=%s artwork=%s",
        upload_id,
        prefix,
        os.path.basename(audio_path),
        os.path.basename(songlist_path),
        os.path.basename(intake.artwork_path) if intake.artwork_path else None,
    )
    return intake
