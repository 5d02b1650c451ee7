from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Any

from engine.intake import UploadIntake
from songlist.naming import build_archive_relative_dir
from songlist.storage import write_json_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveResult:
    success: bool
    path: str | None = None
    files: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "path": self.path, "files": list(self.files)}
        if self.error:
            payload["error"] = self.error
        return payload


def archive_names(intake: UploadIntake) -> list[tuple[str, str]]:
    """Source path and archive file name for every input that exists."""
    prefix = intake.prefix
    pairs = [
        (intake.audio_path, f"{prefix}{os.path.splitext(intake.audio_path)[1].lower()}"),
        (intake.songlist_path, f"{prefix}_source{os.path.splitext(intake.songlist_path)[1].lower()}"),
        (intake.metadata_path, f"{prefix}_metadata.json"),
        (intake.artifact_path, os.path.basename(intake.artifact_path)),
    ]
    if intake.artwork_path:
        pairs.append((intake.artwork_path, f"{prefix}_artwork{os.path.splitext(intake.artwork_path)[1].lower()}"))
    return [(source, name) for source, name in pairs if os.path.isfile(source)]


class FileArchiver:
    """Moves a finished upload into ``<archive>/<year>/<date>_<dj>/``."""

    def __init__(self, archive_root: str) -> None:
        self.archive_root = archive_root

    def target_dir(self, intake: UploadIntake) -> str:
        return os.path.join(self.archive_root, *build_archive_relative_dir(intake.metadata).split("/"))

    def archive(
        self,
        intake: UploadIntake,
        *,
        summary: dict[str, Any] | None = None,
        status_snapshot: dict[str, Any] | None = None,
    ) -> ArchiveResult:
        target = self.target_dir(intake)
        archived: list[str] = []
        try:
            os.makedirs(target, exist_ok=True)
            for source, name in archive_names(intake):
                destination = os.path.join(target, name)
                if os.path.exists(destination):
                    logger.warning("archive_overwrite upload_id=%s path=%s", intake.upload_id, destination)
                    os.remove(destination)
                shutil.move(source, destination)
                archived.append(destination)
            if summary is not None:
                path = os.path.join(target, f"{intake.prefix}_summary.json")
                write_json_atomic(path, summary)
                archived.append(path)
            if status_snapshot is not None:
                path = os.path.join(target, f"{intake.prefix}_status.json")
                write_json_atomic(path, status_snapshot)
                archived.append(path)
            shutil.rmtree(intake.upload_dir)
        except OSError as exc:
            logger.exception("archive_failed upload_id=%s target=%s", intake.upload_id, target)
            return ArchiveResult(success=False, path=target, files=archived, error=str(exc))

        logger.info("archive_finished upload_id=%s target=%s files=%s", intake.upload_id, target, len(archived))
        return ArchiveResult(success=True, path=target, files=archived)
