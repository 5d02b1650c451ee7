"""Per-upload pipeline: intake, songlist, destination uploads, archive.

``UploadOrchestrator.run`` drives one upload id to a terminal status and
returns an ``UploadOutcome``; it never exits the process. Destinations run one
after another in ``KNOWN_DESTINATIONS`` order. The ``completed`` status is
written before archiving starts, and an archive failure is reported as detail
without revising that status.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from config.settings import DEFAULT_DESTINATIONS, KNOWN_DESTINATIONS
from destinations.base import DestinationAdapter, DestinationResult
from engine.archive import ArchiveResult, FileArchiver
from engine.intake import IntakeError, UploadIntake, load_intake
from engine.status_store import (
    STATUS_COMPLETED,
    STATUS_ERROR,
    STATUS_PROCESSING,
    STATUS_SONGS_CONFIRMED,
    StatusStore,
    validate_upload_id,
)
from media.duration import probe_show_duration
from songlist.models import BroadcastMetadata, Songlist, UserRole, create_minimal_songlist
from songlist.parsers import ParserDispatcher
from songlist.storage import load_songlist_if_present, store_songlist
from songlist.types import ParseErrorKind

logger = logging.getLogger(__name__)

SOURCE_ARTIFACT = "artifact"
SOURCE_PARSED = "parsed"
SOURCE_MINIMAL = "minimal"

DJ_COMPLETED_MESSAGE = "Your files have been processed and uploaded successfully."
ADMIN_COMPLETED_MESSAGE = "Upload processing completed"
NOT_CONFIGURED_ERROR = "Destination is not configured"


@dataclass(frozen=True)
class UploadOutcome:
    upload_id: str
    status: str
    message: str
    destinations: dict[str, dict[str, Any]] = field(default_factory=dict)
    songlist_path: str | None = None
    songlist_source: str | None = None
    archive: ArchiveResult | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_COMPLETED


def resolve_destinations(
    metadata: BroadcastMetadata,
    supported: Iterable[str],
    default: Iterable[str] = DEFAULT_DESTINATIONS,
) -> list[str]:
    """Return the destinations to upload to, in fixed upload order.

    Only ADMIN uploads may choose; unsupported names are dropped silently and
    an empty selection falls back to ``default``.
    """
    supported_names = set(supported)
    order = list(KNOWN_DESTINATIONS) + sorted(supported_names - set(KNOWN_DESTINATIONS))
    fallback = [name for name in order if name in set(default)]
    if metadata.user_role is not UserRole.ADMIN or not metadata.destinations:
        return fallback
    requested = set(metadata.destinations)
    selected = [name for name in order if name in requested and name in supported_names]
    dropped = sorted(requested - set(selected))
    if dropped:
        logger.info("destinations_dropped requested=%s dropped=%s", sorted(requested), dropped)
    return selected or fallback


class UploadOrchestrator:
    def __init__(
        self,
        *,
        received_dir: str,
        status_store: StatusStore,
        archiver: FileArchiver,
        adapters: dict[str, DestinationAdapter],
        dispatcher: ParserDispatcher | None = None,
        default_destinations: Iterable[str] = DEFAULT_DESTINATIONS,
        duration_probe: Callable[[str], str] = probe_show_duration,
    ) -> None:
        self.received_dir = received_dir
        self.status_store = status_store
        self.archiver = archiver
        self.adapters = dict(adapters)
        self.dispatcher = dispatcher or ParserDispatcher()
        self.default_destinations = tuple(default_destinations)
        self.duration_probe = duration_probe

    def run(self, upload_id: str) -> UploadOutcome:
        upload_id = validate_upload_id(upload_id)
        logger.info("upload_started upload_id=%s", upload_id)
        try:
            return self._run(upload_id)
        except Exception as exc:
            logger.exception("upload_failed upload_id=%s", upload_id)
            message = f"Processing error: {exc}"
            self.status_store.update(upload_id, STATUS_ERROR, message)
            return UploadOutcome(upload_id=upload_id, status=STATUS_ERROR, message=message)

    def _run(self, upload_id: str) -> UploadOutcome:
        self.status_store.update(upload_id, STATUS_PROCESSING, "Processing upload")

        try:
            intake = load_intake(self.received_dir, upload_id)
        except IntakeError as exc:
            logger.error("intake_rejected upload_id=%s error=%s", upload_id, exc)
            self.status_store.update(upload_id, STATUS_ERROR, str(exc))
            return UploadOutcome(upload_id=upload_id, status=STATUS_ERROR, message=str(exc))

        songlist, source, parse_error = self._prepare_songlist(intake)
        if source != SOURCE_ARTIFACT:
            store_songlist(intake.artifact_path, songlist)
        is_admin = songlist.user_role is UserRole.ADMIN

        songlist_detail = {
            "path": intake.artifact_path,
            "tracks": len(songlist.track_list),
            "source": source,
            "parse_error": parse_error.value,
        }
        self.status_store.update(
            upload_id,
            STATUS_SONGS_CONFIRMED,
            "Songlist confirmed",
            {"songlist": songlist_detail} if is_admin else None,
        )

        results = self._upload_all(upload_id, intake, songlist, is_admin=is_admin)

        if is_admin:
            record = self.status_store.update(
                upload_id,
                STATUS_COMPLETED,
                ADMIN_COMPLETED_MESSAGE,
                {"destinations": results, "current_platform": None},
            )
            message = ADMIN_COMPLETED_MESSAGE
        else:
            record = self.status_store.update(upload_id, STATUS_COMPLETED, DJ_COMPLETED_MESSAGE)
            message = DJ_COMPLETED_MESSAGE

        summary = {
            "upload_id": upload_id,
            "songlist_source": source,
            "parse_error": parse_error.value,
            "destinations": results,
            "track_list": [song.to_dict() for song in songlist.track_list],
        }
        try:
            archive = self.archiver.archive(intake, summary=summary, status_snapshot=record.to_dict())
        except Exception as exc:
            logger.exception("archive_crashed upload_id=%s", upload_id)
            archive = ArchiveResult(success=False, error=str(exc))
        if not archive.success:
            logger.warning("archive_incomplete upload_id=%s error=%s", upload_id, archive.error)
        if is_admin:
            try:
                self.status_store.merge_detail(upload_id, {"archive": archive.to_dict()})
            except OSError:
                logger.exception("archive_detail_write_failed upload_id=%s", upload_id)

        songlist_path = intake.artifact_path
        if archive.success and archive.path:
            songlist_path = os.path.join(archive.path, os.path.basename(intake.artifact_path))
        logger.info("upload_finished upload_id=%s source=%s destinations=%s", upload_id, source, sorted(results))
        return UploadOutcome(
            upload_id=upload_id,
            status=STATUS_COMPLETED,
            message=message,
            destinations=results,
            songlist_path=songlist_path,
            songlist_source=source,
            archive=archive,
        )

    def _prepare_songlist(self, intake: UploadIntake) -> tuple[Songlist, str, ParseErrorKind]:
        existing = load_songlist_if_present(intake.artifact_path)
        if existing is not None:
            logger.info("songlist_reused upload_id=%s path=%s", intake.upload_id, intake.artifact_path)
            return existing, SOURCE_ARTIFACT, ParseErrorKind.NONE

        duration = self.duration_probe(intake.audio_path)
        result = self.dispatcher.parse(intake.songlist_path)
        if not result.ok:
            logger.warning(
                "songlist_minimal_fallback upload_id=%s error=%s songs=%s",
                intake.upload_id,
                result.error.value,
                len(result.songs),
            )
            error = result.error if result.error is not ParseErrorKind.NONE else ParseErrorKind.NO_VALID_SONGS
            return create_minimal_songlist(intake.metadata, duration=duration), SOURCE_MINIMAL, error
        songlist = Songlist(broadcast_data=intake.metadata, track_list=list(result.songs), duration=duration)
        return songlist, SOURCE_PARSED, ParseErrorKind.NONE

    def _upload_all(
        self,
        upload_id: str,
        intake: UploadIntake,
        songlist: Songlist,
        *,
        is_admin: bool,
    ) -> dict[str, dict[str, Any]]:
        selected = resolve_destinations(songlist.broadcast_data, self.adapters, self.default_destinations)
        logger.info("destinations_selected upload_id=%s destinations=%s", upload_id, selected)

        names = list(KNOWN_DESTINATIONS) + [name for name in selected if name not in KNOWN_DESTINATIONS]
        results = {name: DestinationResult.not_selected().to_dict() for name in names if name not in selected}
        for name in selected:
            if is_admin:
                self.status_store.update(
                    upload_id,
                    STATUS_SONGS_CONFIRMED,
                    f"Uploading to {name}",
                    {"current_platform": name},
                )
            adapter = self.adapters.get(name)
            if adapter is None:
                logger.error("destination_not_configured upload_id=%s destination=%s", upload_id, name)
                result = DestinationResult.failed(NOT_CONFIGURED_ERROR)
            else:
                result = adapter.distribute(intake.audio_path, songlist, artwork_path=intake.artwork_path)
            logger.info(
                "destination_finished upload_id=%s destination=%s success=%s error=%s",
                upload_id,
                name,
                result.success,
                result.error,
            )
            results[name] = result.to_dict()
            if is_admin:
                self.status_store.merge_detail(upload_id, {"destinations": {name: results[name]}})
        return {name: results[name] for name in names}
