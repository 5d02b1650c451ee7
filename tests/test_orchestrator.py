from __future__ import annotations

import json
import os

from destinations.base import DestinationAdapter, DestinationResult
from engine.archive import ArchiveResult, FileArchiver
from engine.orchestrator import (
    DJ_COMPLETED_MESSAGE,
    SOURCE_ARTIFACT,
    SOURCE_MINIMAL,
    SOURCE_PARSED,
    UploadOrchestrator,
    resolve_destinations,
)
from engine.status_store import STATUS_COMPLETED, STATUS_ERROR, StatusStore
from songlist.models import MINIMAL_TRACK, BroadcastMetadata, Songlist, UserRole
from songlist.parsers import ParserDispatcher
from songlist.storage import store_songlist
from songlist.types import Song

PREFIX = "2024-05-01_DJ_Koze_Night_Moves_Mix"
ARCHIVE_DIR = os.path.join("2024", "2024-05-01_DJ_Koze")


class RecordingAdapter(DestinationAdapter):
    def __init__(self, name, calls, *, result=None, error=None):
        self.name = name
        self.calls = calls
        self.result = result or DestinationResult(success=True, id=f"{name}-1")
        self.error = error

    def build_metadata(self, songlist, *, artwork_path=None):
        return {"title": songlist.broadcast_data.title, "tracks": [song.title for song in songlist.track_list]}

    def upload(self, audio_path, metadata):
        self.calls.append((self.name, os.path.basename(audio_path), metadata))
        if self.error:
            raise self.error
        return self.result


class CountingDispatcher(ParserDispatcher):
    def __init__(self):
        super().__init__()
        self.parsed = []

    def parse(self, file_path):
        self.parsed.append(os.path.basename(file_path))
        return super().parse(file_path)


class StaticArchiver:
    """Leaves inputs in place so an upload can be re-run."""

    def __init__(self, result=None, error=None):
        self.result = result or ArchiveResult(success=True, path="/archive/static")
        self.error = error
        self.calls = []

    def archive(self, intake, *, summary=None, status_snapshot=None):
        self.calls.append((intake.upload_id, summary, status_snapshot))
        if self.error:
            raise self.error
        return self.result


def _write_upload(received, upload_id="upload-1", *, role="DJ", destinations=None, songlist="1. Night Moves - DJ Koze\n2. Pick Up - DJ Koze\n", audio=True):
    upload_dir = received / upload_id
    upload_dir.mkdir(parents=True)
    record = {
        "broadcastDate": "2024-05-01",
        "broadcastTime": "18:00",
        "djName": "DJ Koze",
        "setTitle": "Night Moves Mix",
        "genre": ["House"],
        "userRole": role,
    }
    if destinations is not None:
        record["destinations"] = destinations
    (upload_dir / "metadata.json").write_text(json.dumps(record), encoding="utf-8")
    if audio:
        (upload_dir / f"{PREFIX}.mp3").write_bytes(b"ID3 audio")
    (upload_dir / f"{PREFIX}.txt").write_text(songlist, encoding="utf-8")
    return upload_dir


def _orchestrator(tmp_path, adapters, *, archiver=None, dispatcher=None, duration_probe=None):
    return UploadOrchestrator(
        received_dir=str(tmp_path / "received"),
        status_store=StatusStore(str(tmp_path / "status")),
        archiver=archiver or FileArchiver(str(tmp_path / "archive")),
        adapters=adapters,
        dispatcher=dispatcher,
        default_destinations=("azuracast",),
        duration_probe=duration_probe or (lambda path: "01:00:00"),
    )


def _status(tmp_path, upload_id="upload-1"):
    return StatusStore(str(tmp_path / "status")).read(upload_id)


def test_dj_upload_completes_with_coarse_status(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received")
    orchestrator = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)})

    outcome = orchestrator.run("upload-1")

    assert outcome.ok
    assert outcome.songlist_source == SOURCE_PARSED
    assert calls == [
        ("azuracast", f"{PREFIX}.mp3", {"title": "Night Moves Mix", "tracks": ["Night Moves", "Pick Up"]})
    ]
    assert outcome.destinations == {
        "azuracast": {"success": True, "id": "azuracast-1"},
        "mixcloud": {"success": True, "skipped": True, "note": "Destination not selected"},
        "soundcloud": {"success": True, "skipped": True, "note": "Destination not selected"},
    }
    record = _status(tmp_path)
    assert record.status == STATUS_COMPLETED
    assert record.message == DJ_COMPLETED_MESSAGE
    assert record.detail == {}

    archive_dir = tmp_path / "archive" / ARCHIVE_DIR
    archived = json.loads((archive_dir / f"{PREFIX}_songlist.json").read_text(encoding="utf-8"))
    assert [song["title"] for song in archived["track_list"]] == ["Night Moves", "Pick Up"]
    assert (archive_dir / f"{PREFIX}_summary.json").exists()
    assert not (tmp_path / "received" / "upload-1").exists()
    assert outcome.songlist_path == str(archive_dir / f"{PREFIX}_songlist.json")


def test_unparseable_songlist_still_completes_with_minimal_songlist(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received", songlist="just some words\n")
    orchestrator = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)})

    outcome = orchestrator.run("upload-1")

    assert outcome.status == STATUS_COMPLETED
    assert outcome.songlist_source == SOURCE_MINIMAL
    assert calls[0][2]["tracks"] == [MINIMAL_TRACK.title]
    archived = json.loads(
        (tmp_path / "archive" / ARCHIVE_DIR / f"{PREFIX}_songlist.json").read_text(encoding="utf-8")
    )
    assert archived["track_list"] == [{"title": "Unknown Track", "artist": "Unknown Artist"}]


def test_admin_sees_full_breakdown_for_filtered_selection(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received", role="ADMIN", destinations="mixcloud,unknown")
    adapters = {
        "azuracast": RecordingAdapter("azuracast", calls),
        "mixcloud": RecordingAdapter("mixcloud", calls),
    }

    outcome = _orchestrator(tmp_path, adapters).run("upload-1")

    assert [call[0] for call in calls] == ["mixcloud"]
    record = _status(tmp_path)
    assert record.status == STATUS_COMPLETED
    assert record.detail["destinations"] == {
        "azuracast": {"success": True, "skipped": True, "note": "Destination not selected"},
        "mixcloud": {"success": True, "id": "mixcloud-1"},
        "soundcloud": {"success": True, "skipped": True, "note": "Destination not selected"},
    }
    assert record.detail["current_platform"] is None
    assert record.detail["songlist"]["tracks"] == 2
    assert record.detail["songlist"]["source"] == SOURCE_PARSED
    assert record.detail["archive"]["success"] is True
    assert outcome.destinations == record.detail["destinations"]


def test_failed_destination_does_not_abort_the_rest(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received", role="ADMIN", destinations="soundcloud,azuracast,mixcloud")
    adapters = {
        "azuracast": RecordingAdapter("azuracast", calls, error=RuntimeError("connection reset")),
        "mixcloud": RecordingAdapter("mixcloud", calls, result=DestinationResult.failed("Invalid track list")),
        "soundcloud": RecordingAdapter("soundcloud", calls),
    }

    outcome = _orchestrator(tmp_path, adapters).run("upload-1")

    assert [call[0] for call in calls] == ["azuracast", "mixcloud", "soundcloud"]
    assert outcome.status == STATUS_COMPLETED
    assert outcome.destinations["azuracast"] == {"success": False, "error": "connection reset", "recoverable": True}
    assert outcome.destinations["mixcloud"]["recoverable"] is True
    assert outcome.destinations["soundcloud"]["success"] is True


def test_rerun_reuses_artifact_and_repeats_call_sequence(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received", role="ADMIN", destinations="azuracast,mixcloud")
    dispatcher = CountingDispatcher()
    orchestrator = _orchestrator(
        tmp_path,
        {"azuracast": RecordingAdapter("azuracast", calls), "mixcloud": RecordingAdapter("mixcloud", calls)},
        archiver=StaticArchiver(),
        dispatcher=dispatcher,
    )

    first = orchestrator.run("upload-1")
    first_calls = list(calls)
    calls.clear()
    second = orchestrator.run("upload-1")

    assert dispatcher.parsed == [f"{PREFIX}.txt"]
    assert first.songlist_source == SOURCE_PARSED
    assert second.songlist_source == SOURCE_ARTIFACT
    assert calls == first_calls
    assert second.destinations == first.destinations


def test_confirmed_artifact_is_preferred_over_raw_songlist(tmp_path) -> None:
    calls = []
    upload_dir = _write_upload(tmp_path / "received")
    confirmed = Songlist(
        broadcast_data=BroadcastMetadata(
            broadcast_date="2024-05-01",
            dj_name="DJ Koze",
            title="Night Moves Mix",
            broadcast_time="18:00:00",
            user_role=UserRole.DJ,
        ),
        track_list=[Song(title="Edited Title", artist="Edited Artist")],
    )
    store_songlist(str(upload_dir / f"{PREFIX}_songlist.json"), confirmed)
    dispatcher = CountingDispatcher()

    outcome = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)}, dispatcher=dispatcher).run(
        "upload-1"
    )

    assert outcome.songlist_source == SOURCE_ARTIFACT
    assert dispatcher.parsed == []
    assert calls[0][2]["tracks"] == ["Edited Title"]


def test_reused_artifact_is_not_rewritten(tmp_path) -> None:
    calls = []
    upload_dir = _write_upload(tmp_path / "received")
    artifact = upload_dir / f"{PREFIX}_songlist.json"
    original = (
        '{"broadcast_data": {"broadcastDate": "2024-05-01", "DJ": "DJ Koze", "setTitle": "Night Moves Mix"}, '
        '"track_list": [{"title": "Edited Title", "artist": "Edited Artist"}], "extra": "keep"}'
    )
    artifact.write_text(original, encoding="utf-8")
    orchestrator = _orchestrator(
        tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)}, archiver=StaticArchiver()
    )

    outcome = orchestrator.run("upload-1")

    assert outcome.songlist_source == SOURCE_ARTIFACT
    assert calls[0][2]["tracks"] == ["Edited Title"]
    assert artifact.read_text(encoding="utf-8") == original


class FailingDetailStore(StatusStore):
    def merge_detail(self, upload_id, detail):
        raise OSError("status volume is read-only")


def test_archive_detail_write_failure_keeps_completed(tmp_path) -> None:
    _write_upload(tmp_path / "received", role="ADMIN")
    orchestrator = UploadOrchestrator(
        received_dir=str(tmp_path / "received"),
        status_store=FailingDetailStore(str(tmp_path / "status")),
        archiver=StaticArchiver(),
        adapters={"azuracast": RecordingAdapter("azuracast", [])},
        default_destinations=("azuracast",),
        duration_probe=lambda path: "01:00:00",
    )

    outcome = orchestrator.run("upload-1")

    assert outcome.status == STATUS_COMPLETED
    assert _status(tmp_path).status == STATUS_COMPLETED
    assert "archive" not in _status(tmp_path).detail


def test_archive_failure_leaves_status_completed(tmp_path) -> None:
    _write_upload(tmp_path / "received", role="ADMIN")
    archiver = StaticArchiver(result=ArchiveResult(success=False, path="/archive/x", error="disk full"))

    outcome = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", [])}, archiver=archiver).run(
        "upload-1"
    )

    record = _status(tmp_path)
    assert outcome.status == STATUS_COMPLETED
    assert record.status == STATUS_COMPLETED
    assert record.detail["archive"] == {"success": False, "path": "/archive/x", "files": [], "error": "disk full"}
    assert archiver.calls[0][2]["status"] == STATUS_COMPLETED


def test_archive_crash_leaves_status_completed(tmp_path) -> None:
    _write_upload(tmp_path / "received")
    archiver = StaticArchiver(error=RuntimeError("archive exploded"))

    outcome = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", [])}, archiver=archiver).run(
        "upload-1"
    )

    assert outcome.status == STATUS_COMPLETED
    assert outcome.archive.success is False
    assert _status(tmp_path).status == STATUS_COMPLETED


def test_missing_audio_is_terminal_error(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received", audio=False)

    outcome = _orchestrator(tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)}).run("upload-1")

    record = _status(tmp_path)
    assert outcome.status == STATUS_ERROR
    assert record.status == STATUS_ERROR
    assert record.message.startswith("Missing audio file")
    assert calls == []
    assert (tmp_path / "received" / "upload-1").exists()


def test_unexpected_fault_halts_with_error_status(tmp_path) -> None:
    calls = []
    _write_upload(tmp_path / "received")

    def _explode(path):
        raise RuntimeError("probe exploded")

    outcome = _orchestrator(
        tmp_path, {"azuracast": RecordingAdapter("azuracast", calls)}, duration_probe=_explode
    ).run("upload-1")

    assert outcome.status == STATUS_ERROR
    assert outcome.message == "Processing error: probe exploded"
    assert _status(tmp_path).message == "Processing error: probe exploded"
    assert calls == []


def test_selected_but_unconfigured_destination_is_recorded_as_failure(tmp_path) -> None:
    _write_upload(tmp_path / "received")

    outcome = _orchestrator(tmp_path, {}).run("upload-1")

    assert outcome.status == STATUS_COMPLETED
    assert outcome.destinations["azuracast"] == {
        "success": False,
        "error": "Destination is not configured",
        "recoverable": True,
    }


def _metadata(role, destinations):
    return BroadcastMetadata(
        broadcast_date="2024-05-01",
        dj_name="DJ Koze",
        title="Night Moves Mix",
        user_role=role,
        destinations=destinations,
    )


def test_resolve_destinations() -> None:
    supported = {"azuracast", "mixcloud", "soundcloud"}

    assert resolve_destinations(_metadata(UserRole.ADMIN, ["mixcloud", "unknown"]), {"mixcloud"}, ("azuracast",)) == [
        "mixcloud"
    ]
    assert resolve_destinations(_metadata(UserRole.ADMIN, ["unknown"]), supported, ("azuracast",)) == ["azuracast"]
    assert resolve_destinations(_metadata(UserRole.ADMIN, None), supported, ("azuracast",)) == ["azuracast"]
    assert resolve_destinations(_metadata(UserRole.DJ, ["mixcloud"]), supported, ("azuracast",)) == ["azuracast"]
    assert resolve_destinations(_metadata(UserRole.ADMIN, ["soundcloud", "azuracast"]), supported, ("azuracast",)) == [
        "azuracast",
        "soundcloud",
    ]
