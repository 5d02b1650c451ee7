from __future__ import annotations

import json

import pytest

from songlist.models import (
    MINIMAL_TRACK,
    BroadcastMetadata,
    MetadataError,
    Songlist,
    UserRole,
    create_minimal_songlist,
)
from songlist.naming import build_archive_relative_dir, build_artifact_filename, build_file_prefix
from songlist.storage import load_songlist, load_songlist_if_present, store_songlist
from songlist.types import Song


def _metadata(**overrides) -> BroadcastMetadata:
    record = {
        "broadcastDate": "2024-05-01",
        "broadcastTime": "18:00",
        "djName": "DJ  Koze",
        "setTitle": "Night / Moves",
        "genre": "House, Techno",
        "userRole": "admin",
        "destinations": "Mixcloud, soundcloud",
    }
    record.update(overrides)
    return BroadcastMetadata.from_record(record)


def test_metadata_accepts_front_end_field_names() -> None:
    metadata = _metadata()

    assert metadata.broadcast_date == "2024-05-01"
    assert metadata.broadcast_time == "18:00:00"
    assert metadata.dj_name == "DJ  Koze"
    assert metadata.genre == ["House", "Techno"]
    assert metadata.user_role is UserRole.ADMIN
    assert metadata.destinations == ["mixcloud", "soundcloud"]


def test_metadata_role_defaults_to_dj() -> None:
    assert _metadata(userRole="superuser").user_role is UserRole.DJ
    assert _metadata(userRole=None).user_role is UserRole.DJ


@pytest.mark.parametrize("missing", ["broadcastDate", "djName", "setTitle"])
def test_metadata_requires_date_dj_and_title(missing) -> None:
    with pytest.raises(MetadataError, match="Missing required metadata field"):
        _metadata(**{missing: ""})


def test_metadata_rejects_malformed_date_and_time() -> None:
    with pytest.raises(MetadataError, match="Invalid broadcast date"):
        _metadata(broadcastDate="01/05/2024")
    with pytest.raises(MetadataError, match="Invalid broadcast time"):
        _metadata(broadcastTime="6pm")


def test_naming_collapses_whitespace_and_strips_unsafe_characters() -> None:
    metadata = _metadata()

    prefix = build_file_prefix(metadata)

    assert prefix == "2024-05-01_DJ_Koze_Night_Moves"
    assert build_archive_relative_dir(metadata) == "2024/2024-05-01_DJ_Koze"
    assert build_artifact_filename(prefix) == "2024-05-01_DJ_Koze_Night_Moves_songlist.json"


def test_songlist_round_trip(tmp_path) -> None:
    songlist = Songlist(
        broadcast_data=_metadata(description="Warehouse set", artworkFilename="cover.png"),
        track_list=[Song(title="Night Moves", artist="DJ Koze"), Song(title="Pick Up", artist="DJ Koze")],
        duration="01:32:10",
    )
    path = str(tmp_path / "artifact.json")

    store_songlist(path, songlist)

    assert load_songlist(path) == songlist
    assert sorted(p.name for p in tmp_path.iterdir()) == ["artifact.json"]


def test_stored_songlist_carries_top_level_role(tmp_path) -> None:
    path = tmp_path / "artifact.json"
    store_songlist(str(path), create_minimal_songlist(_metadata()))

    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["user_role"] == "ADMIN"
    assert payload["track_list"] == [{"title": "Unknown Track", "artist": "Unknown Artist"}]
    assert payload["version"] == "1.0"


def test_top_level_role_overrides_broadcast_copy() -> None:
    payload = create_minimal_songlist(_metadata(userRole="ADMIN")).to_dict()
    payload["user_role"] = "DJ"

    assert Songlist.from_dict(payload).user_role is UserRole.DJ


def test_minimal_songlist_has_single_placeholder_track() -> None:
    songlist = create_minimal_songlist(_metadata(), duration="00:58:00")

    assert songlist.track_list == [MINIMAL_TRACK]
    assert songlist.is_minimal
    assert songlist.duration == "00:58:00"


def test_unreadable_artifact_is_ignored(tmp_path) -> None:
    path = tmp_path / "artifact.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_songlist_if_present(str(path)) is None
    assert load_songlist_if_present(str(tmp_path / "absent.json")) is None
