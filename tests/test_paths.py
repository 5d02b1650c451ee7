from __future__ import annotations

import os

import pytest

from engine.paths import build_pipeline_paths, resolve_upload_dir, root_dir


def test_build_pipeline_paths_honours_env_and_creates_roots(tmp_path) -> None:
    env = {
        "RECEIVED_FILES_DIR": str(tmp_path / "in"),
        "ARCHIVE_DIR": str(tmp_path / "archive"),
        "UPLOAD_DISTRIBUTOR_STATUS_DIR": str(tmp_path / "status"),
        "UPLOAD_DISTRIBUTOR_LOG_DIR": str(tmp_path / "logs"),
    }

    paths = build_pipeline_paths(env)

    assert paths.received_dir == str((tmp_path / "in").resolve())
    assert paths.status_dir == str((tmp_path / "status").resolve())
    for directory in (paths.received_dir, paths.archive_dir, paths.status_dir, paths.log_dir):
        assert os.path.isdir(directory)


def test_root_dir_ignores_blank_override(tmp_path) -> None:
    assert root_dir("archive", {"ARCHIVE_DIR": ""}) == root_dir("archive", {})


def test_resolve_upload_dir_stays_inside_base(tmp_path) -> None:
    base = str(tmp_path)

    assert resolve_upload_dir(base, " upload-1 ") == os.path.join(os.path.abspath(base), "upload-1")
    for bad in ("", "..", "../other", "."):
        with pytest.raises(ValueError):
            resolve_upload_dir(base, bad)
