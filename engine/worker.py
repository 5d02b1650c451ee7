"""Process boundary for one upload: ``python -m engine.worker <upload_id>``."""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys

from config.settings import AZURACAST_VERIFY_DJ_DIRECTORY, DEFAULT_DESTINATIONS
from destinations.azuracast import AzuraCastAdapter, AzuraCastClient
from destinations.base import DestinationAdapter
from destinations.mixcloud import MixcloudAdapter, MixcloudClient
from destinations.soundcloud import SoundCloudAdapter, SoundCloudClient
from engine.archive import FileArchiver
from engine.orchestrator import UploadOrchestrator
from engine.paths import PROJECT_ROOT, PipelinePaths, build_pipeline_paths, ensure_dir
from engine.status_store import StatusStore

logger = logging.getLogger(__name__)

LOG_FILENAME = "upload_worker.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(log_dir: str) -> None:
    """Attach file and console handlers to the root logger once per process."""
    ensure_dir(log_dir)
    root = logging.getLogger("")
    root.setLevel(logging.INFO)
    log_path = os.path.abspath(os.path.join(log_dir, LOG_FILENAME))
    formatter = logging.Formatter(LOG_FORMAT)

    has_file = any(
        isinstance(handler, logging.FileHandler)
        and os.path.abspath(getattr(handler, "baseFilename", "")) == log_path
        for handler in root.handlers
    )
    if not has_file:
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root.addHandler(file_handler)

    has_console = any(
        type(handler) is logging.StreamHandler for handler in root.handlers
    )
    if not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console.setLevel(logging.INFO)
        root.addHandler(console)


def build_adapters(env: dict[str, str] | None = None) -> dict[str, DestinationAdapter]:
    """Register an adapter for every destination whose credentials are present."""
    env = os.environ if env is None else env
    adapters: dict[str, DestinationAdapter] = {}

    host = (env.get("AZURACAST_HOST") or "").strip()
    api_key = (env.get("AZURACAST_API_KEY") or "").strip()
    station_id = (env.get("AZURACAST_STATION_ID") or "").strip()
    if host and api_key and station_id:
        client = AzuraCastClient(host, api_key, station_id)
        verifier = client.dj_directory_exists if AZURACAST_VERIFY_DJ_DIRECTORY else None
        adapters["azuracast"] = AzuraCastAdapter(client, directory_verifier=verifier)

    mixcloud_token = (env.get("MIXCLOUD_ACCESS_TOKEN") or "").strip()
    if mixcloud_token:
        adapters["mixcloud"] = MixcloudAdapter(MixcloudClient(mixcloud_token))

    soundcloud_token = (env.get("SOUNDCLOUD_ACCESS_TOKEN") or "").strip()
    if soundcloud_token:
        adapters["soundcloud"] = SoundCloudAdapter(SoundCloudClient(soundcloud_token))

    logger.info("destinations_registered names=%s", sorted(adapters))
    return adapters


def build_orchestrator(paths: PipelinePaths, adapters: dict[str, DestinationAdapter] | None = None) -> UploadOrchestrator:
    return UploadOrchestrator(
        received_dir=paths.received_dir,
        status_store=StatusStore(paths.status_dir),
        archiver=FileArchiver(paths.archive_dir),
        adapters=build_adapters() if adapters is None else adapters,
        default_destinations=DEFAULT_DESTINATIONS,
    )


def launch_worker(upload_id: str, *, python: str | None = None) -> subprocess.Popen:
    """Start an isolated worker process for ``upload_id`` and return it."""
    args = [python or sys.executable, "-m", "engine.worker", upload_id]
    logger.info("worker_launch upload_id=%s", upload_id)
    return subprocess.Popen(args, cwd=str(PROJECT_ROOT), stdin=subprocess.DEVNULL)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Process one received upload.")
    parser.add_argument("upload_id", help="Upload directory name under the received-files root.")
    args = parser.parse_args(argv)

    paths = build_pipeline_paths()
    setup_logging(paths.log_dir)
    try:
        outcome = build_orchestrator(paths).run(args.upload_id)
    except ValueError as exc:
        logger.error("worker_rejected upload_id=%s error=%s", args.upload_id, exc)
        return 1
    logger.info("worker_finished upload_id=%s status=%s", outcome.upload_id, outcome.status)
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    sys.exit(main())
