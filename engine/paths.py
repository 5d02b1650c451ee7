import os
from dataclasses import dataclass
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

# name -> (environment override, container location, local location under data/)
_ROOTS = {
    "received": ("RECEIVED_FILES_DIR", "/data/received-files", "received-files"),
    "archive": ("ARCHIVE_DIR", "/archive", "archive"),
    "status": ("UPLOAD_DISTRIBUTOR_STATUS_DIR", "/data/status", "status"),
    "logs": ("UPLOAD_DISTRIBUTOR_LOG_DIR", "/logs", "logs"),
}


@dataclass(frozen=True)
class PipelinePaths:
    received_dir: str
    archive_dir: str
    status_dir: str
    log_dir: str


def _in_container():
    return os.path.exists("/.dockerenv") or os.path.isdir("/data")


def root_dir(name, env=None):
    """Resolve one storage root: explicit env value first, then the runtime default."""
    env_var, container_default, local_default = _ROOTS[name]
    env = os.environ if env is None else env
    override = env.get(env_var)
    if override:
        return str(Path(override).resolve())
    if _in_container():
        return container_default
    return str(PROJECT_ROOT / "data" / local_default)


def ensure_dir(path):
    if path:
        os.makedirs(path, exist_ok=True)


def _is_within_base(path, base_dir):
    real = os.path.realpath(path)
    base = os.path.realpath(base_dir)
    return os.path.commonpath([real, base]) == base


def resolve_upload_dir(received_dir, upload_id):
    """Return the per-upload directory, refusing ids that escape the base."""
    upload_id = str(upload_id or "").strip()
    if not upload_id:
        raise ValueError("upload_id is required")
    resolved = os.path.abspath(os.path.join(received_dir, upload_id))
    if resolved == os.path.abspath(received_dir) or not _is_within_base(resolved, received_dir):
        raise ValueError(f"Upload id must resolve within base directory: {received_dir}")
    return resolved


def build_pipeline_paths(env=None):
    paths = PipelinePaths(
        received_dir=root_dir("received", env),
        archive_dir=root_dir("archive", env),
        status_dir=root_dir("status", env),
        log_dir=root_dir("logs", env),
    )
    for directory in (paths.received_dir, paths.archive_dir, paths.status_dir, paths.log_dir):
        ensure_dir(directory)
    return paths
