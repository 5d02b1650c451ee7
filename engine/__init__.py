from .paths import PipelinePaths, build_pipeline_paths
from .retry import RetryPolicy
from .status_store import StatusStore, UploadStatusRecord

__all__ = [
    "PipelinePaths",
    "RetryPolicy",
    "StatusStore",
    "UploadStatusRecord",
    "build_pipeline_paths",
]
