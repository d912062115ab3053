"""Core module exports."""

from deminify.core.errors import (
    CheckpointError,
    ConfigError,
    DeminifyError,
    ErrorCode,
    InternalError,
    OracleError,
    SourceError,
)
from deminify.core.logging import bind_run_id, configure_logging, get_log_file_path
from deminify.core.progress import RenameProgress, status, task

__all__ = [
    # Errors
    "CheckpointError",
    "ConfigError",
    "DeminifyError",
    "ErrorCode",
    "InternalError",
    "OracleError",
    "SourceError",
    # Logging
    "bind_run_id",
    "configure_logging",
    "get_log_file_path",
    # Progress
    "RenameProgress",
    "status",
    "task",
]
