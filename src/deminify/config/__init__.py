"""Config module exports."""

from deminify.config.loader import load_config
from deminify.config.models import (
    CheckpointConfig,
    DeminifyConfig,
    LoggingConfig,
    OracleConfig,
    RenameConfig,
)

__all__ = [
    "load_config",
    "CheckpointConfig",
    "DeminifyConfig",
    "LoggingConfig",
    "OracleConfig",
    "RenameConfig",
]
