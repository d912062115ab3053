"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI options land here)
2. Environment variables (DEMINIFY__SECTION__KEY)
3. Project YAML (./deminify.yaml)
4. Global YAML (~/.config/deminify/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    DEMINIFY__<SECTION>__<KEY>=<VALUE>

Examples:
    DEMINIFY__LOGGING__LEVEL=DEBUG
    DEMINIFY__RENAME__CONTEXT_WINDOW_SIZE=2000
    DEMINIFY__ORACLE__PROVIDER=local
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from deminify.config.constants import (
    DEFAULT_CHECKPOINT_DIRNAME,
    DEFAULT_CONTEXT_WINDOW_SIZE,
    DEFAULT_MAPPING_FILENAME,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
OracleProvider = Literal["openai", "gemini", "local"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        DEMINIFY__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every oracle prompt context.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class RenameConfig(BaseModel):
    """Identifier renaming configuration.

    Env vars:
        DEMINIFY__RENAME__CONTEXT_WINDOW_SIZE: Characters of context per oracle call
        DEMINIFY__RENAME__SAVE_INTERVAL: Override the renamer's checkpoint interval
    """

    context_window_size: int = Field(
        default=DEFAULT_CONTEXT_WINDOW_SIZE,
        description="Characters of surrounding source sent with each identifier. "
        "TRADEOFF: Larger windows give better names but cost more tokens.",
    )
    save_interval: int | None = Field(
        default=None,
        description="Save a full checkpoint every N processed identifiers. "
        "Defaults to the renamer's own interval (5 remote, 10 local).",
    )

    @field_validator("context_window_size")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Context window must be positive, got {v}")
        return v

    @field_validator("save_interval")
    @classmethod
    def validate_interval(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError(f"Save interval must be positive, got {v}")
        return v


class CheckpointConfig(BaseModel):
    """Checkpoint persistence configuration.

    Env vars:
        DEMINIFY__CHECKPOINT__ENABLED: Persist progress records and shards
        DEMINIFY__CHECKPOINT__STRICT_SHARDS: Raise on corrupt shards instead of ignoring
    """

    enabled: bool = Field(
        default=False,
        description="Persist resumable progress under the output directory.",
    )
    directory_name: str = Field(
        default=DEFAULT_CHECKPOINT_DIRNAME,
        description="Checkpoint directory name, relative to the output directory.",
    )
    mapping_filename: str = Field(
        default=DEFAULT_MAPPING_FILENAME,
        description="Consolidated rename mapping written on successful completion.",
    )
    strict_shards: bool = Field(
        default=False,
        description="Raise when a partial result shard cannot be parsed. "
        "RISK: Off by default; a corrupt shard then hides every shard from the merge.",
    )


class OracleConfig(BaseModel):
    """Naming oracle configuration.

    Env vars:
        DEMINIFY__ORACLE__PROVIDER: openai, gemini, or local
        DEMINIFY__ORACLE__MODEL: Model name (provider default if unset)
        DEMINIFY__ORACLE__API_KEY: API key (falls back to OPENAI_API_KEY / GEMINI_API_KEY)
        DEMINIFY__ORACLE__BASE_URL: API base URL override
    """

    provider: OracleProvider = "openai"
    model: str | None = Field(
        default=None,
        description="Model name. Unset uses the provider default.",
    )
    api_key: str | None = Field(
        default=None,
        description="API key for remote providers. Never written to checkpoints.",
    )
    base_url: str | None = Field(
        default=None,
        description="API base URL. Unset uses the provider default.",
    )
    timeout_sec: float = Field(
        default=60.0,
        description="Per-request timeout. Timeouts halt the run (resume with --resume).",
    )
    seed: int | None = Field(
        default=None,
        description="Sampling seed for reproducible local results.",
    )


class DeminifyConfig(BaseModel):
    """Root configuration for deminify."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rename: RenameConfig = Field(default_factory=RenameConfig)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
