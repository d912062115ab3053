"""Deminify error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Source (parse / regenerate)
- 4xxx: Oracle
- 5xxx: Checkpoint
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Source (3xxx)
    SOURCE_PARSE_FAILED = 3001
    SOURCE_REGENERATE_FAILED = 3002
    SOURCE_UNKNOWN_BINDING = 3003

    # Oracle (4xxx)
    ORACLE_REQUEST_FAILED = 4001
    ORACLE_TIMEOUT = 4002
    ORACLE_MALFORMED_RESPONSE = 4003

    # Checkpoint (5xxx)
    CHECKPOINT_CORRUPT_SHARD = 5001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class DeminifyError(Exception):
    """Base error with structured context for logs and CLI output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ORACLE_TIMEOUT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(DeminifyError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )


class SourceError(DeminifyError):
    """Source text could not be parsed, or renamed text no longer parses."""

    @classmethod
    def parse_failed(cls, error_count: int, label: str | None = None) -> "SourceError":
        where = f" in {label}" if label else ""
        return cls(
            code=ErrorCode.SOURCE_PARSE_FAILED,
            message=f"Failed to parse source{where}: {error_count} syntax error node(s)",
            details={"error_count": error_count, "label": label},
        )

    @classmethod
    def regenerate_failed(cls, name: str, new_name: str) -> "SourceError":
        return cls(
            code=ErrorCode.SOURCE_REGENERATE_FAILED,
            message=f"Renaming '{name}' to '{new_name}' produced unparseable source",
            details={"name": name, "new_name": new_name},
        )

    @classmethod
    def unknown_binding(cls, site_index: int) -> "SourceError":
        return cls(
            code=ErrorCode.SOURCE_UNKNOWN_BINDING,
            message=f"No binding site #{site_index} in the reparsed source",
            details={"site_index": site_index},
        )


class OracleError(DeminifyError):
    """The naming oracle failed to produce a usable proposal."""

    @classmethod
    def request_failed(cls, provider: str, reason: str) -> "OracleError":
        return cls(
            code=ErrorCode.ORACLE_REQUEST_FAILED,
            message=f"{provider} request failed: {reason}",
            retryable=True,
            details={"provider": provider, "reason": reason},
        )

    @classmethod
    def timeout(cls, provider: str, seconds: float) -> "OracleError":
        return cls(
            code=ErrorCode.ORACLE_TIMEOUT,
            message=f"{provider} request timed out after {seconds:g}s",
            retryable=True,
            details={"provider": provider, "timeout_sec": seconds},
        )

    @classmethod
    def malformed_response(cls, provider: str, reason: str) -> "OracleError":
        return cls(
            code=ErrorCode.ORACLE_MALFORMED_RESPONSE,
            message=f"{provider} returned an unusable response: {reason}",
            details={"provider": provider, "reason": reason},
        )


class CheckpointError(DeminifyError):
    """Checkpoint persistence errors that must surface to the caller."""

    @classmethod
    def corrupt_shard(cls, path: str, reason: str) -> "CheckpointError":
        return cls(
            code=ErrorCode.CHECKPOINT_CORRUPT_SHARD,
            message=f"Partial result shard {path} is corrupt: {reason}",
            details={"path": path, "reason": reason},
        )


class InternalError(DeminifyError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
