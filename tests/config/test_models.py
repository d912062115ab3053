"""Tests for config/models.py module.

Covers:
- LogOutputConfig model
- LoggingConfig model
- RenameConfig model
- CheckpointConfig model
- OracleConfig model
- DeminifyConfig root model
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from deminify.config.models import (
    CheckpointConfig,
    DeminifyConfig,
    LoggingConfig,
    LogOutputConfig,
    OracleConfig,
    RenameConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    def test_relative_file_destination_rejected(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/run.log")

    def test_home_relative_destination_expanded(self) -> None:
        config = LogOutputConfig(destination="~/deminify.log")
        assert not config.destination.startswith("~")


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults_to_single_console_output(self) -> None:
        config = LoggingConfig()
        assert config.level == "INFO"
        assert len(config.outputs) == 1
        assert config.outputs[0].destination == "stderr"

    def test_invalid_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")  # type: ignore[arg-type]


class TestRenameConfig:
    """Tests for RenameConfig model."""

    def test_defaults(self) -> None:
        config = RenameConfig()
        assert config.context_window_size == 1000
        assert config.save_interval is None

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_window_rejected(self, value: int) -> None:
        with pytest.raises(ValidationError):
            RenameConfig(context_window_size=value)

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenameConfig(save_interval=0)


class TestCheckpointConfig:
    """Tests for CheckpointConfig model."""

    def test_defaults(self) -> None:
        config = CheckpointConfig()
        assert config.enabled is False
        assert config.directory_name == ".checkpoints"
        assert config.mapping_filename == "rename-mappings.json"
        assert config.strict_shards is False


class TestOracleConfig:
    """Tests for OracleConfig model."""

    def test_defaults(self) -> None:
        config = OracleConfig()
        assert config.provider == "openai"
        assert config.model is None
        assert config.timeout_sec == 60.0

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OracleConfig(provider="anthropic")  # type: ignore[arg-type]


class TestDeminifyConfig:
    """Tests for the root model."""

    def test_all_sections_present(self) -> None:
        config = DeminifyConfig()
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.rename, RenameConfig)
        assert isinstance(config.checkpoint, CheckpointConfig)
        assert isinstance(config.oracle, OracleConfig)

    def test_nested_dicts_validated(self) -> None:
        config = DeminifyConfig.model_validate({"oracle": {"provider": "local", "seed": 7}})
        assert config.oracle.provider == "local"
        assert config.oracle.seed == 7
