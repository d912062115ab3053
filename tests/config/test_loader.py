"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence and error mapping
- provider API key fallback
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from deminify.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
)
from deminify.core.errors import ConfigError

_ISOLATED_VARS = ("OPENAI_API_KEY", "GEMINI_API_KEY")


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path) -> Generator[None, None, None]:
    """Remove DEMINIFY__* and provider key env vars, and hide the global config."""
    saved = {
        k: v for k, v in os.environ.items() if k.startswith("DEMINIFY__") or k in _ISOLATED_VARS
    }
    for k in saved:
        del os.environ[k]
    with patch("deminify.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield
    os.environ.update(saved)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "deminify.yaml"
        yaml_file.write_text("rename:\n  context_window_size: 2000\n")
        assert _load_yaml(yaml_file) == {"rename": {"context_window_size": 2000}}

    def test_returns_empty_for_yaml_null(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "null.yaml"
        yaml_file.write_text("null\n")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("oracle:\n  model:\n    - invalid: [unclosed")
        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        base = {"oracle": {"provider": "openai", "model": "gpt-4o"}}
        override = {"oracle": {"model": "gpt-4o-mini"}}
        assert _deep_merge(base, override) == {
            "oracle": {"provider": "openai", "model": "gpt-4o-mini"}
        }

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_defaults_when_no_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.rename.context_window_size == 1000
        assert config.checkpoint.enabled is False
        assert config.oracle.api_key is None

    def test_loads_project_config(self, tmp_path: Path) -> None:
        (tmp_path / "deminify.yaml").write_text("oracle:\n  provider: local\n")
        config = load_config(tmp_path)
        assert config.oracle.provider == "local"

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "deminify.yaml").write_text("rename:\n  context_window_size: 500\n")
        with patch.dict(os.environ, {"DEMINIFY__RENAME__CONTEXT_WINDOW_SIZE": "750"}):
            config = load_config(tmp_path)
        assert config.rename.context_window_size == 750

    def test_kwargs_override_env(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"DEMINIFY__ORACLE__MODEL": "from-env"}):
            config = load_config(tmp_path, oracle={"model": "from-kwargs"})
        assert config.oracle.model == "from-kwargs"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "deminify.yaml").write_text("rename:\n  context_window_size: -1\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    @pytest.mark.parametrize(
        ("provider", "env_var"),
        [("openai", "OPENAI_API_KEY"), ("gemini", "GEMINI_API_KEY")],
    )
    def test_api_key_falls_back_to_provider_env(
        self, tmp_path: Path, provider: str, env_var: str
    ) -> None:
        with patch.dict(os.environ, {env_var: "sk-test"}):
            config = load_config(tmp_path, oracle={"provider": provider})
        assert config.oracle.api_key == "sk-test"

    def test_explicit_api_key_wins_over_env(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-env"}):
            config = load_config(tmp_path, oracle={"api_key": "sk-cli"})
        assert config.oracle.api_key == "sk-cli"


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "deminify" in str(GLOBAL_CONFIG_PATH)
