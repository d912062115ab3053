"""Fixtures for pipeline tests."""

from pathlib import Path

import pytest

from deminify.checkpoint.store import CheckpointStore
from deminify.config.models import OracleConfig
from deminify.core.errors import OracleError
from deminify.rename.oracles import Renamer


class TableRenamer(Renamer):
    """Renamer answering from a fixed table, optionally failing on one name."""

    provider = "table"
    default_model = "table"
    default_base_url = "http://table.invalid"

    def __init__(self, answers: dict[str, str], fail_on: str | None = None) -> None:
        super().__init__(OracleConfig(provider="local"))
        self.answers = answers
        self.fail_on = fail_on
        self.asked: list[str] = []
        self.prepared: list[str] = []

    async def prepare(self, source: str) -> None:
        self.prepared.append(source)

    async def suggest(self, name: str, context: str) -> str:
        self.asked.append(name)
        if name == self.fail_on:
            raise OracleError.request_failed(self.provider, f"refused {name}")
        return self.answers.get(name, name)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def store(output_dir: Path) -> CheckpointStore:
    return CheckpointStore(output_dir)



@pytest.fixture
def renamer_cls() -> type[TableRenamer]:
    return TableRenamer
