"""Persisted checkpoint shapes.

Both records serialize with camelCase keys, the on-disk format shared with
earlier tooling:

    checkpoint.json   {processedIdentifiers, renames, currentFileIndex,
                       currentIdentifierIndex, timestamp[, stageIndex, code]}
    partial_*.json    {originalName, newName, timestamp, ...caller fields}
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Wall-clock timestamp in milliseconds."""
    return time.time_ns() // 1_000_000


class CheckpointRecord(BaseModel):
    """Resumable progress of one run.

    Identifier-level records never carry source text. File-level records
    written when a non-rename stage fails also carry ``stage_index`` and the
    ``code`` snapshot that entered that stage.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    processed_identifiers: list[str] = Field(default_factory=list)
    renames: list[tuple[str, str]] = Field(default_factory=list)
    current_file_index: int = 0
    current_identifier_index: int = 0
    timestamp: int = Field(default_factory=now_ms)
    stage_index: int | None = None
    code: str | None = None

    @property
    def rename_map(self) -> dict[str, str]:
        return dict(self.renames)

    @property
    def has_snapshot(self) -> bool:
        return self.stage_index is not None and self.code is not None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


class PartialResultShard(BaseModel):
    """One rename decision, written once and never modified.

    Caller fields (``file``, ``fileIndex``, ``identifierIndex``) are kept as
    extras so shards from other writers still load.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    original_name: str
    new_name: str
    timestamp: int = Field(default_factory=now_ms)

    @property
    def is_noop(self) -> bool:
        return self.original_name == self.new_name

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
