"""Durable checkpoint and shard persistence.

Layout under ``<output_dir>/<directory_name>/``:

    checkpoint.json                         single progress record
    partial_<ns-timestamp>_<label>.json     one file per rename decision

The progress record is overwritten wholesale on every save. Shards are
created once and never rewritten; their zero-padded timestamp prefix makes
lexical file-name order equal creation order.

Every operation is best-effort: I/O failures are logged, never raised, so a
full disk degrades durability without stopping a run. The one exception is
``load_all_shards`` in strict mode, which surfaces corrupt shards.
"""

from __future__ import annotations

import json
import os
import re
import time
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from deminify.checkpoint.models import CheckpointRecord
from deminify.config.constants import (
    CHECKPOINT_FILENAME,
    DEFAULT_CHECKPOINT_DIRNAME,
    SHARD_PREFIX,
    SHARD_TIMESTAMP_DIGITS,
)
from deminify.core.errors import CheckpointError

log = structlog.get_logger(__name__)

_UNSAFE_LABEL_CHARS = re.compile(r"[^A-Za-z0-9_.$-]+")


class CheckpointStore:
    """Single-writer checkpoint store rooted at an output directory."""

    def __init__(
        self,
        output_dir: Path,
        *,
        directory_name: str = DEFAULT_CHECKPOINT_DIRNAME,
        strict_shards: bool = False,
    ) -> None:
        self._dir = Path(output_dir) / directory_name
        self._strict_shards = strict_shards
        self._last_shard_ns = 0

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def checkpoint_path(self) -> Path:
        return self._dir / CHECKPOINT_FILENAME

    def _ensure_dir(self) -> bool:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error("checkpoint_dir_failed", path=str(self._dir), error=str(e))
            return False
        return True

    # -------------------------------------------------------------------------
    # Progress record
    # -------------------------------------------------------------------------

    def save(self, record: CheckpointRecord) -> None:
        """Replace the progress record (write-temp-then-rename)."""
        if not self._ensure_dir():
            return
        tmp = self.checkpoint_path.with_suffix(".json.tmp")
        try:
            tmp.write_text(record.to_json(), encoding="utf-8")
            os.replace(tmp, self.checkpoint_path)
        except OSError as e:
            log.error("checkpoint_save_failed", path=str(self.checkpoint_path), error=str(e))
            tmp.unlink(missing_ok=True)
            return
        log.debug(
            "checkpoint_saved",
            file_index=record.current_file_index,
            identifier_index=record.current_identifier_index,
            processed=len(record.processed_identifiers),
            renames=len(record.renames),
            snapshot=record.has_snapshot,
        )

    def load(self) -> CheckpointRecord | None:
        """Return the progress record, or None if missing or unreadable."""
        path = self.checkpoint_path
        if not path.exists():
            return None
        try:
            return CheckpointRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            log.warning("checkpoint_load_failed", path=str(path), error=str(e))
            return None

    def exists(self) -> bool:
        return self.checkpoint_path.is_file()

    def clear(self) -> None:
        """Remove the progress record. Shards are left in place."""
        try:
            self.checkpoint_path.unlink(missing_ok=True)
        except OSError as e:
            log.error("checkpoint_clear_failed", path=str(self.checkpoint_path), error=str(e))
            return
        log.debug("checkpoint_cleared")

    # -------------------------------------------------------------------------
    # Shards
    # -------------------------------------------------------------------------

    def _next_shard_ns(self) -> int:
        # Strictly increasing even when the clock stalls or steps back
        ns = max(time.time_ns(), self._last_shard_ns + 1)
        self._last_shard_ns = ns
        return ns

    def shard_paths(self) -> list[Path]:
        """Shard files in creation order."""
        if not self._dir.is_dir():
            return []
        return sorted(
            (p for p in self._dir.glob(f"{SHARD_PREFIX}*.json") if p.is_file()),
            key=lambda p: p.name,
        )

    def save_shard(self, label: str, data: dict[str, Any]) -> Path | None:
        """Write a new shard. Returns its path, or None if it could not be written."""
        if not self._ensure_dir():
            return None
        safe_label = _UNSAFE_LABEL_CHARS.sub("_", label) or "shard"
        stamp = str(self._next_shard_ns()).zfill(SHARD_TIMESTAMP_DIGITS)
        path = self._dir / f"{SHARD_PREFIX}{stamp}_{safe_label}.json"
        try:
            # "x" mode: a shard is never overwritten
            with path.open("x", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            log.error("shard_save_failed", path=str(path), error=str(e))
            return None
        log.debug("shard_written", path=path.name)
        return path

    def load_all_shards(self) -> list[dict[str, Any]]:
        """Parse every shard in creation order.

        A missing shard area yields ``[]``. A corrupt shard also yields ``[]``
        (logged) unless the store is strict, in which case it raises.

        Raises:
            CheckpointError: A shard is corrupt and ``strict_shards`` is set.
        """
        shards: list[dict[str, Any]] = []
        for path in self.shard_paths():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise ValueError(f"expected an object, got {type(data).__name__}")
            except (OSError, ValueError) as e:
                if self._strict_shards:
                    raise CheckpointError.corrupt_shard(str(path), str(e)) from e
                log.warning("shard_load_failed", path=str(path), error=str(e))
                return []
            shards.append(data)
        return shards

    def clear_shards(self) -> int:
        """Delete every shard. Returns the number removed."""
        removed = 0
        for path in self.shard_paths():
            try:
                path.unlink()
            except OSError as e:
                log.error("shard_clear_failed", path=str(path), error=str(e))
                continue
            removed += 1
        if removed:
            log.debug("shards_cleared", count=removed)
        return removed
