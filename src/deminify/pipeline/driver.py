"""Multi-file pipeline driver with file-level checkpoints.

Each file runs through the stage list in order. Per-file lifecycle::

    PENDING -> SKIPPED                (blank file)
    PENDING -> PROCESSING -> DONE
    PENDING -> PROCESSING -> FAILED   (run halts, checkpoint kept)

After a file finishes, its text is written back in place and the checkpoint
advances to the next file. When every file is done the checkpoint is
removed, shards are merged into the mapping artifact, and the shards are
deleted.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from deminify.checkpoint.merge import merge_shards
from deminify.checkpoint.models import CheckpointRecord
from deminify.checkpoint.store import CheckpointStore
from deminify.config.constants import DEFAULT_MAPPING_FILENAME
from deminify.pipeline.stages import SourceFile, Stage

log = structlog.get_logger(__name__)


class DriverState(Enum):
    """Whole-run state."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class FileState(Enum):
    """Per-file state."""

    PENDING = "pending"
    SKIPPED = "skipped"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class StageFailure:
    """Where a run stopped."""

    file: SourceFile
    stage_index: int
    stage_name: str
    error: str


@dataclass
class PipelineResult:
    """Outcome of a completed run."""

    file_states: dict[int, FileState]
    mapping: dict[str, str] = field(default_factory=dict)
    mapping_path: Path | None = None

    @property
    def processed(self) -> int:
        return sum(1 for s in self.file_states.values() if s is FileState.DONE)

    @property
    def skipped(self) -> int:
        return sum(1 for s in self.file_states.values() if s is FileState.SKIPPED)


def read_mapping(path: Path) -> dict[str, str]:
    """Load a mapping artifact (``[[old, new], ...]``); empty if absent or invalid."""
    if not path.is_file():
        return {}
    try:
        pairs = json.loads(path.read_text(encoding="utf-8"))
        return {str(old): str(new) for old, new in pairs}
    except (OSError, ValueError, TypeError) as e:
        log.warning("mapping_load_failed", path=str(path), error=str(e))
        return {}


class PipelineDriver:
    """Sequences files through stages and owns file-level checkpoints.

    Usage::

        driver = PipelineDriver(files, [RenameStage(renamer, store=store, context_window=1000)],
                                store=store, output_dir=out, resume=True)
        result = await driver.run()
    """

    def __init__(
        self,
        files: Sequence[SourceFile],
        stages: Sequence[Stage],
        *,
        output_dir: Path,
        store: CheckpointStore | None = None,
        resume: bool = False,
        mapping_filename: str = DEFAULT_MAPPING_FILENAME,
    ) -> None:
        self.files = list(files)
        self.stages = list(stages)
        self.output_dir = output_dir
        self.store = store
        self.resume = resume
        self.mapping_path = output_dir / mapping_filename
        self.state = DriverState.RUNNING
        self.file_states: dict[int, FileState] = {f.index: FileState.PENDING for f in self.files}
        self.failure: StageFailure | None = None

    async def run(self) -> PipelineResult:
        """Process all files.

        Raises:
            Exception: Whatever the failing stage raised; ``failure`` says where.
        """
        self.state = DriverState.RUNNING
        start_file, start_stage, snapshot = self._starting_point()

        for file in self.files:
            if file.index < start_file:
                self.file_states[file.index] = FileState.DONE
                continue

            text = file.path.read_text(encoding="utf-8")
            first_stage = 0
            if file.index == start_file and snapshot is not None:
                text, first_stage = snapshot, start_stage

            if not text.strip():
                self.file_states[file.index] = FileState.SKIPPED
                log.info("file_skipped_empty", file=str(file.path))
                continue

            self.file_states[file.index] = FileState.PROCESSING
            log.info("file_started", file=file.label, index=file.index, total=len(self.files))
            text = await self._run_stages(file, text, first_stage)

            file.path.write_text(text, encoding="utf-8")
            self.file_states[file.index] = FileState.DONE
            if self.store is not None:
                self.store.save(CheckpointRecord(current_file_index=file.index + 1))
            log.info("file_done", file=file.label, index=file.index)

        result = PipelineResult(file_states=dict(self.file_states))
        if self.store is not None:
            self.store.clear()
            result.mapping, result.mapping_path = self._write_mapping()
        self.state = DriverState.COMPLETED
        log.info(
            "pipeline_complete",
            processed=result.processed,
            skipped=result.skipped,
            mappings=len(result.mapping),
        )
        return result

    def _starting_point(self) -> tuple[int, int, str | None]:
        """Return (file index, stage index, text snapshot) to start from."""
        if self.store is None:
            return 0, 0, None

        if not self.resume:
            if self.store.exists() or self.store.shard_paths():
                log.info("stale_checkpoint_discarded", path=str(self.store.directory))
            self.store.clear()
            self.store.clear_shards()
            return 0, 0, None

        record = self.store.load()
        if record is None:
            log.info("no_checkpoint_found")
            return 0, 0, None
        if record.has_snapshot:
            log.info(
                "pipeline_resumed",
                file_index=record.current_file_index,
                stage_index=record.stage_index,
            )
            return record.current_file_index, record.stage_index or 0, record.code
        log.info("pipeline_resumed", file_index=record.current_file_index)
        return record.current_file_index, 0, None

    async def _run_stages(self, file: SourceFile, text: str, first_stage: int) -> str:
        for stage_index in range(first_stage, len(self.stages)):
            stage = self.stages[stage_index]
            try:
                text = await stage(text, file)
            except Exception as e:
                self.state = DriverState.FAILED
                self.file_states[file.index] = FileState.FAILED
                self.failure = StageFailure(file, stage_index, stage.name, str(e))
                if self.store is not None and not stage.checkpoints_own_progress:
                    self.store.save(
                        CheckpointRecord(
                            current_file_index=file.index,
                            stage_index=stage_index,
                            code=text,
                        )
                    )
                log.error(
                    "stage_failed",
                    file=str(file.path),
                    stage=stage.name,
                    stage_index=stage_index,
                    error=str(e),
                )
                raise
        return text

    def _write_mapping(self) -> tuple[dict[str, str], Path | None]:
        """Merge shards (over any earlier artifact) and write the artifact."""
        assert self.store is not None
        mapping = merge_shards(self.store.load_all_shards(), base=read_mapping(self.mapping_path))
        if not mapping:
            self.store.clear_shards()
            return mapping, None
        try:
            self.mapping_path.write_text(json.dumps(list(mapping.items()), indent=2), encoding="utf-8")
        except OSError as e:
            log.error("mapping_write_failed", path=str(self.mapping_path), error=str(e))
            return mapping, None
        self.store.clear_shards()
        log.info("mapping_written", path=str(self.mapping_path), entries=len(mapping))
        return mapping, self.mapping_path
