"""Transformation stages threaded through each source file.

A stage takes the full text of one file and returns new text. Stages run
in a fixed order; the driver owns sequencing and failure checkpoints.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from deminify.checkpoint.store import CheckpointStore
from deminify.core.errors import InternalError
from deminify.core.progress import RenameProgress
from deminify.rename.oracles import Renamer
from deminify.rename.orchestrator import RenameOrchestrator


@dataclass(frozen=True)
class SourceFile:
    """One file moving through the pipeline."""

    index: int
    path: Path

    @property
    def label(self) -> str:
        return self.path.name


class Stage:
    """Base class for pipeline stages."""

    name: ClassVar[str] = "stage"
    checkpoints_own_progress: ClassVar[bool] = False
    """True when the stage saves its own checkpoint before raising."""

    async def __call__(self, source: str, file: SourceFile) -> str:
        raise NotImplementedError


class FunctionStage(Stage):
    """Adapts a plain ``(text) -> text`` callable, sync or async."""

    def __init__(
        self,
        func: Callable[[str], str] | Callable[[str], Awaitable[str]],
        name: str | None = None,
    ) -> None:
        self._func = func
        self.name = name or getattr(func, "__name__", "function")

    async def __call__(self, source: str, file: SourceFile) -> str:  # noqa: ARG002
        result = self._func(source)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, str):
            raise InternalError.unexpected(
                f"stage {self.name!r} returned {type(result).__name__}, expected str",
                stage=self.name,
            )
        return result


class RenameStage(Stage):
    """Runs the checkpointed rename loop with a Renamer as the oracle."""

    name = "rename"
    checkpoints_own_progress = True

    def __init__(
        self,
        renamer: Renamer,
        *,
        store: CheckpointStore | None = None,
        context_window: int,
        save_interval: int | None = None,
        show_progress: bool = True,
    ) -> None:
        self.renamer = renamer
        self.store = store
        self.context_window = context_window
        self.save_interval = save_interval or renamer.save_interval
        self.show_progress = show_progress

    async def __call__(self, source: str, file: SourceFile) -> str:
        await self.renamer.prepare(source)
        if not self.show_progress:
            return await self._run(source, file, None)
        with RenameProgress(f"Renaming {file.label}") as bar:
            return await self._run(source, file, bar.update)

    async def _run(
        self,
        source: str,
        file: SourceFile,
        on_progress: Callable[[float], None] | None,
    ) -> str:
        orchestrator = RenameOrchestrator(
            self.renamer,
            store=self.store,
            context_window=self.context_window,
            save_interval=self.save_interval,
            on_progress=on_progress,
        )
        return await orchestrator.run(source, file_index=file.index, label=file.label)
