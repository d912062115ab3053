"""User-facing progress feedback for CLI operations.

Design principles:
- Single line updates, no spam
- Graceful degradation in non-TTY (CI, pipes)
- Suppress structlog console output while a bar is live

Usage::

    from deminify.core.progress import RenameProgress, status, task

    status("Resuming from file 3", style="info")

    with RenameProgress("bundle.js") as bar:
        await orchestrator.run(source, on_progress=bar.update)

    with task("Merging rename mappings"):
        merge()
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from types import TracebackType
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Suppress console logging while a live bar is on screen
_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Context manager to suppress structlog console output.

    Logs are still written to file handlers.
    """
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = False


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from deminify.core.logging import get_logger

    return get_logger("progress")


def _is_tty() -> bool:
    """Check if stderr is a TTY."""
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    """Get the shared Rich console instance."""
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False)

    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 file" / "3 files"."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


@contextmanager
def task(name: str) -> Iterator[None]:
    """Context manager for a named task with timing.

    Usage::

        with task("Merging rename mappings"):
            # ... do work ...
        # Prints: ✓ Merging rename mappings (0.1s)
    """
    log = _get_logger()
    log.debug("task_start", task=name)
    status(f"{name}...", style="none", indent=0)
    start = time.perf_counter()

    try:
        yield
        elapsed = time.perf_counter() - start
        status(f"{name} ({elapsed:.1f}s)", style="success")
        log.debug("task_done", task=name, elapsed_s=elapsed)
    except Exception as e:
        elapsed = time.perf_counter() - start
        status(f"{name} failed: {e}", style="error")
        log.error("task_failed", task=name, elapsed_s=elapsed, error=str(e))
        raise


class RenameProgress:
    """Percentage bar fed by the orchestrator's progress callback.

    ``update`` accepts a fraction in [0, 1]. On a TTY a Rich bar is shown
    (structlog console output is paused meanwhile); otherwise each whole
    percent step is logged at DEBUG.
    """

    _RESOLUTION = 1000

    def __init__(self, description: str, *, console: Console | None = None) -> None:
        self._description = description
        self._console = console or _console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._last_percent = -1
        self._suppress: AbstractContextManager[None] | None = None

    def __enter__(self) -> RenameProgress:
        if _is_tty():
            self._suppress = suppress_console_logs()
            self._suppress.__enter__()
            self._progress = Progress(
                TextColumn("    {task.description}:"),
                BarColumn(bar_width=30, style="cyan", complete_style="cyan"),
                TaskProgressColumn(),
                console=self._console,
                transient=True,
            )
            self._progress.__enter__()
            self._task_id = self._progress.add_task(self._description, total=self._RESOLUTION)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc, tb)
            self._progress = None
        if self._suppress is not None:
            self._suppress.__exit__(exc_type, exc, tb)
            self._suppress = None

    def update(self, fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=round(fraction * self._RESOLUTION))
            return
        percent = int(fraction * 100)
        if percent != self._last_percent:
            self._last_percent = percent
            _get_logger().debug("rename_progress", file=self._description, percent=percent)
