"""Logging setup for deminify runs.

structlog events are rendered by stdlib handlers, one per configured output,
so a run can log INFO to the terminal and DEBUG (every oracle prompt) to a
file. Terminal handlers go quiet while a RenameProgress bar is on screen.

Every event of a CLI invocation carries the same ``run_id``, bound through
structlog's context variables by ``bind_run_id``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from deminify.config.models import LoggingConfig, LogOutputConfig

# First file output of the current configuration
_log_file: Path | None = None

# Libraries that log one line per HTTP request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def bind_run_id(run_id: str | None = None) -> str:
    """Attach ``run_id`` (generated when omitted) to all later events."""
    run_id = run_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(run_id=run_id)
    return run_id


def get_log_file_path() -> Path | None:
    """Where detailed logs are going, for pointing users at them after a failure."""
    return _log_file


class ConsoleSuppressingFilter(logging.Filter):
    """Drops terminal records while a live progress bar owns the screen."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from deminify.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]


def _build_handler(output: LogOutputConfig) -> tuple[logging.Handler, bool]:
    """Return the handler for one output and whether it writes to a terminal stream."""
    if output.destination in ("stderr", "stdout"):
        stream = sys.stderr if output.destination == "stderr" else sys.stdout
        handler: logging.Handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
        return handler, True
    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8"), False


def configure_logging(*, config: LoggingConfig | None = None, level: str = "INFO") -> None:
    """Install handlers for ``config`` (a single stderr console output at ``level`` if None).

    Safe to call repeatedly; each call replaces the previous handlers.
    """
    global _log_file
    from deminify.config.models import LoggingConfig

    if config is None:
        config = LoggingConfig(level=level)  # type: ignore[arg-type]
    root_level = logging.getLevelName(config.level)

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Loggers are module globals; caching would pin the first level seen
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    root.setLevel(root_level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _log_file = None
    for output in config.outputs:
        handler, is_terminal = _build_handler(output)
        if not is_terminal and _log_file is None:
            _log_file = Path(output.destination)

        if output.format == "json":
            renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(
                colors=is_terminal and sys.stderr.isatty(),
                pad_event_to=0,
                pad_level=False,
            )
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_pre_chain())
        )
        handler.setLevel(output.level or config.level)
        root.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger tagged with a component name, for code outside a module-level ``log``."""
    return structlog.get_logger().bind(logger=name)  # type: ignore[no-any-return]
