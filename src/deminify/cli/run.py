"""deminify openai|gemini|local commands - rename identifiers in JavaScript files."""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from deminify.checkpoint.store import CheckpointStore
from deminify.config.loader import load_config
from deminify.config.models import DeminifyConfig
from deminify.core.errors import DeminifyError
from deminify.core.logging import configure_logging, get_log_file_path
from deminify.core.progress import pluralize, status
from deminify.pipeline.driver import PipelineDriver, PipelineResult
from deminify.pipeline.extract import extract_sources
from deminify.pipeline.stages import RenameStage
from deminify.rename.oracles import build_renamer


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def build_config(provider: str, opts: dict[str, Any]) -> DeminifyConfig:
    """Resolve configuration with command-line options taking precedence."""
    overrides: dict[str, Any] = {
        "oracle": _drop_none(
            {
                "provider": provider,
                "model": opts.get("model"),
                "api_key": opts.get("api_key"),
                "base_url": opts.get("base_url"),
                "seed": opts.get("seed"),
            }
        ),
        "rename": _drop_none({"context_window_size": opts.get("context_size")}),
    }
    checkpoint = _drop_none({"strict_shards": opts.get("strict_shards") or None})
    if opts.get("checkpoint") or opts.get("resume"):
        checkpoint["enabled"] = True
    if checkpoint:
        overrides["checkpoint"] = checkpoint
    return load_config(**overrides)


async def run_pipeline(
    config: DeminifyConfig,
    inputs: list[Path],
    output_dir: Path,
    *,
    resume: bool,
) -> PipelineResult:
    """Copy inputs to ``output_dir`` and rename every file in place there."""
    store = None
    if config.checkpoint.enabled:
        store = CheckpointStore(
            output_dir,
            directory_name=config.checkpoint.directory_name,
            strict_shards=config.checkpoint.strict_shards,
        )
    files = extract_sources(inputs, output_dir, overwrite=not resume)

    async with build_renamer(config.oracle) as renamer:
        stage = RenameStage(
            renamer,
            store=store,
            context_window=config.rename.context_window_size,
            save_interval=config.rename.save_interval,
        )
        driver = PipelineDriver(
            files,
            [stage],
            output_dir=output_dir,
            store=store,
            resume=resume,
            mapping_filename=config.checkpoint.mapping_filename,
        )
        try:
            return await driver.run()
        except Exception:
            failure = driver.failure
            if failure is not None:
                status(
                    f"Failed on {failure.file.path} (stage {failure.stage_name}): {failure.error}",
                    style="error",
                )
            if store is not None:
                status("Re-run with --resume to continue from the last checkpoint", style="info")
            else:
                status("Re-run with --checkpoint to make progress resumable", style="info")
            if (log_path := get_log_file_path()) is not None:
                status(f"Details in {log_path}", style="info")
            raise


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.argument(
            "inputs",
            nargs=-1,
            required=True,
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
        ),
        click.option("-m", "--model", help="Model name (provider default if omitted)"),
        click.option(
            "-o",
            "--output-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=Path("output"),
            show_default=True,
            help="Directory receiving the renamed files",
        ),
        click.option(
            "--context-size",
            type=click.IntRange(min=1),
            help="Characters of surrounding code sent per identifier",
        ),
        click.option("--base-url", help="API base URL override"),
        click.option("--checkpoint", is_flag=True, help="Save resumable progress"),
        click.option("--resume", is_flag=True, help="Resume from the last checkpoint"),
        click.option(
            "--strict-shards",
            is_flag=True,
            help="Fail instead of ignoring corrupt partial result files",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _execute(
    ctx: click.Context,
    provider: str,
    inputs: tuple[Path, ...],
    opts: dict[str, Any],
) -> None:
    try:
        config = build_config(provider, opts)
    except DeminifyError as e:
        raise click.ClickException(str(e)) from e

    if (ctx.obj or {}).get("verbose"):
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    output_dir: Path = opts["output_dir"]
    resume: bool = opts["resume"]
    if resume:
        status(f"Resuming in {output_dir}", style="info")

    try:
        result = asyncio.run(run_pipeline(config, list(inputs), output_dir, resume=resume))
    except DeminifyError as e:
        raise click.ClickException(str(e)) from e

    summary = f"Renamed {pluralize(result.processed, 'file')}"
    if result.skipped:
        summary += f" ({result.skipped} empty skipped)"
    status(f"{summary} in {output_dir}", style="success")
    if result.mapping_path is not None:
        status(
            f"{pluralize(len(result.mapping), 'rename')} saved to {result.mapping_path}",
            style="info",
        )


@click.command()
@_common_options
@click.option(
    "-k",
    "--api-key",
    help="OpenAI API key. Alternatively use the OPENAI_API_KEY environment variable",
)
@click.pass_context
def openai_command(ctx: click.Context, inputs: tuple[Path, ...], **opts: Any) -> None:
    """Rename identifiers using the OpenAI API.

    INPUTS are minified JavaScript files.
    """
    _execute(ctx, "openai", inputs, opts)


@click.command()
@_common_options
@click.option(
    "-k",
    "--api-key",
    help="Gemini API key. Alternatively use the GEMINI_API_KEY environment variable",
)
@click.pass_context
def gemini_command(ctx: click.Context, inputs: tuple[Path, ...], **opts: Any) -> None:
    """Rename identifiers using the Google Gemini API.

    INPUTS are minified JavaScript files.
    """
    _execute(ctx, "gemini", inputs, opts)


@click.command()
@_common_options
@click.option("-s", "--seed", type=int, help="Sampling seed for reproducible results")
@click.pass_context
def local_command(ctx: click.Context, inputs: tuple[Path, ...], **opts: Any) -> None:
    """Rename identifiers using a local OpenAI-compatible inference server.

    INPUTS are minified JavaScript files.
    """
    _execute(ctx, "local", inputs, opts)
