"""deminify merge command - fold partial results into the mapping artifact."""

import json
from pathlib import Path

import click

from deminify.checkpoint.merge import merge_shards
from deminify.checkpoint.store import CheckpointStore
from deminify.config.loader import load_config
from deminify.core.errors import DeminifyError
from deminify.core.progress import pluralize, status, task
from deminify.pipeline.driver import read_mapping


@click.command()
@click.argument(
    "output_dir",
    default="output",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--clear", "clear_shards", is_flag=True, help="Delete partial results after merging")
@click.option("--strict", is_flag=True, help="Fail on corrupt partial result files")
def merge_command(output_dir: Path, clear_shards: bool, strict: bool) -> None:
    """Merge partial results under OUTPUT_DIR into the rename mapping file.

    Useful after an interrupted run that will not be resumed. Existing
    mappings are kept; newer partial results override them.
    """
    config = load_config()
    store = CheckpointStore(
        output_dir,
        directory_name=config.checkpoint.directory_name,
        strict_shards=strict or config.checkpoint.strict_shards,
    )
    mapping_path = output_dir / config.checkpoint.mapping_filename

    try:
        with task("Merging partial results"):
            shards = store.load_all_shards()
            mapping = merge_shards(shards, base=read_mapping(mapping_path))
    except DeminifyError as e:
        raise click.ClickException(str(e)) from e

    if not mapping:
        status("Nothing to merge", style="warning")
        return

    mapping_path.write_text(json.dumps(list(mapping.items()), indent=2), encoding="utf-8")
    status(f"{pluralize(len(mapping), 'rename')} saved to {mapping_path}", style="success")
    if clear_shards:
        removed = store.clear_shards()
        status(f"Removed {pluralize(removed, 'partial result')}", style="info")
