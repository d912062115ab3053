"""deminify status command - show checkpoint state of an output directory."""

import json
from datetime import datetime
from pathlib import Path

import click

from deminify.checkpoint.store import CheckpointStore
from deminify.config.loader import load_config
from deminify.pipeline.driver import read_mapping


@click.command()
@click.argument(
    "output_dir",
    default="output",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_command(output_dir: Path, as_json: bool) -> None:
    """Show resumable progress saved under OUTPUT_DIR (default: ./output)."""
    config = load_config()
    store = CheckpointStore(output_dir, directory_name=config.checkpoint.directory_name)
    record = store.load()
    shards = store.shard_paths()
    mapping_path = output_dir / config.checkpoint.mapping_filename
    mapping = read_mapping(mapping_path)

    if as_json:
        checkpoint = json.loads(record.to_json()) if record else None
        if checkpoint is not None and "code" in checkpoint:
            # Snapshots can be whole files
            checkpoint["code"] = f"<{len(checkpoint['code'])} chars>"
        click.echo(json.dumps({"checkpoint": checkpoint, "shards": len(shards), "mappings": len(mapping)}))
        return

    if record is None:
        click.echo("Checkpoint: none")
    else:
        saved = datetime.fromtimestamp(record.timestamp / 1000).isoformat(timespec="seconds")
        click.echo(f"Checkpoint: {store.checkpoint_path} (saved {saved})")
        click.echo(f"  File index: {record.current_file_index}")
        click.echo(f"  Identifier index: {record.current_identifier_index}")
        click.echo(f"  Processed identifiers: {len(record.processed_identifiers)}")
        click.echo(f"  Renames: {len(record.renames)}")
        if record.has_snapshot:
            click.echo(f"  Snapshot: stage {record.stage_index}, {len(record.code or '')} chars")
    click.echo(f"Partial results: {len(shards)}")
    if mapping:
        click.echo(f"Mappings: {len(mapping)} in {mapping_path}")
