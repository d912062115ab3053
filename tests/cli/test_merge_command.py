"""Tests for deminify merge command."""

import json
from pathlib import Path

from click.testing import CliRunner

from deminify.checkpoint.store import CheckpointStore
from deminify.cli.main import cli

runner = CliRunner()


class TestMergeCommand:
    """deminify merge behavior."""

    def test_given_shards_when_merge_then_mapping_written(self, output_dir: Path) -> None:
        # Given
        store = CheckpointStore(output_dir)
        store.save_shard("x", {"originalName": "x", "newName": "count"})
        store.save_shard("z", {"originalName": "z", "newName": "first"})
        store.save_shard("z", {"originalName": "z", "newName": "second"})

        # When
        result = runner.invoke(cli, ["merge", str(output_dir)])

        # Then
        assert result.exit_code == 0
        mapping = json.loads((output_dir / "rename-mappings.json").read_text())
        assert dict(mapping) == {"x": "count", "z": "second"}
        assert len(store.shard_paths()) == 3

    def test_given_clear_flag_when_merge_then_shards_removed(self, output_dir: Path) -> None:
        store = CheckpointStore(output_dir)
        store.save_shard("x", {"originalName": "x", "newName": "count"})
        result = runner.invoke(cli, ["merge", str(output_dir), "--clear"])
        assert result.exit_code == 0
        assert store.shard_paths() == []

    def test_given_no_shards_when_merge_then_nothing_written(self, output_dir: Path) -> None:
        result = runner.invoke(cli, ["merge", str(output_dir)])
        assert result.exit_code == 0
        assert "Nothing to merge" in result.output
        assert not (output_dir / "rename-mappings.json").exists()

    def test_given_corrupt_shard_when_strict_merge_then_fails(self, output_dir: Path) -> None:
        store = CheckpointStore(output_dir)
        store.directory.mkdir(parents=True)
        (store.directory / "partial_00000000000000000001_bad.json").write_text("{oops")
        result = runner.invoke(cli, ["merge", str(output_dir), "--strict"])
        assert result.exit_code == 1
        assert "CHECKPOINT_CORRUPT_SHARD" in result.output
