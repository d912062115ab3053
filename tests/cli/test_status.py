"""Tests for deminify status command."""

import json
from pathlib import Path

from click.testing import CliRunner

from deminify.checkpoint.models import CheckpointRecord
from deminify.checkpoint.store import CheckpointStore
from deminify.cli.main import cli

runner = CliRunner()


class TestStatusCommand:
    """deminify status behavior."""

    def test_given_empty_output_when_status_then_no_checkpoint(self, output_dir: Path) -> None:
        result = runner.invoke(cli, ["status", str(output_dir)])
        assert result.exit_code == 0
        assert "Checkpoint: none" in result.output
        assert "Partial results: 0" in result.output

    def test_given_checkpoint_when_status_then_progress_shown(self, output_dir: Path) -> None:
        # Given
        store = CheckpointStore(output_dir)
        store.save(
            CheckpointRecord(
                processed_identifiers=["a", "b"],
                renames=[("a", "addend1")],
                current_file_index=1,
                current_identifier_index=2,
            )
        )
        store.save_shard("a", {"originalName": "a", "newName": "addend1"})

        # When
        result = runner.invoke(cli, ["status", str(output_dir)])

        # Then
        assert result.exit_code == 0
        assert "File index: 1" in result.output
        assert "Identifier index: 2" in result.output
        assert "Processed identifiers: 2" in result.output
        assert "Renames: 1" in result.output
        assert "Partial results: 1" in result.output

    def test_given_snapshot_when_status_json_then_code_elided(self, output_dir: Path) -> None:
        # Given
        CheckpointStore(output_dir).save(
            CheckpointRecord(current_file_index=0, stage_index=1, code="var x = 1;")
        )
        (output_dir / "rename-mappings.json").write_text(json.dumps([["x", "count"]]))

        # When
        result = runner.invoke(cli, ["status", str(output_dir), "--json"])

        # Then
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["checkpoint"]["stageIndex"] == 1
        assert data["checkpoint"]["code"] == "<10 chars>"
        assert data["shards"] == 0
        assert data["mappings"] == 1
