"""Tests for CheckpointStore persistence."""

import json
from pathlib import Path

import pytest

from deminify.checkpoint.models import CheckpointRecord, PartialResultShard
from deminify.checkpoint.store import CheckpointStore
from deminify.core.errors import CheckpointError


class TestProgressRecord:
    """save/load/exists/clear."""

    def test_given_empty_dir_when_load_then_none(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        assert store.load() is None
        assert store.exists() is False

    def test_given_saved_record_when_load_then_equal(self, tmp_path: Path) -> None:
        # Given
        store = CheckpointStore(tmp_path)
        record = CheckpointRecord(
            processed_identifiers=["a"],
            renames=[("a", "addend1")],
            current_file_index=0,
            current_identifier_index=1,
        )

        # When
        store.save(record)
        loaded = store.load()

        # Then
        assert loaded == record
        assert store.exists() is True
        assert store.checkpoint_path == tmp_path / ".checkpoints" / "checkpoint.json"

    def test_given_saved_record_when_read_raw_then_camel_case_without_code(
        self, tmp_path: Path
    ) -> None:
        store = CheckpointStore(tmp_path)
        store.save(CheckpointRecord(processed_identifiers=["a"], renames=[("a", "b")]))
        raw = json.loads(store.checkpoint_path.read_text())
        assert set(raw) == {
            "processedIdentifiers",
            "renames",
            "currentFileIndex",
            "currentIdentifierIndex",
            "timestamp",
        }
        assert raw["renames"] == [["a", "b"]]

    def test_given_second_save_when_load_then_last_write_wins(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.save(CheckpointRecord(current_identifier_index=1))
        store.save(CheckpointRecord(current_identifier_index=2))
        loaded = store.load()
        assert loaded is not None
        assert loaded.current_identifier_index == 2
        assert not list(store.directory.glob("*.tmp"))

    def test_given_corrupt_record_when_load_then_none(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.directory.mkdir(parents=True)
        store.checkpoint_path.write_text("{not json")
        assert store.load() is None

    def test_given_record_when_clear_then_gone_and_shards_kept(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.save(CheckpointRecord())
        store.save_shard("a", {"originalName": "a", "newName": "b"})
        store.clear()
        assert store.exists() is False
        assert len(store.shard_paths()) == 1

    def test_given_nothing_saved_when_clear_then_no_error(self, tmp_path: Path) -> None:
        CheckpointStore(tmp_path).clear()

    def test_given_unwritable_dir_when_save_then_logged_not_raised(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = CheckpointStore(blocker)
        store.save(CheckpointRecord())
        assert store.load() is None

    def test_given_snapshot_record_when_loaded_then_has_snapshot(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.save(CheckpointRecord(current_file_index=2, stage_index=1, code="var a;"))
        loaded = store.load()
        assert loaded is not None
        assert loaded.has_snapshot is True
        assert loaded.code == "var a;"


class TestShards:
    """save_shard/load_all_shards/clear_shards."""

    def test_given_no_shard_dir_when_load_all_then_empty(self, tmp_path: Path) -> None:
        assert CheckpointStore(tmp_path).load_all_shards() == []

    def test_given_shards_when_load_all_then_creation_order(self, tmp_path: Path) -> None:
        # Given
        store = CheckpointStore(tmp_path)
        names = ["zeta", "alpha", "mid"]

        # When
        for name in names:
            store.save_shard(name, PartialResultShard(original_name=name, new_name="x").to_dict())

        # Then
        assert [s["originalName"] for s in store.load_all_shards()] == names

    def test_given_same_label_when_saved_twice_then_distinct_files(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        first = store.save_shard("a", {"originalName": "a", "newName": "b"})
        second = store.save_shard("a", {"originalName": "a", "newName": "c"})
        assert first is not None and second is not None
        assert first != second
        assert len(store.shard_paths()) == 2

    def test_given_unsafe_label_when_saved_then_file_name_sanitized(self, tmp_path: Path) -> None:
        path = CheckpointStore(tmp_path).save_shard("../we ird/name", {"x": 1})
        assert path is not None
        assert path.parent == tmp_path / ".checkpoints"
        assert "/" not in path.name[len("partial_") :]

    def test_given_corrupt_shard_when_lenient_then_empty(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.save_shard("a", {"originalName": "a", "newName": "b"})
        (store.directory / "partial_99999999999999999999_bad.json").write_text("{oops")
        assert store.load_all_shards() == []

    def test_given_non_object_shard_when_lenient_then_empty(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.directory.mkdir(parents=True)
        (store.directory / "partial_00000000000000000001_list.json").write_text("[1, 2]")
        assert store.load_all_shards() == []

    def test_given_corrupt_shard_when_strict_then_raises(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path, strict_shards=True)
        store.directory.mkdir(parents=True)
        (store.directory / "partial_00000000000000000001_bad.json").write_text("{oops")
        with pytest.raises(CheckpointError):
            store.load_all_shards()

    def test_given_shards_when_cleared_then_count_returned(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path)
        store.save(CheckpointRecord())
        for name in "abc":
            store.save_shard(name, {"originalName": name, "newName": name.upper()})
        assert store.clear_shards() == 3
        assert store.shard_paths() == []
        assert store.exists() is True

    def test_given_custom_directory_when_saved_then_used(self, tmp_path: Path) -> None:
        store = CheckpointStore(tmp_path, directory_name="state")
        store.save_shard("a", {})
        assert store.shard_paths()[0].parent == tmp_path / "state"


class TestModels:
    """Record shapes."""

    def test_given_camel_case_json_when_validated_then_fields_populated(self) -> None:
        record = CheckpointRecord.model_validate(
            {
                "processedIdentifiers": ["a"],
                "renames": [["a", "addend1"]],
                "currentFileIndex": 0,
                "currentIdentifierIndex": 1,
                "timestamp": 1700000000000,
            }
        )
        assert record.rename_map == {"a": "addend1"}
        assert record.has_snapshot is False

    def test_given_shard_with_extras_when_dumped_then_extras_kept(self) -> None:
        shard = PartialResultShard(original_name="a", new_name="a", file="x.js", fileIndex=0)
        data = shard.to_dict()
        assert data["originalName"] == "a"
        assert data["file"] == "x.js"
        assert data["fileIndex"] == 0
        assert shard.is_noop is True
