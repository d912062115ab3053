"""Tests for merging partial result shards."""

from deminify.checkpoint.merge import merge_shards


def _shard(original: str, new: str) -> dict[str, str]:
    return {"originalName": original, "newName": new}


class TestMergeShards:
    """merge_shards folding rules."""

    def test_given_disjoint_shards_when_merged_then_union(self) -> None:
        merged = merge_shards([_shard("x", "count"), _shard("y", "total")])
        assert merged == {"x": "count", "y": "total"}

    def test_given_repeated_name_when_merged_then_later_wins(self) -> None:
        merged = merge_shards([_shard("z", "first"), _shard("z", "second")])
        assert merged == {"z": "second"}

    def test_given_same_shards_when_merged_twice_then_identical(self) -> None:
        shards = [_shard("x", "count"), _shard("z", "a"), _shard("z", "b")]
        assert merge_shards(shards) == merge_shards(shards)

    def test_given_batch_shard_when_merged_then_pairs_folded(self) -> None:
        merged = merge_shards([{"renames": [["a", "alpha"], ["b", "beta"]]}, _shard("a", "ay")])
        assert merged == {"a": "ay", "b": "beta"}

    def test_given_noop_decision_when_merged_then_skipped(self) -> None:
        merged = merge_shards([_shard("a", "alpha"), _shard("b", "b")])
        assert merged == {"a": "alpha"}

    def test_given_base_mapping_when_merged_then_shards_override(self) -> None:
        merged = merge_shards([_shard("a", "newer")], base={"a": "older", "c": "kept"})
        assert merged == {"a": "newer", "c": "kept"}

    def test_given_malformed_entries_when_merged_then_ignored(self) -> None:
        shards = [{"originalName": 1, "newName": "x"}, {"renames": [["only-one"], "bad"]}, {}]
        assert merge_shards(shards) == {}

    def test_given_no_shards_when_merged_then_empty(self) -> None:
        assert merge_shards([]) == {}
