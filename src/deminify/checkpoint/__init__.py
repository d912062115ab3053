"""Checkpoint module - resumable progress records and partial result shards."""

from deminify.checkpoint.merge import merge_shards
from deminify.checkpoint.models import CheckpointRecord, PartialResultShard, now_ms
from deminify.checkpoint.store import CheckpointStore

__all__ = [
    "CheckpointRecord",
    "CheckpointStore",
    "PartialResultShard",
    "merge_shards",
    "now_ms",
]
