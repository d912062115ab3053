"""Fold partial result shards into one consolidated rename mapping."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

log = structlog.get_logger(__name__)


def _shard_pairs(shard: Mapping[str, Any]) -> Iterable[tuple[str, str]]:
    """Yield the (original, new) pairs a shard records.

    Accepts single-decision shards (``originalName``/``newName``) and
    batch shards (``renames: [[original, new], ...]``).
    """
    original = shard.get("originalName")
    new = shard.get("newName")
    if isinstance(original, str) and isinstance(new, str):
        yield original, new
    batch = shard.get("renames")
    if isinstance(batch, list):
        for pair in batch:
            if (
                isinstance(pair, (list, tuple))
                and len(pair) == 2
                and all(isinstance(p, str) for p in pair)
            ):
                yield pair[0], pair[1]


def merge_shards(
    shards: Iterable[Mapping[str, Any]],
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge shards in order; a later shard wins on a repeated original name.

    ``base`` (a previously written mapping) is folded in first, so every
    shard overrides it. Decisions that kept the original name contribute
    nothing.
    """
    merged: dict[str, str] = dict(base or {})
    skipped = 0
    for shard in shards:
        for original, new in _shard_pairs(shard):
            if original == new:
                skipped += 1
                continue
            merged[original] = new
    log.debug("shards_merged", entries=len(merged), noop_skipped=skipped)
    return merged
