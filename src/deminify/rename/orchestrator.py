"""Scope-ordered, checkpointed identifier renaming for one source file.

The orchestrator visits every binding of a program in a fixed order
(largest owning scope first), asks the oracle for a better name, and
applies collision-free renames by rewriting occurrence spans and
reindexing the new text.

Durability:

- a shard is written after every decision (rename or keep),
- a full checkpoint is written every ``save_interval`` processed bindings,
- a checkpoint is written before any error propagates.

A rerun with the same checkpoint store picks up where the last run
stopped: recorded renames are re-applied to the freshly parsed text and
already-processed names are never sent to the oracle again.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from deminify.checkpoint.models import CheckpointRecord, PartialResultShard
from deminify.checkpoint.store import CheckpointStore
from deminify.config.constants import DEFAULT_CONTEXT_WINDOW_SIZE, REMOTE_SAVE_INTERVAL
from deminify.core.errors import SourceError
from deminify.parsing.scopes import Binding, BindingIndex, ScopeIndexer
from deminify.rename.context import surrounding_context
from deminify.rename.identifiers import sanitize_identifier

log = structlog.get_logger(__name__)

Oracle = Callable[[str, str], Awaitable[str]]
ProgressCallback = Callable[[float], None]


class RenameOrchestrator:
    """Drives one program's bindings through the oracle.

    Usage::

        orchestrator = RenameOrchestrator(renamer, store=store, save_interval=5)
        new_source = await orchestrator.run(source, file_index=0, label="main.js")
        orchestrator.renames  # {"a": "addend1", ...}
    """

    def __init__(
        self,
        oracle: Oracle,
        *,
        store: CheckpointStore | None = None,
        context_window: int = DEFAULT_CONTEXT_WINDOW_SIZE,
        save_interval: int = REMOTE_SAVE_INTERVAL,
        on_progress: ProgressCallback | None = None,
        indexer: ScopeIndexer | None = None,
    ) -> None:
        self._oracle = oracle
        self._store = store
        self._window = context_window
        self._save_interval = save_interval
        self._on_progress = on_progress
        self._indexer = indexer or ScopeIndexer()
        self.renames: dict[str, str] = {}
        self.processed: list[str] = []

    async def run(self, source: str, *, file_index: int = 0, label: str = "source") -> str:
        """Rename every binding in ``source`` and return the new text.

        Raises:
            SourceError: The source (or a renamed version of it) does not parse.
            OracleError: The oracle failed; a checkpoint has been saved.
        """
        index = self._indexer.index(source, label=label)
        order = [b.site_index for b in index.visitation_order()]
        original_names = {b.site_index: b.name for b in index.bindings}
        total = len(order)

        # Insertion-ordered so checkpoints list names in visit order
        processed: dict[str, None] = {}
        renames: dict[str, str] = {}
        start = 0

        record = self._load_record(file_index)
        if record is not None:
            processed = dict.fromkeys(record.processed_identifiers)
            renames = record.rename_map
            start = min(record.current_identifier_index, total)
            # A record left by the previous file carries no progress for this one
            if processed or start:
                log.info(
                    "rename_resumed",
                    file=label,
                    identifier_index=start,
                    processed=len(processed),
                    renames=len(renames),
                )
            source, index = self._reapply(source, index, order, original_names, renames, label)

        self.renames = renames
        self.processed = list(processed)
        targets = set(renames.values())
        handled = 0
        position = start

        try:
            for position in range(start, total):
                site = order[position]
                original = original_names[site]
                if original in processed:
                    continue

                binding = index.binding(site)
                context = surrounding_context(binding, self._window)
                proposal = await self._oracle(original, context)

                final = self._resolve(index, binding, proposal, targets)
                if final != binding.name:
                    source = index.rename(binding, final)
                    index = self._reindex(source, label, binding.name, final)
                    targets.add(final)
                    renames[original] = final
                    log.debug("identifier_renamed", name=original, new_name=final)

                self._write_shard(label, file_index, position, original, final)

                processed[original] = None
                self.processed.append(original)
                handled += 1
                if self._on_progress is not None:
                    self._on_progress((position + 1) / total)

                if handled % self._save_interval == 0:
                    self._save(processed, renames, file_index, position + 1)
        except Exception as e:
            log.warning(
                "rename_interrupted",
                file=label,
                identifier_index=position,
                error=str(e),
            )
            self._save(processed, renames, file_index, position)
            raise

        if self._on_progress is not None:
            self._on_progress(1.0)
        if self._store is not None:
            self._store.clear()
        log.info("rename_complete", file=label, bindings=total, renamed=len(renames))
        return source

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _load_record(self, file_index: int) -> CheckpointRecord | None:
        if self._store is None:
            return None
        record = self._store.load()
        if record is None or record.current_file_index != file_index:
            return None
        return record

    def _reindex(self, source: str, label: str, name: str, new_name: str) -> BindingIndex:
        try:
            return self._indexer.index(source, label=label)
        except SourceError as e:
            raise SourceError.regenerate_failed(name, new_name) from e

    def _reapply(
        self,
        source: str,
        index: BindingIndex,
        order: list[int],
        original_names: dict[int, str],
        renames: dict[str, str],
        label: str,
    ) -> tuple[str, BindingIndex]:
        """Replay recorded renames onto freshly parsed text.

        Each entry targets the first binding in visitation order that was
        originally called ``name`` and still is. Entries with no such binding
        are skipped.
        """
        for name, new_name in renames.items():
            binding = next(
                (
                    index.binding(site)
                    for site in order
                    if original_names[site] == name and index.binding(site).name == name
                ),
                None,
            )
            if binding is None:
                log.debug("rename_reapply_skipped", name=name, new_name=new_name)
                continue
            source = index.rename(binding, new_name)
            index = self._reindex(source, label, name, new_name)
        return source, index

    def _resolve(
        self,
        index: BindingIndex,
        binding: Binding,
        proposal: str,
        targets: set[str],
    ) -> str:
        """Turn an oracle proposal into a collision-free identifier.

        Returns the binding's current name when the proposal amounts to
        keeping it.
        """
        if proposal == binding.name:
            return binding.name
        candidate = sanitize_identifier(proposal)
        if binding.symbol.jsx_component:
            # A lowercase tag would turn the component into an intrinsic element
            candidate = candidate[:1].upper() + candidate[1:]
        if candidate == binding.name:
            return binding.name
        while candidate in targets or index.is_name_taken(binding, candidate):
            candidate = f"_{candidate}"
        return candidate

    def _write_shard(
        self,
        label: str,
        file_index: int,
        position: int,
        original: str,
        new_name: str,
    ) -> None:
        if self._store is None:
            return
        shard = PartialResultShard(
            original_name=original,
            new_name=new_name,
            file=label,
            fileIndex=file_index,
            identifierIndex=position,
        )
        self._store.save_shard(original, shard.to_dict())

    def _save(
        self,
        processed: dict[str, None],
        renames: dict[str, str],
        file_index: int,
        identifier_index: int,
    ) -> None:
        if self._store is None:
            return
        self._store.save(
            CheckpointRecord(
                processed_identifiers=list(processed),
                renames=list(renames.items()),
                current_file_index=file_index,
                current_identifier_index=identifier_index,
            )
        )
