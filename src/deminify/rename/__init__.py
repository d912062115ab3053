"""Rename module - naming oracles and the checkpointed rename loop.

Public API:
- RenameOrchestrator: visits one program's bindings and applies renames
- Renamer and its variants, selected with build_renamer(config)
- sanitize_identifier / is_valid_identifier: identifier syntax helpers
"""

from deminify.rename.context import surrounding_context
from deminify.rename.identifiers import is_valid_identifier, sanitize_identifier
from deminify.rename.oracles import (
    GeminiRenamer,
    LocalRenamer,
    OpenAIRenamer,
    Renamer,
    build_renamer,
)
from deminify.rename.orchestrator import Oracle, ProgressCallback, RenameOrchestrator

__all__ = [
    "GeminiRenamer",
    "LocalRenamer",
    "OpenAIRenamer",
    "Oracle",
    "ProgressCallback",
    "RenameOrchestrator",
    "Renamer",
    "build_renamer",
    "is_valid_identifier",
    "sanitize_identifier",
    "surrounding_context",
]
