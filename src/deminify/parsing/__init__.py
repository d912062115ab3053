"""Parsing module - tree-sitter JavaScript parsing and scope indexing.

This module provides:
- JavaScriptParser: tree-sitter parse with character-offset spans
- ScopeIndexer: binding/reference index rebuilt from each parse
- BindingIndex: visitation order, collision checks, span-rewrite renames
"""

from deminify.parsing.javascript import JavaScriptParser, ParsedSource
from deminify.parsing.scopes import (
    RESTRICTED_NAMES,
    Binding,
    BindingIndex,
    Occurrence,
    Scope,
    ScopeIndexer,
    Symbol,
)

__all__ = [
    "RESTRICTED_NAMES",
    "Binding",
    "BindingIndex",
    "JavaScriptParser",
    "Occurrence",
    "ParsedSource",
    "Scope",
    "ScopeIndexer",
    "Symbol",
]
