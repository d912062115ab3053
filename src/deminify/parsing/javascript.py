"""Tree-sitter parsing for JavaScript source.

Wraps tree-sitter-javascript and reports offsets as *character* positions
in the original ``str`` (tree-sitter itself works in UTF-8 byte offsets).
Everything above this module (scope indexing, context windows, span
rewriting) speaks characters only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import tree_sitter
import tree_sitter_javascript


@dataclass
class ParsedSource:
    """Result of parsing one source text."""

    text: str
    tree: Any  # Tree-sitter Tree (not serializable)
    root_node: Any  # Tree-sitter Node
    error_count: int
    total_nodes: int
    _byte_to_char: list[int] | None = field(default=None, repr=False)

    def char_offset(self, byte_offset: int) -> int:
        """Convert a tree-sitter byte offset to an index into ``text``."""
        if self._byte_to_char is None:
            return byte_offset
        return self._byte_to_char[byte_offset]

    def span(self, node: Any) -> tuple[int, int]:
        """Character span of a node."""
        return self.char_offset(node.start_byte), self.char_offset(node.end_byte)

    def node_text(self, node: Any) -> str:
        start, end = self.span(node)
        return self.text[start:end]

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


def _byte_to_char_map(text: str, encoded: bytes) -> list[int] | None:
    """Build a byte -> char offset table, or None when the text is ASCII."""
    if len(encoded) == len(text):
        return None
    mapping = [0] * (len(encoded) + 1)
    pos = 0
    for index, ch in enumerate(text):
        width = len(ch.encode("utf-8"))
        for k in range(width):
            mapping[pos + k] = index
        pos += width
    mapping[pos] = len(text)
    return mapping


@dataclass
class JavaScriptParser:
    """
    Tree-sitter parser for JavaScript (including JSX).

    Usage::

        parser = JavaScriptParser()
        parsed = parser.parse("function f(a, b) { return a + b; }")
        if parsed.has_errors:
            ...
    """

    _parser: Any = field(default=None, repr=False)
    _language: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._language = tree_sitter.Language(tree_sitter_javascript.language())
        self._parser = tree_sitter.Parser()
        self._parser.language = self._language

    def parse(self, text: str) -> ParsedSource:
        """Parse source text. Never raises on syntax errors; check ``has_errors``."""
        encoded = text.encode("utf-8")
        tree = self._parser.parse(encoded)

        error_count = 0
        total_nodes = 0
        # Iterative walk: minified bundles nest deeper than the recursion limit
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
            stack.extend(node.children)

        return ParsedSource(
            text=text,
            tree=tree,
            root_node=tree.root_node,
            error_count=error_count,
            total_nodes=total_nodes,
            _byte_to_char=_byte_to_char_map(text, encoded),
        )
