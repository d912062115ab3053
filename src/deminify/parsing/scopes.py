"""Binding discovery and scope resolution for JavaScript.

Builds an explicit binding/reference index from a fresh parse:

- a tree of lexical scopes (program, function, class, block, catch),
- one symbol per (scope, name) with every occurrence span,
- one ``Binding`` per binding site in document order,
- the set of unresolved (global) names.

Renaming is a text rewrite at every occurrence span of one symbol; the index
is rebuilt from the new text afterwards; nothing here is mutated in place.

Usage::

    index = ScopeIndexer().index(source)
    for binding in index.visitation_order():
        print(binding.name, binding.owner_scope_size)
    new_source = index.rename(binding, "counter")
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from deminify.core.errors import SourceError
from deminify.parsing.javascript import JavaScriptParser, ParsedSource

ScopeKind = Literal["program", "function", "class", "block", "catch"]

# How an occurrence must be rewritten when its symbol is renamed:
#   plain             a          -> new
#   shorthand         {a}        -> {a: new}
#   import_shorthand  import {a} -> import {a as new}
#   export_shorthand  export {a} -> export {new as a}
# Independently of its form, a binding site declared by `export const a` or
# `export function a` loses the `export` keyword and gains `export {new as a}`.
OccurrenceForm = Literal["plain", "shorthand", "import_shorthand", "export_shorthand"]

SCOPE_TYPES: dict[str, ScopeKind] = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_expression": "function",
    "function": "function",
    "generator_function": "function",
    "arrow_function": "function",
    "method_definition": "function",
    "class_static_block": "function",
    "class_declaration": "class",
    "class": "class",
    "statement_block": "block",
    "switch_statement": "block",
    "for_statement": "block",
    "for_in_statement": "block",
    "catch_clause": "catch",
}

_FUNCTION_TYPES = frozenset(t for t, kind in SCOPE_TYPES.items() if kind == "function")

# A statement_block directly under these nodes is their body, not a new scope
_BODY_OWNERS = _FUNCTION_TYPES | {"catch_clause"}

# Function-like nodes whose own name binds inside their own scope
_SELF_NAMED = frozenset({"function_expression", "function", "generator_function", "class"})

# Declarations whose name binds in the enclosing scope
_OUTER_NAMED = frozenset(
    {"function_declaration", "generator_function_declaration", "class_declaration"}
)

_IDENTIFIER_TYPES = frozenset(
    {"identifier", "shorthand_property_identifier", "shorthand_property_identifier_pattern"}
)

_JSX_TAG_PARENTS = frozenset(
    {"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"}
)

# Names that must never become binding targets even when unbound
RESTRICTED_NAMES = frozenset({"arguments", "eval", "undefined", "NaN", "Infinity"})


@dataclass(frozen=True, slots=True)
class ExportedDeclaration:
    """An `export` statement wrapping a declaration.

    ``keyword_start``..``declaration_start`` is the `export ` prefix;
    ``names`` lists every binding the declaration introduces, in order.
    """

    keyword_start: int
    declaration_start: int
    statement_end: int
    names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Occurrence:
    """One place a symbol's name appears in the text."""

    start: int
    end: int
    form: OccurrenceForm = "plain"
    exported: ExportedDeclaration | None = None


@dataclass(eq=False)
class Symbol:
    """A name declared in one scope, with all of its occurrences."""

    name: str
    scope: Scope
    occurrences: list[Occurrence] = field(default_factory=list)
    # Referenced as a JSX tag (`<A />`), so the name must keep a leading capital
    jsx_component: bool = False


@dataclass(eq=False)
class Scope:
    """A lexical scope and the symbols it declares."""

    scope_id: int
    kind: ScopeKind
    start: int
    end: int
    parent: Scope | None = None
    children: list[Scope] = field(default_factory=list)
    symbols: dict[str, Symbol] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return self.end - self.start

    def declare(self, name: str) -> Symbol:
        symbol = self.symbols.get(name)
        if symbol is None:
            symbol = Symbol(name=name, scope=self)
            self.symbols[name] = symbol
        return symbol

    def var_scope(self) -> Scope:
        """Nearest scope that ``var`` hoists into."""
        scope = self
        while scope.kind not in ("function", "program") and scope.parent is not None:
            scope = scope.parent
        return scope

    def ancestors(self) -> Iterator[Scope]:
        """This scope, then each enclosing scope up to the program."""
        scope: Scope | None = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def descendants(self) -> Iterator[Scope]:
        """Every scope nested inside this one (excluding itself)."""
        stack = list(self.children)
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(scope.children)

    def lookup(self, name: str) -> Symbol | None:
        for scope in self.ancestors():
            symbol = scope.symbols.get(name)
            if symbol is not None:
                return symbol
        return None


@dataclass(eq=False)
class Binding:
    """A binding site: an identifier that introduces ``name`` into a scope.

    ``site_index`` is the ordinal of this site in document order. Renames
    never add or remove binding sites, so the ordinal identifies the same
    site across reparses of renamed text.
    """

    site_index: int
    name: str
    start: int
    end: int
    symbol: Symbol
    source: str = field(repr=False)

    @property
    def scope(self) -> Scope:
        """The scope that owns this binding."""
        return self.symbol.scope

    @property
    def owner_scope_size(self) -> int:
        return self.scope.size

    @property
    def owner_scope_text(self) -> str:
        return self.source[self.scope.start : self.scope.end]

    @property
    def is_program_scoped(self) -> bool:
        return self.scope.kind == "program"


@dataclass
class BindingIndex:
    """All bindings, scopes, and unresolved names of one parsed text."""

    source: str
    program: Scope
    bindings: list[Binding]
    globals: frozenset[str]

    def visitation_order(self) -> list[Binding]:
        """Bindings by owning-scope size, largest first; ties keep document order."""
        return sorted(self.bindings, key=lambda b: -b.owner_scope_size)

    def binding(self, site_index: int) -> Binding:
        if not 0 <= site_index < len(self.bindings):
            raise SourceError.unknown_binding(site_index)
        return self.bindings[site_index]

    def is_name_taken(self, binding: Binding, name: str) -> bool:
        """Whether ``name`` would clash with, or be captured by, another binding.

        Checks the owning scope, its ancestors (shadowing), its descendants
        (capture of inner references), and names used as globals.
        """
        if name in RESTRICTED_NAMES or name in self.globals:
            return True
        scope = binding.scope
        if any(name in s.symbols for s in scope.ancestors()):
            return True
        return any(name in s.symbols for s in scope.descendants())

    def rename(self, binding: Binding, new_name: str) -> str:
        """Return the source with every occurrence of ``binding`` renamed."""
        old_name = binding.name
        # (start, end, replacement), applied left to right
        edits: list[tuple[int, int, str]] = []
        for occ in set(binding.symbol.occurrences):
            if occ.form == "shorthand":
                replacement = f"{old_name}: {new_name}"
            elif occ.form == "import_shorthand":
                replacement = f"{old_name} as {new_name}"
            elif occ.form == "export_shorthand":
                replacement = f"{new_name} as {old_name}"
            else:
                replacement = new_name
            edits.append((occ.start, occ.end, replacement))
            if occ.exported is not None:
                edits.extend(_unexport(occ.exported, old_name, new_name))

        pieces: list[str] = []
        pos = 0
        for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1])):
            pieces.append(self.source[pos:start])
            pieces.append(replacement)
            pos = end
        pieces.append(self.source[pos:])
        return "".join(pieces)


def _unexport(
    exported: ExportedDeclaration, old_name: str, new_name: str
) -> list[tuple[int, int, str]]:
    """Edits turning `export <decl>` into `<decl>` plus an equivalent export list."""
    specifiers = ", ".join(
        f"{new_name} as {old_name}" if name == old_name else name for name in exported.names
    )
    return [
        (exported.keyword_start, exported.declaration_start, ""),
        (exported.statement_end, exported.statement_end, f"\nexport {{ {specifiers} }};"),
    ]


def _pattern_sites(node: Any) -> Iterator[tuple[Any, OccurrenceForm]]:
    """Yield the binding identifiers introduced by a declaration pattern."""
    kind = node.type
    if kind == "identifier":
        yield node, "plain"
    elif kind == "shorthand_property_identifier_pattern":
        yield node, "shorthand"
    elif kind in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in node.named_children:
            yield from _pattern_sites(child)
    elif kind == "pair_pattern":
        value = node.child_by_field_name("value")
        if value is not None:
            yield from _pattern_sites(value)
    elif kind in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        if left is not None:
            yield from _pattern_sites(left)


def _iter_subtree(node: Any) -> Iterator[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(current.children)


def _key(node: Any) -> tuple[int, int]:
    return node.start_byte, node.end_byte


class _IndexBuilder:
    """Single-use walker producing a BindingIndex from a ParsedSource."""

    def __init__(self, parsed: ParsedSource) -> None:
        self._parsed = parsed
        self._scope_count = 0
        # binding-site identifier -> (declaring scope, occurrence form)
        self._pending: dict[tuple[int, int], tuple[Scope, OccurrenceForm]] = {}
        self._exported: dict[tuple[int, int], ExportedDeclaration] = {}
        self._ignored: set[tuple[int, int]] = set()
        self._reference_forms: dict[tuple[int, int], OccurrenceForm] = {}
        # (name, occurrence, scope, is a JSX tag)
        self._references: list[tuple[str, Occurrence, Scope, bool]] = []
        self._bindings: list[Binding] = []

    def build(self) -> BindingIndex:
        text = self._parsed.text
        program = self._new_scope("program", 0, len(text), None)

        stack: list[tuple[Any, Scope]] = [(self._parsed.root_node, program)]
        while stack:
            node, scope = stack.pop()
            inner = self._enter(node, scope)
            self._declare(node, scope, inner)
            if node.type in _IDENTIFIER_TYPES:
                self._visit_identifier(node, inner)
                continue
            for child in reversed(node.children):
                stack.append((child, inner))

        unresolved: set[str] = set()
        for name, occurrence, scope, is_tag in self._references:
            symbol = scope.lookup(name)
            if symbol is None:
                unresolved.add(name)
            else:
                symbol.occurrences.append(occurrence)
                symbol.jsx_component = symbol.jsx_component or is_tag

        return BindingIndex(
            source=text,
            program=program,
            bindings=self._bindings,
            globals=frozenset(unresolved),
        )

    def _new_scope(self, kind: ScopeKind, start: int, end: int, parent: Scope | None) -> Scope:
        scope = Scope(scope_id=self._scope_count, kind=kind, start=start, end=end, parent=parent)
        self._scope_count += 1
        if parent is not None:
            parent.children.append(scope)
        return scope

    def _enter(self, node: Any, scope: Scope) -> Scope:
        """Open a new scope if ``node`` introduces one."""
        if not node.is_named:
            return scope
        kind = SCOPE_TYPES.get(node.type)
        if kind is None:
            return scope
        parent = node.parent
        if node.type == "statement_block" and parent is not None and parent.type in _BODY_OWNERS:
            return scope
        start, end = self._parsed.span(node)
        return self._new_scope(kind, start, end, scope)

    def _bind(
        self, pattern: Any | None, target: Scope, exported: ExportedDeclaration | None = None
    ) -> None:
        if pattern is None:
            return
        for ident, form in _pattern_sites(pattern):
            self._pending[_key(ident)] = (target, form)
            if exported is not None:
                self._exported[_key(ident)] = exported

    def _export_of(self, node: Any) -> ExportedDeclaration | None:
        """Describe the `export` wrapping declaration ``node``, if any.

        `export default` is skipped: its public name does not depend on the binding.
        """
        statement = node.parent
        if statement is None or statement.type != "export_statement":
            return None
        keyword = None
        for child in statement.children:
            if child.type == "default":
                return None
            if child.type == "export" and keyword is None:
                keyword = child
        if keyword is None:
            return None

        if node.type in _OUTER_NAMED:
            sites = [node.child_by_field_name("name")]
        else:
            sites = [
                ident
                for declarator in node.named_children
                if declarator.type == "variable_declarator"
                for ident, _ in _pattern_sites(declarator.child_by_field_name("name"))
            ]
        return ExportedDeclaration(
            keyword_start=self._parsed.span(keyword)[0],
            declaration_start=self._parsed.span(node)[0],
            statement_end=self._parsed.span(statement)[1],
            names=tuple(self._parsed.node_text(site) for site in sites if site is not None),
        )

    def _declare(self, node: Any, scope: Scope, inner: Scope) -> None:
        """Register the binding sites introduced directly by ``node``."""
        kind = node.type
        if not node.is_named:
            return

        if kind == "variable_declaration" or kind == "lexical_declaration":
            target = scope.var_scope() if kind == "variable_declaration" else scope
            exported = self._export_of(node)
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    self._bind(declarator.child_by_field_name("name"), target, exported)

        elif kind in _FUNCTION_TYPES or kind in ("class_declaration", "class"):
            name = node.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                if kind in _OUTER_NAMED:
                    self._bind(name, scope, self._export_of(node))
                elif kind in _SELF_NAMED:
                    self._bind(name, inner)
            self._bind(node.child_by_field_name("parameter"), inner)
            params = node.child_by_field_name("parameters")
            if params is not None:
                for param in params.named_children:
                    self._bind(param, inner)

        elif kind == "catch_clause":
            self._bind(node.child_by_field_name("parameter"), inner)

        elif kind == "for_in_statement":
            declared = node.child_by_field_name("kind")
            if declared is not None:
                keyword = self._parsed.node_text(declared)
                target = inner.var_scope() if keyword == "var" else inner
                self._bind(node.child_by_field_name("left"), target)

        elif kind == "import_clause":
            for child in node.named_children:
                if child.type == "identifier":
                    self._bind(child, scope)
                elif child.type == "namespace_import":
                    for ident in child.named_children:
                        self._bind(ident, scope)

        elif kind == "import_specifier":
            name = node.child_by_field_name("name")
            alias = node.child_by_field_name("alias")
            if alias is not None:
                self._bind(alias, scope)
                if name is not None:
                    self._ignored.add(_key(name))
            elif name is not None and name.type == "identifier":
                self._pending[_key(name)] = (scope, "import_shorthand")

        elif kind == "export_statement" and node.child_by_field_name("source") is not None:
            # Re-exports name another module's bindings, never local ones
            for child in _iter_subtree(node):
                if child.type == "identifier":
                    self._ignored.add(_key(child))

        elif kind == "export_specifier":
            name = node.child_by_field_name("name")
            alias = node.child_by_field_name("alias")
            if alias is not None:
                self._ignored.add(_key(alias))
            elif name is not None:
                self._reference_forms[_key(name)] = "export_shorthand"

    def _visit_identifier(self, node: Any, scope: Scope) -> None:
        key = _key(node)
        if key in self._ignored:
            return
        name = self._parsed.node_text(node)
        parent = node.parent
        is_tag = parent is not None and parent.type in _JSX_TAG_PARENTS
        # <div> is an intrinsic element, <Div> a component reference
        if is_tag and name[:1].islower():
            return

        start, end = self._parsed.span(node)

        pending = self._pending.pop(key, None)
        if pending is not None and node.type != "shorthand_property_identifier":
            declaring, form = pending
            symbol = declaring.declare(name)
            symbol.occurrences.append(Occurrence(start, end, form, self._exported.get(key)))
            self._bindings.append(
                Binding(
                    site_index=len(self._bindings),
                    name=name,
                    start=start,
                    end=end,
                    symbol=symbol,
                    source=self._parsed.text,
                )
            )
            return

        if node.type == "identifier":
            form = self._reference_forms.get(key, "plain")
        else:
            form = "shorthand"
        self._references.append((name, Occurrence(start, end, form), scope, is_tag))


@dataclass
class ScopeIndexer:
    """Parses source text and builds its BindingIndex.

    Pure: the same text always yields the same bindings in the same order.
    """

    parser: JavaScriptParser = field(default_factory=JavaScriptParser)

    def index(self, source: str, *, label: str | None = None) -> BindingIndex:
        """Index ``source``.

        Raises:
            SourceError: The text does not parse cleanly.
        """
        parsed = self.parser.parse(source)
        if parsed.has_errors:
            raise SourceError.parse_failed(parsed.error_count, label)
        return _IndexBuilder(parsed).build()
