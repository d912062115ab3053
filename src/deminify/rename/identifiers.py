"""Identifier syntax helpers.

``sanitize_identifier`` turns free-form oracle output ("user id",
"3dPoint", "class") into a syntactically valid JavaScript identifier.
"""

import re

KEYWORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "continue",
        "debugger",
        "default",
        "do",
        "else",
        "finally",
        "for",
        "function",
        "if",
        "return",
        "switch",
        "throw",
        "try",
        "var",
        "const",
        "while",
        "with",
        "new",
        "this",
        "super",
        "class",
        "extends",
        "export",
        "import",
        "null",
        "true",
        "false",
        "in",
        "instanceof",
        "typeof",
        "void",
        "delete",
    }
)

STRICT_RESERVED_WORDS = frozenset(
    {
        "enum",
        "await",
        "implements",
        "interface",
        "let",
        "package",
        "private",
        "protected",
        "public",
        "static",
        "yield",
    }
)

_LEADING_INVALID = re.compile(r"^[-0-9]+")
_SEPARATOR_RUN = re.compile(r"[-\s]+(.)?")


def _is_identifier_start(ch: str) -> bool:
    return ch == "$" or ch == "_" or ch.isidentifier()


def _is_identifier_char(ch: str) -> bool:
    return ch in ("$", "\u200c", "\u200d") or ("_" + ch).isidentifier()


def is_valid_identifier(name: str) -> bool:
    """Whether ``name`` can be used as a binding name in strict module code."""
    if not name or name in KEYWORDS or name in STRICT_RESERVED_WORDS:
        return False
    if not _is_identifier_start(name[0]):
        return False
    return all(_is_identifier_char(ch) for ch in name[1:])


def sanitize_identifier(proposal: str) -> str:
    """Coerce ``proposal`` into a valid identifier.

    Invalid characters become word breaks, leading digits and dashes are
    dropped, words are joined in camelCase, and anything still invalid
    (a reserved word, say) gets a leading underscore.
    """
    name = "".join(ch if _is_identifier_char(ch) else "-" for ch in proposal)
    name = _LEADING_INVALID.sub("", name)
    name = _SEPARATOR_RUN.sub(lambda m: m.group(1).upper() if m.group(1) else "", name)
    if not is_valid_identifier(name):
        name = f"_{name}"
    return name or "_"
