"""Tests for tree-sitter JavaScript parsing."""

from deminify.parsing.javascript import JavaScriptParser


class TestJavaScriptParser:
    """JavaScriptParser behavior tests."""

    def test_given_valid_source_when_parse_then_no_errors(self) -> None:
        """Valid code parses without error nodes."""
        # Given
        parser = JavaScriptParser()

        # When
        parsed = parser.parse("function f(a,b){return a+b;}")

        # Then
        assert parsed.has_errors is False
        assert parsed.root_node.type == "program"
        assert parsed.total_nodes > 1

    def test_given_broken_source_when_parse_then_errors_counted(self) -> None:
        """Syntax errors are reported, not raised."""
        parsed = JavaScriptParser().parse("function f(a, { return")
        assert parsed.has_errors is True
        assert parsed.error_count >= 1

    def test_given_jsx_when_parse_then_accepted(self) -> None:
        parsed = JavaScriptParser().parse("const el = <Button onClick={go}>ok</Button>;")
        assert parsed.has_errors is False

    def test_given_ascii_source_when_span_then_byte_offsets_unchanged(self) -> None:
        parsed = JavaScriptParser().parse("let abc = 1;")
        assert parsed.char_offset(4) == 4

    def test_given_multibyte_source_when_span_then_character_offsets(self) -> None:
        """Spans index into the str, not the UTF-8 bytes."""
        # Given
        text = 'const s = "é✓"; let value = s;'
        parsed = JavaScriptParser().parse(text)

        # When
        spans = {}
        stack = [parsed.root_node]
        while stack:
            node = stack.pop()
            if node.type == "identifier":
                spans.setdefault(parsed.node_text(node), parsed.span(node))
            stack.extend(node.children)

        # Then
        start = text.index("value")
        assert spans["value"] == (start, start + len("value"))
        assert len(text.encode("utf-8")) > len(text)
