"""
Unit Tests: lsprotocol converters
"""

from lsprotocol import types

from kinx_lsp.indexing.domain.models import (
    CompletionCandidate,
    CompletionKind,
    Diagnostic,
    DiagnosticSeverity,
    DiagnosticSource,
    DiagnosticTag,
    HoverResult,
    Location,
    Position,
    Range,
    SemanticSpan,
    SemanticTag,
)
from kinx_lsp.server.converters import (
    SEMANTIC_TOKENS_LEGEND,
    encode_semantic_tokens,
    from_lsp_position,
    to_lsp_completion_item,
    to_lsp_diagnostic,
    to_lsp_hover,
    to_lsp_location,
)


class TestSemanticTokens:
    def test_legend_order(self):
        assert SEMANTIC_TOKENS_LEGEND.token_types == ["unused", "used"]

    def test_relative_encoding(self):
        spans = [
            SemanticSpan(line=0, start=17, length=1, tag=SemanticTag.USED),
            SemanticSpan(line=0, start=19, length=1, tag=SemanticTag.USED),
            SemanticSpan(line=2, start=4, length=1, tag=SemanticTag.UNUSED),
        ]

        assert encode_semantic_tokens(spans) == [0, 17, 1, 1, 0, 0, 2, 1, 1, 0, 2, 4, 1, 0, 0]

    def test_empty(self):
        assert encode_semantic_tokens([]) == []


class TestDiagnostics:
    def test_error_without_tags(self):
        diagnostic = Diagnostic(range=Range.on_line(3, 2, 9), message="Symbol(z) is not found.")

        converted = to_lsp_diagnostic(diagnostic)

        assert converted.severity == types.DiagnosticSeverity.Error
        assert converted.source == DiagnosticSource.COMPILE_ERROR
        assert converted.tags is None
        assert converted.range.start == types.Position(line=3, character=2)
        assert converted.range.end == types.Position(line=3, character=9)

    def test_unused_warning_is_tagged(self):
        diagnostic = Diagnostic(
            range=Range.on_line(0, 4, 5),
            message="The variable(x) is defined but not used.",
            severity=DiagnosticSeverity.WARNING,
            source=DiagnosticSource.SEMANTICS_CHECK,
            tags=(DiagnosticTag.UNNECESSARY,),
        )

        converted = to_lsp_diagnostic(diagnostic)

        assert converted.severity == types.DiagnosticSeverity.Warning
        assert converted.tags == [types.DiagnosticTag.Unnecessary]


def test_location():
    location = Location(uri="file:///work/lib.kx", range=Range.on_line(1, 0, 3))

    converted = to_lsp_location(location)

    assert converted.uri == "file:///work/lib.kx"
    assert converted.range.end.character == 3


def test_position_roundtrip_fields():
    assert from_lsp_position(types.Position(line=4, character=7)) == Position(line=4, character=7)


def test_hover_is_fenced_markdown():
    hover = to_lsp_hover(HoverResult(contents="var x: Int", range=Range.on_line(0, 4, 5)))

    assert hover.contents.kind == types.MarkupKind.Markdown
    assert hover.contents.value == "```kinx\nvar x: Int\n```"
    assert hover.range.start.character == 4


def test_hover_without_range():
    assert to_lsp_hover(HoverResult(contents="key k")).range is None


def test_completion_item_kinds():
    method = to_lsp_completion_item(CompletionCandidate("m", CompletionKind.METHOD, "function A#m(Int)"))
    keyword = to_lsp_completion_item(CompletionCandidate("while", CompletionKind.KEYWORD))

    assert method.kind == types.CompletionItemKind.Method
    assert method.detail == "function A#m(Int)"
    assert keyword.kind == types.CompletionItemKind.Keyword
    assert keyword.detail is None
