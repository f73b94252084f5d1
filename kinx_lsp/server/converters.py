"""Domain <-> lsprotocol conversions."""

from lsprotocol import types

from kinx_lsp.indexing.domain.models import (
    CompletionCandidate,
    CompletionKind,
    Diagnostic,
    HoverResult,
    Location,
    Position,
    Range,
    SemanticSpan,
    SemanticTag,
)

SEMANTIC_TOKEN_TYPES: list[str] = [SemanticTag.UNUSED.value, SemanticTag.USED.value]
SEMANTIC_TOKENS_LEGEND = types.SemanticTokensLegend(token_types=SEMANTIC_TOKEN_TYPES, token_modifiers=[])

HOVER_LANGUAGE = "kinx"

_COMPLETION_ITEM_KINDS: dict[CompletionKind, types.CompletionItemKind] = {
    CompletionKind.KEYWORD: types.CompletionItemKind.Keyword,
    CompletionKind.TYPE: types.CompletionItemKind.Class,
    CompletionKind.CLASS: types.CompletionItemKind.Class,
    CompletionKind.FUNCTION: types.CompletionItemKind.Function,
    CompletionKind.METHOD: types.CompletionItemKind.Method,
    CompletionKind.VARIABLE: types.CompletionItemKind.Variable,
    CompletionKind.CONSTANT: types.CompletionItemKind.Constant,
    CompletionKind.PROPERTY: types.CompletionItemKind.Property,
}


def from_lsp_position(position: types.Position) -> Position:
    return Position(line=position.line, character=position.character)


def to_lsp_range(value: Range) -> types.Range:
    return types.Range(
        start=types.Position(line=value.start.line, character=value.start.character),
        end=types.Position(line=value.end.line, character=value.end.character),
    )


def to_lsp_location(location: Location) -> types.Location:
    return types.Location(uri=location.uri, range=to_lsp_range(location.range))


def to_lsp_diagnostic(diagnostic: Diagnostic) -> types.Diagnostic:
    return types.Diagnostic(
        range=to_lsp_range(diagnostic.range),
        message=diagnostic.message,
        severity=types.DiagnosticSeverity(int(diagnostic.severity)),
        source=diagnostic.source,
        tags=[types.DiagnosticTag(int(tag)) for tag in diagnostic.tags] or None,
    )


def to_lsp_hover(hover: HoverResult) -> types.Hover:
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=f"```{HOVER_LANGUAGE}\n{hover.contents}\n```",
        ),
        range=to_lsp_range(hover.range) if hover.range is not None else None,
    )


def to_lsp_completion_item(candidate: CompletionCandidate) -> types.CompletionItem:
    return types.CompletionItem(
        label=candidate.label,
        kind=_COMPLETION_ITEM_KINDS[candidate.kind],
        detail=candidate.detail,
    )


def encode_semantic_tokens(spans: list[SemanticSpan]) -> list[int]:
    """
    Relative encoding from the LSP spec: five integers per token
    (deltaLine, deltaStartChar, length, tokenType, tokenModifiers).

    `spans` must be sorted by position.
    """
    data: list[int] = []
    previous_line = 0
    previous_start = 0
    for span in spans:
        delta_line = span.line - previous_line
        delta_start = span.start - previous_start if delta_line == 0 else span.start
        data.extend([delta_line, delta_start, span.length, SEMANTIC_TOKEN_TYPES.index(span.tag.value), 0])
        previous_line, previous_start = span.line, span.start
    return data
