"""
Query Engine

Read-only queries over a DocumentIndex: go-to-definition, hover,
completion and semantic highlighting spans.
"""

import re

from kinx_lsp.indexing.domain.builtins import BUILTIN_TYPE_NAMES, KEYWORDS, PREDEFINED_MEMBERS
from kinx_lsp.indexing.domain.models import (
    CompletionCandidate,
    CompletionKind,
    DefinitionEntry,
    DocumentIndex,
    HoverResult,
    Location,
    Position,
    ReferenceEntry,
    SemanticSpan,
    SemanticTag,
    SymbolKind,
)

MEMBER_TRIGGER = "."
TYPE_TRIGGER = ":"

_TRAILING_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*$")

_COMPLETION_KINDS: dict[SymbolKind, CompletionKind] = {
    SymbolKind.VARIABLE: CompletionKind.VARIABLE,
    SymbolKind.CLASS: CompletionKind.CLASS,
    SymbolKind.FUNCTION: CompletionKind.FUNCTION,
    SymbolKind.CONST: CompletionKind.CONSTANT,
    SymbolKind.KEYNAME: CompletionKind.PROPERTY,
}


def format_signature(entry: DefinitionEntry | ReferenceEntry) -> str:
    """
    Examples:
        var x: Int
        const K: Int
        function f(Int, Str): Int
        function A#m(Int): Str
        class B(Int) : A
        key k
    """
    args = ", ".join(entry.arg_types)
    if entry.kind is SymbolKind.CLASS:
        text = f"class {entry.name}({args})"
        return f"{text} : {entry.type_name}" if entry.type_name else text
    if entry.kind is SymbolKind.KEYNAME:
        return f"key {entry.name}"
    if entry.callable or entry.kind is SymbolKind.FUNCTION:
        name = f"{entry.owner}#{entry.name}" if entry.owner else entry.name
        text = f"function {name}({args})"
        return f"{text}: {entry.return_type}" if entry.return_type else text
    keyword = "const" if entry.kind is SymbolKind.CONST else "var"
    return f"{keyword} {entry.name}: {entry.type_name}" if entry.type_name else f"{keyword} {entry.name}"


def _dedupe(candidates: list[CompletionCandidate]) -> list[CompletionCandidate]:
    seen: set[str] = set()
    unique: list[CompletionCandidate] = []
    for candidate in candidates:
        if candidate.label in seen:
            continue
        seen.add(candidate.label)
        unique.append(candidate)
    return unique


class QueryEngine:
    """Stateless; every method takes the index it should answer from."""

    def reference_at(self, index: DocumentIndex, position: Position) -> ReferenceEntry | None:
        for reference in index.references:
            if reference.location.range.contains(position):
                return reference
        return None

    def definition_at(self, index: DocumentIndex, position: Position) -> DefinitionEntry | None:
        for entry in index.definitions:
            if entry.location is not None and entry.location.range.contains(position):
                return entry
        return None

    # ------------------------------------------------------------------
    # Definition / hover
    # ------------------------------------------------------------------

    def definition(self, index: DocumentIndex, position: Position) -> Location | None:
        reference = self.reference_at(index, position)
        return reference.definition if reference is not None else None

    def hover(self, index: DocumentIndex, position: Position) -> HoverResult | None:
        reference = self.reference_at(index, position)
        if reference is not None:
            source: DefinitionEntry | ReferenceEntry = reference
            if reference.callable:
                richer = self._richer_definition(index, reference)
                if richer is not None:
                    source = richer
            return HoverResult(contents=format_signature(source), range=reference.location.range)

        entry = self.definition_at(index, position)
        if entry is not None:
            return HoverResult(contents=format_signature(entry), range=entry.location.range)
        return None

    def _richer_definition(self, index: DocumentIndex, reference: ReferenceEntry) -> DefinitionEntry | None:
        best: DefinitionEntry | None = None
        for entry in index.definitions_named(reference.name):
            if not entry.callable or (reference.owner is not None and entry.owner != reference.owner):
                continue
            if len(entry.arg_types) <= len(reference.arg_types):
                continue
            if best is None or len(entry.arg_types) > len(best.arg_types):
                best = entry
        return best

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete(self, index: DocumentIndex, line_text: str, position: Position) -> list[CompletionCandidate]:
        """Branches on the character right before the cursor: `.`, `:` or anything else."""
        prefix = line_text[: position.character]
        trigger = prefix[-1:]

        if trigger == MEMBER_TRIGGER:
            owner = _TRAILING_IDENTIFIER.search(prefix[:-1])
            if owner is None:
                return []
            return self.member_candidates(index, owner.group(0), position.line)
        if trigger == TYPE_TRIGGER:
            return [CompletionCandidate(name, CompletionKind.TYPE) for name in BUILTIN_TYPE_NAMES]

        token_match = _TRAILING_IDENTIFIER.search(prefix)
        token = token_match.group(0) if token_match else ""
        candidates = [CompletionCandidate(keyword, CompletionKind.KEYWORD) for keyword in KEYWORDS]
        for name, kind in index.symbol_list.items():
            if name != token:
                candidates.append(CompletionCandidate(name, _COMPLETION_KINDS[kind]))
        return _dedupe(candidates)

    def member_candidates(self, index: DocumentIndex, identifier: str, line: int) -> list[CompletionCandidate]:
        candidates: list[CompletionCandidate] = []
        for type_name in self.resolve_types(index, identifier, line):
            for name, entry in index.collect_methods(type_name).items():
                candidates.append(CompletionCandidate(name, CompletionKind.METHOD, format_signature(entry)))
            for owner in index.class_lineage(type_name):
                for name in PREDEFINED_MEMBERS.get(owner, ()):
                    candidates.append(CompletionCandidate(name, CompletionKind.METHOD, owner))
        return _dedupe(candidates)

    def resolve_types(self, index: DocumentIndex, identifier: str, line: int) -> list[str]:
        """
        Types an identifier may have, in priority order:
        built-in type name, known class, nearest prior definition, `#vartype` candidates.
        """
        if identifier in BUILTIN_TYPE_NAMES:
            return [identifier]
        if identifier in index.method_tables or identifier in index.inheritance_graph:
            return [identifier]

        types: list[str] = []
        prior = [entry for entry in index.definitions_named(identifier) if entry.line <= line]
        if prior:
            nearest = max(prior, key=lambda entry: entry.line)
            if nearest.kind is SymbolKind.CLASS:
                types.append(nearest.name)
            elif nearest.type_name:
                types.append(nearest.type_name)
        for candidate in index.variable_type_candidates.get(identifier, []):
            if candidate not in types:
                types.append(candidate)
        return types

    # ------------------------------------------------------------------
    # Semantic highlighting
    # ------------------------------------------------------------------

    def semantic_spans(self, index: DocumentIndex) -> list[SemanticSpan]:
        spans: list[SemanticSpan] = []
        for counter in index.usage_counts.values():
            location = counter.definition.location
            if location is None or location.range.is_empty():
                continue
            start = location.range.start
            spans.append(
                SemanticSpan(
                    line=start.line,
                    start=start.character,
                    length=location.range.end.character - start.character,
                    tag=SemanticTag.UNUSED if counter.count == 0 else SemanticTag.USED,
                )
            )
        return sorted(spans)
