"""
Symbol Index Builder

Consumes decoded tag events in report order and populates a DocumentIndex:
definitions, references, usage counters, call sites, function and method
tables, the inheritance graph and `#vartype` type candidates.

State threaded between events:
- scope stack (routes `public` defines into class method tables)
- pending argument slots keyed by scope path (filled by `#arg`, consumed by
  the next `function`/`class` define of the matching name)
- call-site stack (`#call` ... `#callarg` ... `#callend`)
"""

from collections.abc import Callable

from kinx_lsp.common.observability import get_logger
from kinx_lsp.indexing.domain.events import (
    ArgEvent,
    CallArgEvent,
    CallEndEvent,
    CallEvent,
    DefineEvent,
    MethodEvent,
    RefEvent,
    ScopeEvent,
    TagEvent,
    VarTypeEvent,
)
from kinx_lsp.indexing.domain.models import (
    WILDCARD_TYPES,
    CallSite,
    DefinitionEntry,
    Diagnostic,
    DiagnosticSeverity,
    DiagnosticSource,
    DocumentIndex,
    Location,
    Range,
    ReferenceEntry,
    ScopeFrame,
    ScopeKind,
    SourceDocument,
    SymbolKind,
    TypeSpec,
    UsageCounter,
)
from kinx_lsp.indexing.domain.uris import path_to_uri
from kinx_lsp.indexing.infrastructure.position_resolver import PositionResolver
from kinx_lsp.indexing.infrastructure.source_loader import SourceLoader

logger = get_logger(__name__)

CALLABLE_TYPE_NAME = "Function"

# Initial usage count per kind; kinds missing here are never reported unused.
_USAGE_SEEDS: dict[SymbolKind, int] = {
    SymbolKind.VARIABLE: 0,
    SymbolKind.KEYNAME: 0,
    SymbolKind.FUNCTION: 1,
}

ScopePath = tuple[str | None, ...]


def ordinal(n: int) -> str:
    return {1: "1st", 2: "2nd", 3: "3rd"}.get(n, f"{n}th")


def _type_fields(spec: TypeSpec | None) -> tuple[str | None, str | None, bool]:
    """TypeSpec -> (type_name, return_type, callable)."""
    if spec is None:
        return None, None, False
    if spec.callable:
        return CALLABLE_TYPE_NAME, spec.name, True
    return spec.name, None, False


class IndexBuilder:
    """
    Builds one DocumentIndex from one compiler report.

    Usage:
        builder = IndexBuilder(document, resolver, SourceLoader(document.workdir), diagnostics)
        for event in tag_events:
            builder.apply(event)
        index = builder.finish()
    """

    def __init__(
        self,
        document: SourceDocument,
        resolver: PositionResolver,
        source_loader: SourceLoader,
        diagnostics: list[Diagnostic],
    ):
        self.document = document
        self.resolver = resolver
        self.source_loader = source_loader
        self.diagnostics = diagnostics
        self.index = DocumentIndex(uri=document.uri)

        # Picks call anchor columns only; `#ref` occurrences stay unclaimed.
        self._call_anchors = PositionResolver()

        self._scopes: list[ScopeFrame] = []
        self._pending_args: dict[ScopePath, list[str]] = {}
        self._call_stack: list[CallSite] = []

        self._handlers: dict[type, Callable] = {
            DefineEvent: self._on_define,
            RefEvent: self._on_ref,
            CallEvent: self._on_call,
            CallArgEvent: self._on_call_arg,
            CallEndEvent: self._on_call_end,
            VarTypeEvent: self._on_vartype,
            ScopeEvent: self._on_scope,
            MethodEvent: self._on_method,
            ArgEvent: self._on_arg,
        }

    def apply(self, event: TagEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"IndexBuilder cannot handle {type(event).__name__}")
        handler(event)

    def finish(self) -> DocumentIndex:
        if self._call_stack:
            logger.debug("unclosed_call_sites_dropped", count=len(self._call_stack), uri=self.document.uri)
            self._call_stack.clear()
        return self.index

    # ------------------------------------------------------------------
    # Scopes and pending arguments
    # ------------------------------------------------------------------

    def _scope_path(self) -> ScopePath:
        return tuple(frame.name for frame in self._scopes)

    def _on_scope(self, event: ScopeEvent) -> None:
        if event.start:
            self._scopes.append(ScopeFrame(event.kind, event.name))
            self._pending_args[self._scope_path()] = []
            return
        if not self._scopes:
            logger.debug("unbalanced_scope_end", kind=event.kind.value, name=event.name)
            return
        self._scopes.pop()

    def _on_arg(self, event: ArgEvent) -> None:
        slot = self._pending_args.setdefault(self._scope_path(), [])
        while len(slot) < event.index:
            slot.append("Any")
        if event.index < len(slot):
            slot[event.index] = event.type_name
        else:
            slot.append(event.type_name)

    def _take_pending_args(self, name: str) -> list[str]:
        path = self._scope_path()
        # Innermost open scope named after the definition.
        for depth in range(len(path), 0, -1):
            key = path[:depth]
            if key[-1] == name and key in self._pending_args:
                return self._pending_args.pop(key)
        # Scope already closed before its define arrived.
        for key in reversed(list(self._pending_args)):
            if key and key[-1] == name:
                return self._pending_args.pop(key)
        # Anonymous scope (or root) collecting for the next define.
        if (not path or path[-1] is None) and path in self._pending_args:
            return self._pending_args.pop(path)
        return []

    def _owner_class(self, name: str) -> str | None:
        for frame in reversed(self._scopes):
            if frame.kind is ScopeKind.FUNCTION and frame.name == name:
                continue
            if frame.kind is ScopeKind.CLASS:
                return frame.name
            return None
        return None

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _on_define(self, event: DefineEvent) -> None:
        kind = SymbolKind.from_protocol(event.kind)
        if kind is None:
            return
        type_name, return_type, is_callable = _type_fields(event.type_spec)
        entry = DefinitionEntry(
            kind=kind,
            name=event.name,
            line=event.line,
            type_name=type_name,
            return_type=return_type,
            arg_types=self._take_pending_args(event.name) if kind in (SymbolKind.FUNCTION, SymbolKind.CLASS) else [],
            owner=self._owner_class(event.name) if event.kind == "public" else None,
            callable=is_callable or kind is SymbolKind.FUNCTION,
        )

        definitions = self.index.definitions
        replaced: DefinitionEntry | None = None
        slot: int | None = None
        if event.kind == "public" and definitions:
            previous = definitions[-1]
            if previous.name == event.name and previous.kind is SymbolKind.VARIABLE:
                # public methods may be preceded by a throwaway variable entry
                replaced = definitions.pop()
                self.index.usage_counts.pop((previous.name, previous.line), None)
                if self.index.symbol_list.get(previous.name) is SymbolKind.VARIABLE:
                    del self.index.symbol_list[previous.name]
        if replaced is None:
            for position, existing in enumerate(definitions):
                if existing.name == event.name and existing.line == event.line:
                    replaced, slot = existing, position
                    break

        if event.file == self.document.filename:
            entry.location = self._definition_location(event, replaced)
        self._seed_usage(entry, replaced)

        if slot is None:
            definitions.append(entry)
        else:
            definitions[slot] = entry

        if entry.owner is not None:
            self.index.method_tables.setdefault(entry.owner, {})[entry.name] = entry
        else:
            self.index.symbol_list[entry.name] = kind
            if kind in (SymbolKind.FUNCTION, SymbolKind.CLASS):
                self.index.functions[entry.name] = entry
        if kind is SymbolKind.CLASS and type_name:
            self.index.add_superclass(entry.name, type_name)

    def _definition_location(self, event: DefineEvent, replaced: DefinitionEntry | None) -> Location | None:
        if replaced is not None and replaced.location is not None and replaced.line == event.line:
            return replaced.location
        span = self.resolver.find(event.name, self.document.lines, event.line, check_dup=True)
        if span is None:
            logger.debug("definition_not_located", name=event.name, line=event.line)
            return None
        return Location(self.document.uri, Range.on_line(event.line, *span))

    def _seed_usage(self, entry: DefinitionEntry, replaced: DefinitionEntry | None) -> None:
        key = (entry.name, entry.line)
        previous = self.index.usage_counts.pop(key, None)
        seed = _USAGE_SEEDS.get(entry.kind)
        if seed is None or entry.location is None:
            return
        count = max(seed, previous.count) if previous is not None and replaced is not None else seed
        self.index.usage_counts[key] = UsageCounter(definition=entry, count=count)

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _on_ref(self, event: RefEvent) -> None:
        if event.file != self.document.filename:
            return
        span = self.resolver.find(event.name, self.document.lines, event.line, check_dup=True)
        if span is None:
            logger.debug("reference_not_located", name=event.name, line=event.line)
            return

        definition: Location | None = None
        if event.has_definition:
            definition = self._resolve_definition(event.name, event.definition_file, event.definition_line)

        in_document = event.definition_file == self.document.filename
        if definition is not None and in_document:
            counter = self.index.usage_counts.get((event.name, event.definition_line))
            if counter is not None:
                counter.count += 1

        type_name, return_type, is_callable = _type_fields(event.type_spec)
        arg_types: list[str] = []
        if event.type_spec is None and in_document:
            source = self._definition_at(event.name, event.definition_line)
            if source is not None:
                type_name, return_type, is_callable = source.type_name, source.return_type, source.callable
                arg_types = list(source.arg_types)
        if is_callable and not arg_types:
            function = self.index.functions.get(event.name)
            if function is not None:
                arg_types = list(function.arg_types)

        self.index.references.append(
            ReferenceEntry(
                kind=SymbolKind.KEYNAME if event.kind == "key" else SymbolKind.VARIABLE,
                name=event.name,
                location=Location(self.document.uri, Range.on_line(event.line, *span)),
                definition=definition,
                type_name=type_name,
                return_type=return_type,
                callable=is_callable,
                arg_types=arg_types,
            )
        )

    def _resolve_definition(self, name: str, file: str, line: int) -> Location | None:
        """Definition side of a reference; never claims the occurrence."""
        if file == self.document.filename:
            span = self.resolver.find(name, self.document.lines, line, check_dup=False)
            uri = self.document.uri
        else:
            path, lines = self.source_loader.read_lines(file)
            span = self.resolver.find(name, lines, line, check_dup=False)
            uri = path_to_uri(path)
        if span is None:
            return None
        return Location(uri, Range.on_line(line, *span))

    def _definition_at(self, name: str, line: int | None) -> DefinitionEntry | None:
        if line is None:
            return None
        for entry in reversed(self.index.definitions):
            if entry.name == name and entry.line == line:
                return entry
        return None

    def _on_method(self, event: MethodEvent) -> None:
        if event.file != self.document.filename:
            return
        target = self.index.find_method(event.class_name, event.method)
        start, end = event.start_column, event.end_column
        if end <= start:
            end = start + len(event.method)
        self.resolver.claim((event.method, event.line, start))

        definition = target.location if target is not None else None
        if target is not None and definition is not None and definition.uri == self.document.uri:
            counter = self.index.usage_counts.get((target.name, target.line))
            if counter is not None:
                counter.count += 1

        self.index.references.append(
            ReferenceEntry(
                kind=SymbolKind.FUNCTION,
                name=event.method,
                location=Location(self.document.uri, Range.on_line(event.line, start, end)),
                definition=definition,
                type_name=CALLABLE_TYPE_NAME,
                return_type=target.return_type if target is not None else None,
                callable=True,
                arg_types=list(target.arg_types) if target is not None else [],
                owner=target.owner if target is not None else event.class_name,
            )
        )

    def _on_vartype(self, event: VarTypeEvent) -> None:
        self.index.add_type_candidate(event.name, event.type_name)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _on_call(self, event: CallEvent) -> None:
        if event.scope:
            target = self.index.find_method(event.scope, event.name)
        else:
            target = self.index.functions.get(event.name)

        location: Location | None = None
        if event.file == self.document.filename:
            span = self._call_anchors.find(event.name, self.document.lines, event.line, check_dup=True)
            if span is not None:
                location = Location(self.document.uri, Range.on_line(event.line, *span))

        self._call_stack.append(
            CallSite(
                name=event.name,
                scope=event.scope,
                line=event.line,
                location=location,
                declared=list(target.arg_types) if target is not None else [],
            )
        )

    def _on_call_arg(self, event: CallArgEvent) -> None:
        if not self._call_stack:
            logger.debug("call_argument_without_call", index=event.index)
            return
        self._call_stack[-1].actual[event.index] = event.type_name

    def _on_call_end(self, event: CallEndEvent) -> None:
        if not self._call_stack:
            logger.debug("call_end_without_call")
            return
        call = self._call_stack.pop()
        actual = call.actual_types()
        qualified = f"{call.scope}#{call.name}" if call.scope else call.name
        self.index.call_sites.setdefault((qualified, call.line), []).append(actual)

        mismatches = [
            f"Type mismatch at the {ordinal(position)} argument: expected {expected}, but got {got}."
            for position, (expected, got) in enumerate(zip(call.declared, actual), start=1)
            if expected != got and expected not in WILDCARD_TYPES and got not in WILDCARD_TYPES
        ]
        if not mismatches:
            return
        if call.location is None:
            logger.debug("type_mismatch_not_anchored", call=qualified, line=call.line)
            return

        anchor = call.location.range
        # Shared key so a later `Symbol(...)` message cannot diagnose the same occurrence.
        self.resolver.claim((call.name, call.line, anchor.start.character))
        if any(diagnostic.range == anchor for diagnostic in self.diagnostics):
            logger.debug("type_mismatch_already_diagnosed", call=qualified, line=call.line)
            return
        self.diagnostics.append(
            Diagnostic(
                range=anchor,
                message="\n".join(mismatches),
                severity=DiagnosticSeverity.ERROR,
                source=DiagnosticSource.TYPE_CHECK,
            )
        )
