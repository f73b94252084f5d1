"""
Indexing Domain Models

Per-document semantic state rebuilt from one compiler report:
definitions, references, usage counters, call sites, method tables,
inheritance graph and completion symbols.

All positions are 0-based; ranges are end-exclusive.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path

from kinx_lsp.indexing.domain.uris import uri_to_path

WILDCARD_TYPES = frozenset({"Any", "-"})


# ============================================================
# Positions
# ============================================================


@dataclass(frozen=True, order=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Range":
        return cls(Position(line, start), Position(line, end))

    def contains(self, position: Position) -> bool:
        """Inclusive hit test (a cursor right after a name still hits it)."""
        return self.start <= position <= self.end

    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class Location:
    uri: str
    range: Range


# ============================================================
# Symbols
# ============================================================


class SymbolKind(str, Enum):
    """Definition/reference kinds"""

    VARIABLE = "variable"
    CLASS = "class"
    FUNCTION = "function"
    CONST = "const"
    KEYNAME = "keyname"

    @classmethod
    def from_protocol(cls, kind: str) -> "SymbolKind | None":
        """Map a `#define`/`#ref` kind field to a symbol kind."""
        return _PROTOCOL_KINDS.get(kind)


_PROTOCOL_KINDS: dict[str, SymbolKind] = {
    "var": SymbolKind.VARIABLE,
    "const": SymbolKind.CONST,
    "class": SymbolKind.CLASS,
    "module": SymbolKind.CLASS,
    "function": SymbolKind.FUNCTION,
    "public": SymbolKind.FUNCTION,
    "private": SymbolKind.FUNCTION,
    "native": SymbolKind.FUNCTION,
    "key": SymbolKind.KEYNAME,
}


@dataclass(frozen=True)
class TypeSpec:
    """
    Decoded optional type field.

    `Function#Int` -> TypeSpec(name="Int", callable=True, tag="Function")
    `Int`          -> TypeSpec(name="Int")
    """

    name: str | None
    callable: bool = False
    tag: str | None = None


@dataclass
class DefinitionEntry:
    """A `#define` event, resolved against the active document when possible."""

    kind: SymbolKind
    name: str
    line: int
    type_name: str | None = None  # supertype for classes
    return_type: str | None = None  # functions only
    arg_types: list[str] = field(default_factory=list)
    location: Location | None = None
    owner: str | None = None  # class name for methods
    callable: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}#{self.name}" if self.owner else self.name


@dataclass
class ReferenceEntry:
    """A `#ref` / `#method` occurrence in the active document."""

    kind: SymbolKind
    name: str
    location: Location
    definition: Location | None = None
    type_name: str | None = None
    return_type: str | None = None
    callable: bool = False
    arg_types: list[str] = field(default_factory=list)
    owner: str | None = None


class ScopeKind(str, Enum):
    CLASS = "class"
    FUNCTION = "function"


@dataclass(frozen=True)
class ScopeFrame:
    kind: ScopeKind
    name: str | None = None


@dataclass
class CallSite:
    """Open call between `#call` and `#callend`."""

    name: str
    scope: str | None
    line: int
    location: Location | None
    declared: list[str] = field(default_factory=list)
    actual: dict[int, str] = field(default_factory=dict)

    def actual_types(self) -> list[str]:
        if not self.actual:
            return []
        size = max(self.actual) + 1
        return [self.actual.get(i, "Any") for i in range(size)]


@dataclass
class UsageCounter:
    definition: DefinitionEntry
    count: int = 0


UsageKey = tuple[str, int]  # (name, definition line)


@dataclass
class DocumentIndex:
    """
    Semantic state of one document.

    Rebuilt on every compile pass; never merged with a previous index.
    """

    uri: str
    definitions: list[DefinitionEntry] = field(default_factory=list)
    references: list[ReferenceEntry] = field(default_factory=list)
    usage_counts: dict[UsageKey, UsageCounter] = field(default_factory=dict)
    call_sites: dict[UsageKey, list[list[str]]] = field(default_factory=dict)
    functions: dict[str, DefinitionEntry] = field(default_factory=dict)
    method_tables: dict[str, dict[str, DefinitionEntry]] = field(default_factory=dict)
    inheritance_graph: dict[str, list[str]] = field(default_factory=dict)
    variable_type_candidates: dict[str, list[str]] = field(default_factory=dict)
    symbol_list: dict[str, SymbolKind] = field(default_factory=dict)

    def add_superclass(self, class_name: str, superclass: str) -> None:
        supers = self.inheritance_graph.setdefault(class_name, [])
        if superclass not in supers:
            supers.append(superclass)

    def add_type_candidate(self, variable: str, type_name: str) -> None:
        candidates = self.variable_type_candidates.setdefault(variable, [])
        if type_name not in candidates:
            candidates.append(type_name)

    def find_method(self, class_name: str, method: str) -> DefinitionEntry | None:
        """Depth-first lookup: own method table first, then each supertype."""
        for owner in self.class_lineage(class_name):
            entry = self.method_tables.get(owner, {}).get(method)
            if entry is not None:
                return entry
        return None

    def collect_methods(self, class_name: str) -> dict[str, DefinitionEntry]:
        """All methods visible on a class; the nearest declaration wins."""
        methods: dict[str, DefinitionEntry] = {}
        for owner in self.class_lineage(class_name):
            for name, entry in self.method_tables.get(owner, {}).items():
                methods.setdefault(name, entry)
        return methods

    def class_lineage(self, class_name: str) -> list[str]:
        """Classes in depth-first lookup order, each visited once."""
        order: list[str] = []
        visited: set[str] = set()
        stack = [class_name]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            order.append(current)
            stack.extend(reversed(self.inheritance_graph.get(current, [])))
        return order

    def definitions_named(self, name: str) -> list[DefinitionEntry]:
        return [entry for entry in self.definitions if entry.name == name]


# ============================================================
# Diagnostics
# ============================================================


class DiagnosticSeverity(IntEnum):
    """Values match the LSP spec (lower = more severe)."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class DiagnosticTag(IntEnum):
    UNNECESSARY = 1
    DEPRECATED = 2


class DiagnosticSource:
    COMPILE_ERROR = "Compile Error"
    TYPE_CHECK = "Type Check"
    SEMANTICS_CHECK = "Semantics Check"


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    source: str = DiagnosticSource.COMPILE_ERROR
    tags: tuple[DiagnosticTag, ...] = ()

    def is_error(self) -> bool:
        return self.severity == DiagnosticSeverity.ERROR

    def is_warning(self) -> bool:
        return self.severity == DiagnosticSeverity.WARNING


# ============================================================
# Query results
# ============================================================


class SemanticTag(str, Enum):
    UNUSED = "unused"
    USED = "used"


@dataclass(frozen=True, order=True)
class SemanticSpan:
    line: int
    start: int
    length: int
    tag: SemanticTag


class CompletionKind(str, Enum):
    KEYWORD = "keyword"
    TYPE = "type"
    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    VARIABLE = "variable"
    CONSTANT = "constant"
    PROPERTY = "property"


@dataclass(frozen=True)
class CompletionCandidate:
    label: str
    kind: CompletionKind
    detail: str | None = None


@dataclass(frozen=True)
class HoverResult:
    contents: str
    range: Range | None = None


# ============================================================
# Source snapshot
# ============================================================


@dataclass(frozen=True)
class SourceDocument:
    """Snapshot of the document being compiled."""

    uri: str
    path: Path
    lines: list[str]

    @classmethod
    def from_text(cls, uri: str, text: str) -> "SourceDocument":
        return cls(uri=uri, path=uri_to_path(uri), lines=split_lines(text))

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def workdir(self) -> Path:
        return self.path.parent

    def line(self, number: int) -> str | None:
        if 0 <= number < len(self.lines):
            return self.lines[number]
        return None


def split_lines(text: str) -> list[str]:
    """Split on \\n or \\r\\n, keeping a trailing empty line like the compiler does."""
    return text.replace("\r\n", "\n").split("\n")
