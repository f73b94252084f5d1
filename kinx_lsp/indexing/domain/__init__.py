"""Indexing Domain"""

from .events import (
    ArgEvent,
    CallArgEvent,
    CallEndEvent,
    CallEvent,
    DefineEvent,
    DiagnosticLine,
    MethodEvent,
    RefEvent,
    ReportEvent,
    ScopeEvent,
    TagEvent,
    VarTypeEvent,
)
from .models import (
    CallSite,
    CompletionCandidate,
    CompletionKind,
    DefinitionEntry,
    Diagnostic,
    DiagnosticSeverity,
    DiagnosticSource,
    DiagnosticTag,
    DocumentIndex,
    HoverResult,
    Location,
    Position,
    Range,
    ReferenceEntry,
    ScopeFrame,
    ScopeKind,
    SemanticSpan,
    SemanticTag,
    SourceDocument,
    SymbolKind,
    TypeSpec,
    UsageCounter,
)

__all__ = [
    # Events
    "ArgEvent",
    "CallArgEvent",
    "CallEndEvent",
    "CallEvent",
    "DefineEvent",
    "DiagnosticLine",
    "MethodEvent",
    "RefEvent",
    "ReportEvent",
    "ScopeEvent",
    "TagEvent",
    "VarTypeEvent",
    # Models
    "CallSite",
    "CompletionCandidate",
    "CompletionKind",
    "DefinitionEntry",
    "Diagnostic",
    "DiagnosticSeverity",
    "DiagnosticSource",
    "DiagnosticTag",
    "DocumentIndex",
    "HoverResult",
    "Location",
    "Position",
    "Range",
    "ReferenceEntry",
    "ScopeFrame",
    "ScopeKind",
    "SemanticSpan",
    "SemanticTag",
    "SourceDocument",
    "SymbolKind",
    "TypeSpec",
    "UsageCounter",
]
