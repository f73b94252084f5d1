"""
Compiler Report Events

Closed set of typed events decoded from one line of the kinx report.
Line numbers are already converted to 0-based.

Tag grammar (tab-separated fields after the tag):
    #define   <kind> <name> <file> <line> [<type>]
    #ref      <var|key> <name> <file1> <line1> [<file2> <line2>] [<type>]
    #call     <[scope#]name> <file1> <line1> <file2> <line2>
    #callarg  <index> <type>
    #callend
    #vartype  <name> <type>
    #scope    <start|end> <function|class> [<name>]
    #method   <class>#<method> <file> <line> <col1> <col2>
    #arg      <index> <type>

Diagnostic grammar:
    [Symbol(<name>)]<free text><<file>>:<line>
"""

from dataclasses import dataclass
from typing import Union

from kinx_lsp.indexing.domain.models import ScopeKind, TypeSpec


@dataclass(frozen=True)
class DefineEvent:
    kind: str  # protocol kind: var, const, class, module, function, public, private, native, key
    name: str
    file: str
    line: int
    type_spec: TypeSpec | None = None


@dataclass(frozen=True)
class RefEvent:
    kind: str  # var | key
    name: str
    file: str
    line: int
    definition_file: str | None = None
    definition_line: int | None = None
    type_spec: TypeSpec | None = None

    @property
    def has_definition(self) -> bool:
        return self.definition_file is not None and self.definition_line is not None


@dataclass(frozen=True)
class CallEvent:
    name: str
    scope: str | None
    file: str
    line: int
    definition_file: str
    definition_line: int


@dataclass(frozen=True)
class CallArgEvent:
    index: int
    type_name: str


@dataclass(frozen=True)
class CallEndEvent:
    pass


@dataclass(frozen=True)
class VarTypeEvent:
    name: str
    type_name: str


@dataclass(frozen=True)
class ScopeEvent:
    start: bool
    kind: ScopeKind
    name: str | None = None


@dataclass(frozen=True)
class MethodEvent:
    class_name: str
    method: str
    file: str
    line: int
    start_column: int  # 0-based
    end_column: int  # 0-based, exclusive


@dataclass(frozen=True)
class ArgEvent:
    index: int
    type_name: str


@dataclass(frozen=True)
class DiagnosticLine:
    message: str
    filename: str
    line: int
    symbol: str | None = None


TagEvent = Union[
    DefineEvent,
    RefEvent,
    CallEvent,
    CallArgEvent,
    CallEndEvent,
    VarTypeEvent,
    ScopeEvent,
    MethodEvent,
    ArgEvent,
]

ReportEvent = Union[TagEvent, DiagnosticLine]
