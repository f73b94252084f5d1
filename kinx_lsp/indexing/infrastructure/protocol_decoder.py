"""
Protocol Decoder

Stateless tokenizer for the kinx `--output-location` report. Each line
becomes one typed event (see `kinx_lsp.indexing.domain.events`) or is
dropped. State accumulation belongs to the index builder.
"""

import re
from collections.abc import Callable, Iterator

from kinx_lsp.common.observability import get_logger
from kinx_lsp.indexing.domain.events import (
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
from kinx_lsp.indexing.domain.models import ScopeKind, SymbolKind, TypeSpec, split_lines

logger = get_logger(__name__)

TAG_MARKER = "#"
FIELD_SEPARATOR = "\t"
EMPTY_SLOT_TYPE = "Any"

_CALLABLE_TAGS = frozenset({"Function", "FunctionRef", "Native"})

# Symbol shape is tried first so a `Symbol(...)` line never decodes as plain.
# Both shapes need message text before the `<file>:<line>` marker.
_SYMBOL_DIAGNOSTIC = re.compile(r"Symbol\(([^)]+)\).+?<([^<>]+)>:(\d+)")
_PLAIN_DIAGNOSTIC = re.compile(r".+?<([^<>]+)>:(\d+)")


class MalformedTagError(ValueError):
    """Tag line with missing or invalid fields (dropped by the decoder)."""


def parse_type_spec(raw: str | None) -> TypeSpec | None:
    """
    Decode an optional type field.

    Examples:
        "Function#Int" -> TypeSpec("Int", callable=True, tag="Function")
        "Native#"      -> TypeSpec(None, callable=True, tag="Native")
        "Int"          -> TypeSpec("Int")
        ""             -> None
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    tag, sep, rest = raw.partition("#")
    if sep and tag in _CALLABLE_TAGS:
        return TypeSpec(name=rest or None, callable=True, tag=tag)
    return TypeSpec(name=raw)


def _line_number(raw: str) -> int:
    """1-based protocol line -> 0-based."""
    value = int(raw)
    if value < 1:
        raise MalformedTagError(f"line number out of range: {raw}")
    return value - 1


def _require(fields: list[str], count: int, tag: str) -> None:
    if len(fields) < count:
        raise MalformedTagError(f"{tag} expects at least {count} fields, got {len(fields)}")


def _slot_type(fields: list[str], position: int) -> str:
    if len(fields) > position and fields[position]:
        return fields[position]
    return EMPTY_SLOT_TYPE


# ============================================================
# Tag parsers
# ============================================================


def _parse_define(fields: list[str]) -> DefineEvent:
    _require(fields, 4, "#define")
    kind, name, file, line = fields[:4]
    if SymbolKind.from_protocol(kind) is None:
        raise MalformedTagError(f"unknown define kind: {kind}")
    return DefineEvent(
        kind=kind,
        name=name,
        file=file,
        line=_line_number(line),
        type_spec=parse_type_spec(fields[4]) if len(fields) > 4 else None,
    )


def _parse_ref(fields: list[str]) -> RefEvent:
    _require(fields, 4, "#ref")
    kind, name, file, line = fields[:4]
    if kind not in ("var", "key"):
        raise MalformedTagError(f"unknown ref kind: {kind}")
    rest = fields[4:]
    definition_file: str | None = None
    definition_line: int | None = None
    if len(rest) >= 2 and rest[1].isdigit():
        definition_file = rest[0]
        definition_line = _line_number(rest[1])
        rest = rest[2:]
    return RefEvent(
        kind=kind,
        name=name,
        file=file,
        line=_line_number(line),
        definition_file=definition_file,
        definition_line=definition_line,
        type_spec=parse_type_spec(rest[0]) if rest else None,
    )


def _parse_call(fields: list[str]) -> CallEvent:
    _require(fields, 5, "#call")
    scoped, file1, line1, file2, line2 = fields[:5]
    scope, _, name = scoped.rpartition("#")
    if not name:
        raise MalformedTagError(f"empty call target: {scoped}")
    return CallEvent(
        name=name,
        scope=scope or None,
        file=file1,
        line=_line_number(line1),
        definition_file=file2,
        definition_line=_line_number(line2),
    )


def _parse_callarg(fields: list[str]) -> CallArgEvent:
    _require(fields, 1, "#callarg")
    return CallArgEvent(index=int(fields[0]), type_name=_slot_type(fields, 1))


def _parse_callend(fields: list[str]) -> CallEndEvent:
    return CallEndEvent()


def _parse_vartype(fields: list[str]) -> VarTypeEvent:
    _require(fields, 2, "#vartype")
    name, type_name = fields[:2]
    if not name or not type_name:
        raise MalformedTagError("#vartype needs a name and a type")
    return VarTypeEvent(name=name, type_name=type_name)


def _parse_scope(fields: list[str]) -> ScopeEvent:
    _require(fields, 2, "#scope")
    action, kind = fields[:2]
    if action not in ("start", "end"):
        raise MalformedTagError(f"unknown scope action: {action}")
    name = fields[2] if len(fields) > 2 and fields[2] else None
    return ScopeEvent(start=action == "start", kind=ScopeKind(kind), name=name)


def _parse_method(fields: list[str]) -> MethodEvent:
    _require(fields, 5, "#method")
    scoped, file, line, col1, col2 = fields[:5]
    class_name, sep, method = scoped.partition("#")
    if not sep or not class_name or not method:
        raise MalformedTagError(f"method reference needs <class>#<method>: {scoped}")
    return MethodEvent(
        class_name=class_name,
        method=method,
        file=file,
        line=_line_number(line),
        start_column=max(int(col1) - 1, 0),
        end_column=max(int(col2) - 1, 0),
    )


def _parse_arg(fields: list[str]) -> ArgEvent:
    _require(fields, 1, "#arg")
    return ArgEvent(index=int(fields[0]), type_name=_slot_type(fields, 1))


_TAG_PARSERS: dict[str, Callable[[list[str]], TagEvent]] = {
    "#define": _parse_define,
    "#ref": _parse_ref,
    "#call": _parse_call,
    "#callarg": _parse_callarg,
    "#callend": _parse_callend,
    "#vartype": _parse_vartype,
    "#scope": _parse_scope,
    "#method": _parse_method,
    "#arg": _parse_arg,
}


# ============================================================
# Public API
# ============================================================


def decode_tag_line(line: str) -> TagEvent | None:
    """Decode a `#tag<TAB>field...` line; None for unknown or malformed tags."""
    tag, *fields = [part.strip() for part in line.rstrip("\r").split(FIELD_SEPARATOR)]
    parser = _TAG_PARSERS.get(tag)
    if parser is None:
        logger.debug("unknown_tag_dropped", tag=tag)
        return None
    try:
        return parser(fields)
    except ValueError as e:  # MalformedTagError, int(), ScopeKind()
        logger.debug("malformed_tag_dropped", tag=tag, error=str(e))
        return None


def decode_diagnostic_line(line: str) -> DiagnosticLine | None:
    """Decode a free-form compiler message; None when it carries no location."""
    message = line.rstrip()
    match = _SYMBOL_DIAGNOSTIC.search(message)
    if match is not None:
        symbol, filename, number = match.groups()
        return DiagnosticLine(message=message, filename=filename, line=int(number) - 1, symbol=symbol)
    match = _PLAIN_DIAGNOSTIC.search(message)
    if match is not None:
        filename, number = match.groups()
        return DiagnosticLine(message=message, filename=filename, line=int(number) - 1)
    return None


def decode_line(line: str) -> ReportEvent | None:
    if not line.strip():
        return None
    if line.startswith(TAG_MARKER):
        return decode_tag_line(line)
    return decode_diagnostic_line(line)


def decode_report(report: str) -> Iterator[ReportEvent]:
    """Decode a whole report in line order."""
    for line in split_lines(report):
        event = decode_line(line)
        if event is not None:
            yield event
