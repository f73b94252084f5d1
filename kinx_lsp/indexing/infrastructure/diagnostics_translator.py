"""
Diagnostics Translator

Turns decoded compiler messages into range-anchored diagnostics and, once the
index is complete, adds the "defined but not used" warnings.
"""

import re
from pathlib import PurePath

from kinx_lsp.common.observability import get_logger
from kinx_lsp.indexing.domain.events import DiagnosticLine
from kinx_lsp.indexing.domain.models import (
    Diagnostic,
    DiagnosticSeverity,
    DiagnosticSource,
    DiagnosticTag,
    DocumentIndex,
    Range,
    SourceDocument,
)
from kinx_lsp.indexing.infrastructure.position_resolver import PositionResolver, iter_word_spans

logger = get_logger(__name__)

_FIRST_NON_BLANK = re.compile(r"\S")
_FOR_VARIABLE = re.compile(r"for\s*\(\s*(?:var\s+|const\s+)?([A-Za-z_$][\w$]*)")

UNUSED_MESSAGE = "The variable({name}) is defined but not used."


def _module_name(filename: str) -> str:
    return PurePath(filename.replace("\\", "/")).stem


class DiagnosticsTranslator:
    """
    Anchors compiler messages for one compile pass.

    Shares the PositionResolver (and therefore the dedup map) with the
    IndexBuilder of the same pass.
    """

    def __init__(self, document: SourceDocument, resolver: PositionResolver, diagnostics: list[Diagnostic]):
        self.document = document
        self.resolver = resolver
        self.diagnostics = diagnostics

    def translate(self, line: DiagnosticLine) -> None:
        if line.filename != self.document.filename:
            self._anchor_using(line)
        elif line.symbol is not None:
            self._anchor_symbol(line)
        else:
            self._anchor_line(line)

    def _error(self, anchor: Range, message: str) -> None:
        self.diagnostics.append(
            Diagnostic(
                range=anchor,
                message=message,
                severity=DiagnosticSeverity.ERROR,
                source=DiagnosticSource.COMPILE_ERROR,
            )
        )

    def _anchor_symbol(self, line: DiagnosticLine) -> None:
        spans = self.resolver.find_all_unclaimed(line.symbol, self.document.lines, line.line)
        for start, end in spans:
            self._error(Range.on_line(line.line, start, end), line.message)

    def _anchor_line(self, line: DiagnosticLine) -> None:
        text = self.document.line(line.line)
        if text is None:
            logger.debug("diagnostic_line_out_of_range", line=line.line)
            return
        text = text.rstrip()
        first = _FIRST_NON_BLANK.search(text)
        if first is None:
            return

        start, end = first.start(), len(text)
        loop = _FOR_VARIABLE.search(line.message)
        if loop is not None:
            spans = iter_word_spans(loop.group(1), text)
            if spans:
                start, end = spans[0]
        self._error(Range.on_line(line.line, start, end), line.message)

    def _anchor_using(self, line: DiagnosticLine) -> None:
        module = _module_name(line.filename)
        if not module:
            return
        statement = re.compile(rf"using\s+{re.escape(module)}\s*;")
        for number, text in enumerate(self.document.lines):
            match = statement.search(text)
            if match is None:
                continue
            if self.resolver.claim(("using", module, number)):
                self._error(Range.on_line(number, match.start(), match.end()), line.message)
            return
        logger.debug("foreign_diagnostic_without_using", filename=line.filename)

    def unused_warnings(self, index: DocumentIndex) -> None:
        for counter in index.usage_counts.values():
            if counter.count != 0:
                continue
            location = counter.definition.location
            if location is None:
                continue
            self.diagnostics.append(
                Diagnostic(
                    range=location.range,
                    message=UNUSED_MESSAGE.format(name=counter.definition.name),
                    severity=DiagnosticSeverity.WARNING,
                    source=DiagnosticSource.SEMANTICS_CHECK,
                    tags=(DiagnosticTag.UNNECESSARY,),
                )
            )
