"""
One index pass: compiler report -> (DocumentIndex, diagnostics).

Pure and synchronous; the same document and report always give the same
result.
"""

from dataclasses import dataclass, field

from kinx_lsp.indexing.domain.events import DiagnosticLine
from kinx_lsp.indexing.domain.models import Diagnostic, DocumentIndex, SourceDocument
from kinx_lsp.indexing.infrastructure.diagnostics_translator import DiagnosticsTranslator
from kinx_lsp.indexing.infrastructure.index_builder import IndexBuilder
from kinx_lsp.indexing.infrastructure.position_resolver import PositionResolver
from kinx_lsp.indexing.infrastructure.protocol_decoder import decode_report
from kinx_lsp.indexing.infrastructure.source_loader import SourceLoader


@dataclass
class BuildResult:
    index: DocumentIndex
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for diagnostic in self.diagnostics if diagnostic.is_error())

    @property
    def warning_count(self) -> int:
        return sum(1 for diagnostic in self.diagnostics if diagnostic.is_warning())


def build_document_index(
    document: SourceDocument,
    report: str,
    source_loader: SourceLoader | None = None,
) -> BuildResult:
    """
    Decode the report and feed every event, in order, to the builder or the
    translator. Both share one PositionResolver for the whole pass.

    Raises:
        SourceReadError: A referenced definition file cannot be read
    """
    resolver = PositionResolver()
    diagnostics: list[Diagnostic] = []
    loader = source_loader or SourceLoader(document.workdir)
    builder = IndexBuilder(document, resolver, loader, diagnostics)
    translator = DiagnosticsTranslator(document, resolver, diagnostics)

    for event in decode_report(report):
        if isinstance(event, DiagnosticLine):
            translator.translate(event)
        else:
            builder.apply(event)

    index = builder.finish()
    translator.unused_warnings(index)
    return BuildResult(index=index, diagnostics=diagnostics)
