"""
Indexing Service

Orchestrates one reindex: snapshot -> compile -> build pass -> store.
"""

import time

from kinx_lsp.common.observability import get_logger
from kinx_lsp.config.settings import KinxSettings
from kinx_lsp.indexing.application.build_pass import BuildResult, build_document_index
from kinx_lsp.indexing.application.document_store import DocumentStore
from kinx_lsp.indexing.domain.models import SourceDocument
from kinx_lsp.indexing.infrastructure.compiler import KinxCompiler
from kinx_lsp.indexing.infrastructure.source_loader import SourceLoader

logger = get_logger(__name__)


class IndexingService:
    """
    Rebuilds a document's index from scratch.

    Results for a version that is no longer current are dropped by the
    DocumentStore, so concurrent reindexes of one URI never regress state.
    """

    def __init__(self, store: DocumentStore, compiler: KinxCompiler):
        self.store = store
        self.compiler = compiler

    @classmethod
    def from_settings(cls, settings: KinxSettings, store: DocumentStore | None = None) -> "IndexingService":
        return cls(store or DocumentStore(), _compiler_for(settings))

    def configure(self, settings: KinxSettings) -> None:
        self.compiler = _compiler_for(settings)
        logger.info("compiler_configured", executable=settings.compiler_path, timeout=settings.compile_timeout)

    async def reindex(self, uri: str) -> BuildResult | None:
        """
        Returns:
            The applied BuildResult, or None when the document is not open or
            the result was discarded as stale.

        Raises:
            CompilerError: The compiler could not produce a report
            SourceReadError: A referenced definition file cannot be read
        """
        state = self.store.get(uri)
        if state is None:
            logger.debug("reindex_skipped", uri=uri, reason="not_open")
            return None

        version = state.version
        document = SourceDocument.from_text(uri, state.text)
        start_time = time.time()

        report = await self.compiler.compile(state.text, document.path)
        result = build_document_index(document, report.output, SourceLoader(document.workdir))

        if not self.store.apply(uri, version, result.index, result.diagnostics):
            return None

        logger.info(
            "reindex_completed",
            uri=uri,
            version=version,
            definitions=len(result.index.definitions),
            references=len(result.index.references),
            errors=result.error_count,
            warnings=result.warning_count,
            elapsed_ms=round((time.time() - start_time) * 1000, 1),
        )
        return result


def _compiler_for(settings: KinxSettings) -> KinxCompiler:
    return KinxCompiler(
        executable=settings.compiler_path,
        timeout=settings.compile_timeout,
        end_marker=settings.end_marker,
    )
