"""
Kinx Language Server (pygls)

Every open/change reindexes the document through the kinx compiler and
publishes the resulting diagnostics; queries read the last applied index.
"""

from typing import Any

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from kinx_lsp import __version__
from kinx_lsp.common.exceptions import ConfigurationError, KinxLspError
from kinx_lsp.common.observability import get_logger
from kinx_lsp.config.settings import KinxSettings, get_settings
from kinx_lsp.indexing.application.document_store import DocumentStore
from kinx_lsp.indexing.application.indexing_service import IndexingService
from kinx_lsp.indexing.application.query_engine import QueryEngine
from kinx_lsp.indexing.domain.models import split_lines
from kinx_lsp.server.converters import (
    SEMANTIC_TOKENS_LEGEND,
    encode_semantic_tokens,
    from_lsp_position,
    to_lsp_completion_item,
    to_lsp_diagnostic,
    to_lsp_hover,
    to_lsp_location,
)

logger = get_logger(__name__)

SERVER_NAME = "kinx-language-server"
COMPLETION_TRIGGERS = [".", ":"]


class KinxLanguageServer(LanguageServer):
    def __init__(self, settings: KinxSettings | None = None, **kwargs: Any):
        super().__init__(SERVER_NAME, __version__, **kwargs)
        self.settings = settings or get_settings()
        self.store = DocumentStore()
        self.service = IndexingService.from_settings(self.settings, self.store)
        self.queries = QueryEngine()

    def apply_settings(self, **overrides: Any) -> None:
        """Swap in a validated settings copy and rebuild the compiler."""
        updated = self.settings.with_overrides(**overrides)
        if updated is self.settings:
            return
        self.settings = updated
        self.service.configure(updated)


# ============================================================
# Lifecycle / configuration
# ============================================================


def initialize(ls: KinxLanguageServer, params: types.InitializeParams) -> None:
    options = params.initialization_options
    if not isinstance(options, dict):
        return
    try:
        ls.apply_settings(compiler_path=options.get("kinxPath"))
    except ConfigurationError as e:
        logger.warning("initialization_options_rejected", error=str(e))


def did_change_configuration(ls: KinxLanguageServer, params: types.DidChangeConfigurationParams) -> None:
    settings = params.settings
    section = settings.get("kinx") if isinstance(settings, dict) else None
    if not isinstance(section, dict):
        return
    try:
        ls.apply_settings(compiler_path=section.get("path"))
    except ConfigurationError as e:
        logger.warning("configuration_rejected", error=str(e))


# ============================================================
# Document sync
# ============================================================


async def reindex_and_publish(ls: KinxLanguageServer, uri: str) -> None:
    try:
        result = await ls.service.reindex(uri)
    except KinxLspError as e:
        logger.error("reindex_failed", uri=uri, error=str(e))
        ls.window_show_message(types.ShowMessageParams(type=types.MessageType.Error, message=f"Kinx: {e.message}"))
        return
    if result is None:
        return
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=[to_lsp_diagnostic(diagnostic) for diagnostic in result.diagnostics],
        )
    )


async def did_open(ls: KinxLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
    document = params.text_document
    ls.store.open(document.uri, document.text)
    await reindex_and_publish(ls, document.uri)


async def did_change(ls: KinxLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    text = ls.workspace.get_text_document(uri).source
    ls.store.update(uri, text)
    await reindex_and_publish(ls, uri)


def did_close(ls: KinxLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.store.close(uri)
    ls.text_document_publish_diagnostics(types.PublishDiagnosticsParams(uri=uri, diagnostics=[]))


# ============================================================
# Queries
# ============================================================


def definition(ls: KinxLanguageServer, params: types.DefinitionParams) -> types.Location | None:
    index = ls.store.index_for(params.text_document.uri)
    if index is None:
        return None
    location = ls.queries.definition(index, from_lsp_position(params.position))
    return to_lsp_location(location) if location is not None else None


def hover(ls: KinxLanguageServer, params: types.HoverParams) -> types.Hover | None:
    index = ls.store.index_for(params.text_document.uri)
    if index is None:
        return None
    result = ls.queries.hover(index, from_lsp_position(params.position))
    return to_lsp_hover(result) if result is not None else None


def completion(ls: KinxLanguageServer, params: types.CompletionParams) -> types.CompletionList:
    uri = params.text_document.uri
    state = ls.store.get(uri)
    if state is None or state.index is None:
        return types.CompletionList(is_incomplete=False, items=[])
    lines = split_lines(state.text)
    line = params.position.line
    line_text = lines[line] if 0 <= line < len(lines) else ""
    candidates = ls.queries.complete(state.index, line_text, from_lsp_position(params.position))
    return types.CompletionList(
        is_incomplete=False,
        items=[to_lsp_completion_item(candidate) for candidate in candidates],
    )


def semantic_tokens_full(ls: KinxLanguageServer, params: types.SemanticTokensParams) -> types.SemanticTokens:
    index = ls.store.index_for(params.text_document.uri)
    if index is None:
        return types.SemanticTokens(data=[])
    return types.SemanticTokens(data=encode_semantic_tokens(ls.queries.semantic_spans(index)))


# ============================================================
# Wiring
# ============================================================


def create_server(settings: KinxSettings | None = None) -> KinxLanguageServer:
    server = KinxLanguageServer(settings)
    server.feature(types.INITIALIZE)(initialize)
    server.feature(types.WORKSPACE_DID_CHANGE_CONFIGURATION)(did_change_configuration)
    server.feature(types.TEXT_DOCUMENT_DID_OPEN)(did_open)
    server.feature(types.TEXT_DOCUMENT_DID_CHANGE)(did_change)
    server.feature(types.TEXT_DOCUMENT_DID_CLOSE)(did_close)
    server.feature(types.TEXT_DOCUMENT_DEFINITION)(definition)
    server.feature(types.TEXT_DOCUMENT_HOVER)(hover)
    server.feature(
        types.TEXT_DOCUMENT_COMPLETION,
        types.CompletionOptions(trigger_characters=COMPLETION_TRIGGERS),
    )(completion)
    server.feature(types.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, SEMANTIC_TOKENS_LEGEND)(semantic_tokens_full)
    return server


def serve(settings: KinxSettings | None = None) -> None:
    server = create_server(settings)
    logger.info("server_starting", name=SERVER_NAME, version=__version__, compiler=server.settings.compiler_path)
    server.start_io()
