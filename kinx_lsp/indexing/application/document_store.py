"""
Document Store

Owns one DocumentState per open URI. Every open/change bumps the version;
results computed for an older version are discarded on arrival.
"""

from dataclasses import dataclass, field

from kinx_lsp.common.observability import get_logger
from kinx_lsp.indexing.domain.models import Diagnostic, DocumentIndex

logger = get_logger(__name__)


@dataclass
class DocumentState:
    uri: str
    text: str
    version: int = 0
    index: DocumentIndex | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    indexed_version: int | None = None

    @property
    def is_stale(self) -> bool:
        return self.indexed_version != self.version


class DocumentStore:
    def __init__(self) -> None:
        self._documents: dict[str, DocumentState] = {}

    def __contains__(self, uri: str) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, uri: str) -> DocumentState | None:
        return self._documents.get(uri)

    def open(self, uri: str, text: str) -> DocumentState:
        """Create (or reset the text of) a document and bump its version."""
        state = self._documents.get(uri)
        if state is None:
            state = DocumentState(uri=uri, text=text)
            self._documents[uri] = state
        state.text = text
        state.version += 1
        return state

    def update(self, uri: str, text: str) -> DocumentState:
        return self.open(uri, text)

    def close(self, uri: str) -> DocumentState | None:
        return self._documents.pop(uri, None)

    def apply(self, uri: str, version: int, index: DocumentIndex, diagnostics: list[Diagnostic]) -> bool:
        """
        Install a finished pass.

        Returns:
            False (and keeps the current state) when the document was closed
            or has moved past `version`.
        """
        state = self._documents.get(uri)
        if state is None:
            logger.debug("index_result_discarded", uri=uri, reason="closed")
            return False
        if version != state.version:
            logger.debug("index_result_discarded", uri=uri, reason="stale", version=version, current=state.version)
            return False
        state.index = index
        state.diagnostics = list(diagnostics)
        state.indexed_version = version
        return True

    def index_for(self, uri: str) -> DocumentIndex | None:
        state = self._documents.get(uri)
        return state.index if state is not None else None
