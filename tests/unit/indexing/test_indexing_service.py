"""
Unit Tests: Indexing Service

The compiler is replaced by an AsyncMock; tests cover the apply path,
stale-result discard and failure propagation.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from kinx_lsp.common.exceptions import CompilerNotFoundError, CompilerTimeoutError
from kinx_lsp.config.settings import KinxSettings
from kinx_lsp.indexing.application.document_store import DocumentStore
from kinx_lsp.indexing.application.indexing_service import IndexingService
from kinx_lsp.indexing.domain.uris import path_to_uri
from kinx_lsp.indexing.infrastructure.compiler import CompilerReport

TEXT = "var x = 1;"
REPORT = "#define\tvar\tx\tmain.k\t1\n"


def _report(output: str = REPORT) -> CompilerReport:
    return CompilerReport(output=output, exit_code=0, execution_time_ms=1.0)


@pytest.fixture
def uri(workdir):
    return path_to_uri(workdir / "main.k")


@pytest.fixture
def compiler():
    mock = Mock()
    mock.compile = AsyncMock(return_value=_report())
    return mock


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def service(store, compiler):
    return IndexingService(store, compiler)


class TestReindex:
    @pytest.mark.asyncio
    async def test_applies_result(self, service, store, compiler, uri, workdir):
        store.open(uri, TEXT)

        result = await service.reindex(uri)

        assert result is not None
        assert [d.message for d in result.diagnostics] == ["The variable(x) is defined but not used."]
        state = store.get(uri)
        assert state.index is result.index
        assert not state.is_stale
        compiler.compile.assert_awaited_once_with(TEXT, workdir / "main.k")

    @pytest.mark.asyncio
    async def test_not_open(self, service, compiler, uri):
        assert await service.reindex(uri) is None
        compiler.compile.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, service, store, compiler, uri):
        store.open(uri, TEXT)

        async def edit_during_compile(text, path):
            store.update(uri, "var y = 2;")
            return _report()

        compiler.compile.side_effect = edit_during_compile

        assert await service.reindex(uri) is None
        state = store.get(uri)
        assert state.index is None
        assert state.is_stale

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_state(self, service, store, compiler, uri):
        store.open(uri, TEXT)
        first = await service.reindex(uri)
        store.update(uri, "var x = ;")
        compiler.compile.side_effect = CompilerTimeoutError("Kinx compiler timed out", timeout=10.0)

        with pytest.raises(CompilerTimeoutError):
            await service.reindex(uri)

        state = store.get(uri)
        assert state.index is first.index
        assert state.is_stale

    @pytest.mark.asyncio
    async def test_compiler_missing_propagates(self, service, store, compiler, uri):
        store.open(uri, TEXT)
        compiler.compile.side_effect = CompilerNotFoundError("not found", executable="kinx")

        with pytest.raises(CompilerNotFoundError):
            await service.reindex(uri)


class TestConfiguration:
    def test_from_settings(self):
        service = IndexingService.from_settings(KinxSettings(compiler_path="/opt/kinx", compile_timeout=3))

        assert service.compiler.executable == "/opt/kinx"
        assert service.compiler.timeout == 3
        assert isinstance(service.store, DocumentStore)

    def test_configure_replaces_compiler(self, service):
        service.configure(KinxSettings(compiler_path="kinx2", end_marker="__STOP__"))

        assert service.compiler.executable == "kinx2"
        assert service.compiler.end_marker == "__STOP__"
