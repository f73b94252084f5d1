"""
Global test configuration and fixtures
"""

import time
from pathlib import Path

import pytest

from kinx_lsp.config.settings import get_settings
from kinx_lsp.indexing.application.build_pass import BuildResult, build_document_index
from kinx_lsp.indexing.domain.models import SourceDocument
from kinx_lsp.indexing.domain.uris import path_to_uri

SLOW_TEST_THRESHOLD = 2.0

DEFAULT_FILENAME = "main.k"


@pytest.fixture(autouse=True)
def track_test_duration(request):
    """Warn about slow tests"""
    start_time = time.time()

    yield

    duration = time.time() - start_time
    if duration > SLOW_TEST_THRESHOLD:
        print(f"\nSLOW TEST ({duration:.2f}s): {request.node.nodeid}")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """get_settings() is cached per process; isolate env-driven tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def workdir(tmp_path) -> Path:
    directory = tmp_path / "work"
    directory.mkdir()
    return directory


@pytest.fixture
def make_document(workdir):
    """SourceDocument factory rooted in the temporary workdir."""

    def _make(text: str, filename: str = DEFAULT_FILENAME) -> SourceDocument:
        return SourceDocument.from_text(path_to_uri(workdir / filename), text)

    return _make


@pytest.fixture
def run_pass(make_document):
    """Run one full index pass over `text` with the given compiler report."""

    def _run(text: str, compiler_report: str, filename: str = DEFAULT_FILENAME) -> BuildResult:
        return build_document_index(make_document(text, filename), compiler_report)

    return _run


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real kinx executable)")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
