"""
Unit Tests: structlog setup
"""

import logging
import sys

import pytest

from kinx_lsp.common.observability import get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging("INFO")


@pytest.mark.parametrize(
    "level,expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("loud", logging.INFO)],
)
def test_level(level, expected):
    setup_logging(level)

    assert logging.getLogger().level == expected


@pytest.mark.parametrize("format", ["console", "json"])
def test_logs_go_to_stderr(format):
    setup_logging("INFO", format)

    handlers = logging.getLogger().handlers
    streams = [handler.stream for handler in handlers if isinstance(handler, logging.StreamHandler)]
    assert sys.stderr in streams
    assert sys.stdout not in streams


def test_json_renderer_emits_event_fields(capsys):
    setup_logging("INFO", "json")

    get_logger("kinx_lsp.tests").info("reindex_completed", uri="file:///work/main.k")

    err = capsys.readouterr().err
    assert '"event": "reindex_completed"' in err
    assert '"uri": "file:///work/main.k"' in err
