"""
Unit Tests: Exception hierarchy
"""

import pytest

from kinx_lsp.common.exceptions import (
    CompilerError,
    CompilerNotFoundError,
    CompilerTimeoutError,
    ConfigurationError,
    InfrastructureError,
    KinxLspError,
    SourceReadError,
)


@pytest.mark.parametrize(
    "error_class,parents",
    [
        (CompilerNotFoundError, (CompilerError, InfrastructureError, KinxLspError)),
        (CompilerTimeoutError, (CompilerError, InfrastructureError, KinxLspError)),
        (SourceReadError, (InfrastructureError, KinxLspError)),
        (ConfigurationError, (KinxLspError,)),
    ],
)
def test_hierarchy(error_class, parents):
    for parent in parents:
        assert issubclass(error_class, parent)


def test_str_without_details():
    assert str(KinxLspError("plain")) == "plain"


def test_str_with_details():
    error = SourceReadError("Cannot read referenced source file", path="/work/lib.kx")

    assert str(error) == "Cannot read referenced source file (details: {'path': '/work/lib.kx'})"
    assert error.path == "/work/lib.kx"


def test_compiler_error_merges_fields_into_details():
    error = CompilerTimeoutError("timed out", executable="kinx", filename="main.k", timeout=10.0)

    assert error.message == "timed out"
    assert error.details == {"timeout": 10.0, "executable": "kinx", "filename": "main.k"}
    assert error.executable == "kinx"
    assert error.timeout == 10.0
