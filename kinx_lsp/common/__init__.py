"""Shared infrastructure: logging and the exception hierarchy."""

from kinx_lsp.common.exceptions import (
    CompilerError,
    CompilerNotFoundError,
    CompilerTimeoutError,
    ConfigurationError,
    InfrastructureError,
    KinxLspError,
    SourceReadError,
)
from kinx_lsp.common.observability import get_logger, setup_logging

__all__ = [
    # Errors
    "KinxLspError",
    "InfrastructureError",
    "CompilerError",
    "CompilerNotFoundError",
    "CompilerTimeoutError",
    "SourceReadError",
    "ConfigurationError",
    # Logging
    "get_logger",
    "setup_logging",
]
