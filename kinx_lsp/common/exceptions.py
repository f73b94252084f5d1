"""
Kinx Language Server Exception Hierarchy

Usage guide:
    1. Recoverable errors -> log and continue
    2. Unrecoverable errors -> log and re-raise
    3. External errors (OSError, timeouts) -> wrap in a custom exception

Example:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SourceReadError("Cannot read referenced file", path=str(path)) from e

Hierarchy:
- KinxLspError (base)
  - InfrastructureError
    - CompilerError
      - CompilerNotFoundError
      - CompilerTimeoutError
    - SourceReadError
  - ConfigurationError
"""

from typing import Any


class KinxLspError(Exception):
    """Base exception for all Kinx language server errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Optional additional details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


# ============================================================
# Infrastructure Errors
# ============================================================


class InfrastructureError(KinxLspError):
    """Infrastructure failures (external processes, file system)."""

    pass


class CompilerError(InfrastructureError):
    """The kinx compiler could not produce a report."""

    def __init__(
        self,
        message: str,
        executable: str | None = None,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if executable:
            merged["executable"] = executable
        if filename:
            merged["filename"] = filename
        super().__init__(message, merged)
        self.executable = executable
        self.filename = filename


class CompilerNotFoundError(CompilerError):
    """Compiler executable does not exist or is not runnable."""

    pass


class CompilerTimeoutError(CompilerError):
    """Compiler did not finish within the configured timeout."""

    def __init__(
        self,
        message: str,
        executable: str | None = None,
        filename: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(
            message,
            executable=executable,
            filename=filename,
            details={"timeout": timeout} if timeout is not None else None,
        )
        self.timeout = timeout


class SourceReadError(InfrastructureError):
    """A file referenced from the compiler report could not be read."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path


# ============================================================
# Configuration Errors
# ============================================================


class ConfigurationError(KinxLspError):
    """Invalid settings or client configuration payload."""

    pass
