"""Loads files referenced from the compiler report (definition sites in other files)."""

from pathlib import Path

from kinx_lsp.common.exceptions import SourceReadError
from kinx_lsp.common.observability import get_logger
from kinx_lsp.indexing.domain.models import split_lines

logger = get_logger(__name__)


class SourceLoader:
    """
    Reads referenced source files, caching each one for a single compile pass.

    Candidate resolution: `workdir/<candidate>` when it exists, otherwise the
    raw candidate string is used as the path.
    """

    def __init__(self, workdir: Path):
        self.workdir = Path(workdir)
        self._cache: dict[Path, list[str]] = {}

    def resolve(self, candidate: str) -> Path:
        joined = self.workdir / candidate
        if joined.exists():
            return joined
        return Path(candidate)

    def read_lines(self, candidate: str) -> tuple[Path, list[str]]:
        """
        Returns:
            (resolved path, source lines)

        Raises:
            SourceReadError: If the resolved file cannot be read
        """
        path = self.resolve(candidate)
        cached = self._cache.get(path)
        if cached is not None:
            return path, cached
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("referenced_source_unreadable", path=str(path), error=str(e))
            raise SourceReadError("Cannot read referenced source file", path=str(path)) from e
        lines = split_lines(text)
        self._cache[path] = lines
        return path, lines
