"""file:// URI <-> filesystem path helpers."""

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    return Path(uri)


def path_to_uri(path: Path | str) -> str:
    return Path(path).absolute().as_uri()
