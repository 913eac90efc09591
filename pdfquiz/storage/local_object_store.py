import uuid
from pathlib import Path

from pdfquiz.storage.base import BaseObjectStore
from pdfquiz.storage.exceptions import ObjectNotFoundError, StorageError

URL_SCHEME = "local://"


def object_path(root: Path, key: str) -> Path:
    """Build path to a stored payload: {root}/{key}"""
    return root / key


class LocalObjectStore(BaseObjectStore):
    """Stores payloads as files under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def put(self, data: bytes, filename: str) -> str:
        suffix = Path(filename).suffix.lower() or ".bin"
        key = f"{uuid.uuid4()}{suffix}"
        path = object_path(self._root, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store {filename}: {exc}") from exc
        return f"{URL_SCHEME}{key}"

    def get(self, url: str) -> bytes:
        path = self._resolve_path(url)
        if not path.exists():
            raise ObjectNotFoundError(f"File not found: {url}", url=url)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {url}: {exc}") from exc

    def delete(self, url: str) -> None:
        path = self._resolve_path(url)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {url}: {exc}") from exc

    def _resolve_path(self, url: str) -> Path:
        if not url.startswith(URL_SCHEME):
            raise ObjectNotFoundError(f"Unsupported object url '{url}'", url=url)
        key = url[len(URL_SCHEME):]
        if not key or "/" in key or key in (".", ".."):
            raise ObjectNotFoundError(f"Invalid object key in '{url}'", url=url)
        return object_path(self._root, key)
