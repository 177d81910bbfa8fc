import logging
import os
from abc import ABC, abstractmethod
from urllib.parse import quote, unquote, urlparse

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Key to bytes object storage with public read URLs."""

    base_url: str

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str) -> str:
        """Write ``data`` at ``path`` and return its public URL."""

    @abstractmethod
    def delete(self, path: str) -> None: ...

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{quote(path)}"

    def path_from_url(self, url: str) -> str | None:
        """Resolve a URL produced by ``url_for`` back to its storage path."""
        prefix = self.base_url.rstrip("/") + "/"
        if not url or not url.startswith(prefix):
            return None
        path = unquote(urlparse(url).path)
        base_path = unquote(urlparse(prefix).path)
        if not path.startswith(base_path):
            return None
        return path[len(base_path):] or None


class MemoryBlobStore(BlobStore):
    def __init__(self, base_url: str = "memory://blobs"):
        self.base_url = base_url
        self.objects: dict[str, tuple[bytes, str]] = {}

    def put(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (bytes(data), content_type)
        return self.url_for(path)

    def delete(self, path: str) -> None:
        self.objects.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self.objects

    def path_from_url(self, url: str) -> str | None:
        prefix = self.base_url.rstrip("/") + "/"
        if not url or not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):]) or None


class LocalBlobStore(BlobStore):
    """Blobs as files under ``root``; served by the API under ``base_url``."""

    def __init__(self, root: str, base_url: str):
        self.root = os.path.abspath(root)
        self.base_url = base_url

    def _resolve(self, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.root, path))
        if not full_path.startswith(self.root + os.sep):
            raise ValueError(f"Blob path escapes storage root: {path}")
        return full_path

    def put(self, path: str, data: bytes, content_type: str) -> str:
        full_path = self._resolve(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as fh:
            fh.write(data)
        logger.info(f"Stored blob {path} ({len(data)} bytes, {content_type})")
        return self.url_for(path)

    def delete(self, path: str) -> None:
        full_path = self._resolve(path)
        if os.path.isfile(full_path):
            os.remove(full_path)

    def exists(self, path: str) -> bool:
        return os.path.isfile(self._resolve(path))
