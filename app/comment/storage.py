# app/comment/storage.py
import hashlib
import hmac
import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    def upload(self, name: str, data: bytes) -> bool: ...

    def delete(self, name: str) -> bool: ...

    def get_signed_url(self, name: str) -> str: ...


class LocalBlobStorage:
    """Stores attachments in a directory and hands out expiring HMAC-signed URLs."""

    def __init__(self, root: str | Path, base_url: str, signing_key: str, ttl_seconds: int = 3600):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.signing_key = signing_key.encode()
        self.ttl_seconds = ttl_seconds

    def _path(self, name: str) -> Path:
        path = (self.root / name).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Invalid blob name '{name}'")
        return path

    def upload(self, name: str, data: bytes) -> bool:
        try:
            path = self._path(name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except (OSError, ValueError):
            logger.exception("Failed to store blob %s.", name)
            return False
        return True

    def delete(self, name: str) -> bool:
        try:
            self._path(name).unlink(missing_ok=True)
        except (OSError, ValueError):
            logger.exception("Failed to delete blob %s.", name)
            return False
        return True

    def read(self, name: str) -> bytes | None:
        path = self._path(name)
        return path.read_bytes() if path.is_file() else None

    def _signature(self, name: str, expires: int) -> str:
        message = f"{name}:{expires}".encode()
        return hmac.new(self.signing_key, message, hashlib.sha256).hexdigest()

    def get_signed_url(self, name: str) -> str:
        expires = int(time.time()) + self.ttl_seconds
        return f"{self.base_url}/{name}?expires={expires}&sig={self._signature(name, expires)}"

    def verify(self, name: str, expires: int, sig: str) -> bool:
        if expires < int(time.time()):
            return False
        return hmac.compare_digest(self._signature(name, expires), sig)


@lru_cache
def get_blob_storage() -> BlobStorage:
    settings = get_settings()
    return LocalBlobStorage(
        settings.BLOB_DIR,
        settings.BLOB_BASE_URL,
        settings.BLOB_SIGNING_KEY,
        settings.BLOB_URL_TTL_SECONDS,
    )
