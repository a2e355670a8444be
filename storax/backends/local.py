"""
Local cache backend.
The durability floor: every put lands here first, every get looks here first.

Blobs are plain files named by content address inside one directory.
Writes go to a temp file and are renamed into place, so concurrent writers
of the same (address, bytes) pair simply overwrite each other with
identical content and readers never see a half-written blob.
"""

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from storax.address import require_valid
from storax.backends.base import StorageBackend
from storax.errors import BackendError

logger = logging.getLogger("storax.backends.local")

BLOB_SUFFIX = ".blob"


@dataclass
class CachedBlob:
    """One entry in the local cache."""
    address: str
    size: int
    modified: float


class LocalCache(StorageBackend):
    """
    Directory-backed blob cache keyed by content address.

    Args:
        cache_dir: Directory holding the blobs. Created if missing.
    """

    def __init__(self, cache_dir: str | Path):
        self.cache_dir = Path(cache_dir)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError(f"Cannot create cache directory {self.cache_dir}: {e}") from e

    def _blob_path(self, address: str) -> Path:
        return self.cache_dir / f"{require_valid(address)}{BLOB_SUFFIX}"

    def store(self, address: str, data: bytes) -> bool:
        """
        Write bytes under address.

        Idempotent: a repeated store of identical bytes is a no-op.

        Returns:
            True if a write happened, False if the blob was already present.

        Raises:
            BackendError: If the filesystem write fails.
        """
        path = self._blob_path(address)
        try:
            if path.exists() and path.stat().st_size == len(data) and path.read_bytes() == data:
                return False

            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise BackendError(f"Local cache write failed for {address}: {e}") from e

        logger.debug("Cached %s (%d bytes)", address, len(data))
        return True

    def fetch(
        self,
        address: str,
        cancel: threading.Event | None = None,
        path: str | None = None,
    ) -> bytes | None:
        try:
            return self._blob_path(address).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BackendError(f"Local cache read failed for {address}: {e}") from e

    def exists(self, address: str, path: str | None = None) -> bool:
        return self._blob_path(address).exists()

    def delete(self, address: str) -> bool:
        """Remove a blob. Returns False (never raises) if it was not cached."""
        try:
            self._blob_path(address).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BackendError(f"Local cache delete failed for {address}: {e}") from e
        logger.debug("Evicted %s from local cache", address)
        return True

    def entries(self) -> list[CachedBlob]:
        """All cached blobs, most recently written first."""
        blobs = []
        for path in self.cache_dir.glob(f"*{BLOB_SUFFIX}"):
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue  # removed while listing
            blobs.append(CachedBlob(
                address=path.name[:-len(BLOB_SUFFIX)],
                size=stat.st_size,
                modified=stat.st_mtime,
            ))
        blobs.sort(key=lambda b: b.modified, reverse=True)
        return blobs

    def is_available(self) -> bool:
        return self.cache_dir.is_dir()

    def get_info(self) -> dict:
        blobs = self.entries()
        return {
            "backend": "local",
            "cache_dir": str(self.cache_dir),
            "blobs": len(blobs),
            "total_bytes": sum(b.size for b in blobs),
        }
