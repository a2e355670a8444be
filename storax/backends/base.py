"""
Base class for all storage backends.
Every place that can hand back ciphertext by content address implements this.
"""

from abc import ABC, abstractmethod
import threading


class StorageBackend(ABC):
    """Abstract base class for content-addressed byte storage."""

    @abstractmethod
    def fetch(
        self,
        address: str,
        cancel: threading.Event | None = None,
        path: str | None = None,
    ) -> bytes | None:
        """
        Return the bytes stored under address.

        Args:
            address: Content address of the blob.
            cancel: Optional event; when set the backend stops and raises Cancelled.
            path: Backend-specific name to fetch instead of the address
                (e.g. the identifier a pinning service assigned).

        Returns:
            The bytes, or None if this backend does not hold them.
        """

    @abstractmethod
    def exists(self, address: str, path: str | None = None) -> bool:
        """Cheap availability check that avoids transferring the payload."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this backend is usable at all."""

    @abstractmethod
    def get_info(self) -> dict:
        """Get metadata about this backend (kind, location, status)."""
