"""
Storage backends for the Backend Registry.
Each backend implements one place ciphertext can live or be fetched from.
"""

from storax.backends.base import StorageBackend
from storax.backends.local import LocalCache, CachedBlob
from storax.backends.gateway import GatewayClient
from storax.backends.pinning import PinningService

__all__ = [
    "StorageBackend",
    "LocalCache",
    "CachedBlob",
    "GatewayClient",
    "PinningService",
]
