"""
Storax — Encrypted Content-Addressed Storage
Client-side encryption, content addressing and tiered storage for files.

Three layers:
1. Cipher — AES-256-GCM under a key derived from the caller's identity secret
2. Registry — local cache first, public gateways in fixed order, optional pinning
3. Lifecycle — per-identity object records moving Pending → Verifying → Verified

The content address is always the hash of the ciphertext. It is computed
here and never taken from the caller.

Usage:
    from storax import LifecycleManager, ObjectStore, BackendRegistry, LocalCache
    registry = BackendRegistry(LocalCache("./cache"))
    manager = LifecycleManager(ObjectStore("alice"), registry)
    obj = manager.upload("alice", b"hello", "hello.txt")
    manager.download("alice", obj)
"""

from storax.address import address_for, validate as validate_address
from storax.backends import GatewayClient, LocalCache, PinningService
from storax.cipher import decrypt, derive_key, encrypt, content_address
from storax.client import StoraxClient
from storax.config import RemoteConfig, StoraxConfig, load_config
from storax.errors import (
    StoraxError,
    CryptoError,
    AuthenticationError,
    BackendError,
    RemoteUnavailable,
    ContentNotFound,
    Cancelled,
    ObjectNotFound,
)
from storax.events import ActivityEvent, EventSink, EventType, LoggingEventSink
from storax.lifecycle import LifecycleManager, VerificationPolicy
from storax.models import (
    BackendLocator,
    EncryptionMaterial,
    LocatorResult,
    ObjectStatus,
    ProbeResult,
    StoredObject,
)
from storax.onchain import StorageRecord, decode_storage_record
from storax.registry import BackendRegistry
from storax.settings import SettingsProvider, StaticSettings, StorageSettings
from storax.store import ObjectStore

__version__ = "0.1.0"
__all__ = [
    "address_for",
    "validate_address",
    "derive_key",
    "encrypt",
    "decrypt",
    "content_address",
    "LocalCache",
    "GatewayClient",
    "PinningService",
    "BackendRegistry",
    "ObjectStore",
    "LifecycleManager",
    "StoraxClient",
    "VerificationPolicy",
    "RemoteConfig",
    "StoraxConfig",
    "load_config",
    "SettingsProvider",
    "StaticSettings",
    "StorageSettings",
    "EventSink",
    "LoggingEventSink",
    "ActivityEvent",
    "EventType",
    "BackendLocator",
    "EncryptionMaterial",
    "LocatorResult",
    "ObjectStatus",
    "ProbeResult",
    "StoredObject",
    "StorageRecord",
    "decode_storage_record",
    "StoraxError",
    "CryptoError",
    "AuthenticationError",
    "BackendError",
    "RemoteUnavailable",
    "ContentNotFound",
    "Cancelled",
    "ObjectNotFound",
]
