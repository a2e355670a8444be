"""
Data model for stored objects.

A StoredObject is the record of one encrypted upload. The bytes themselves
live in the backends; the record only knows how to find them (the locator,
a hint) and how to open them (the encryption material).
"""

import base64
from dataclasses import dataclass, field, replace
from enum import Enum

from storax.cipher import NONCE_SIZE, SALT_SIZE, TAG_SIZE


class ObjectStatus(Enum):
    """Verification lifecycle states."""
    PENDING = "pending"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ObjectStatus.VERIFIED, ObjectStatus.FAILED)


@dataclass(frozen=True)
class EncryptionMaterial:
    """Per-object salt and nonce. Useless without the identity secret."""
    salt: bytes
    nonce: bytes

    def __post_init__(self):
        if len(self.salt) != SALT_SIZE:
            raise ValueError(f"salt must be {SALT_SIZE} bytes")
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError(f"nonce must be {NONCE_SIZE} bytes")

    def to_dict(self) -> dict:
        return {
            "salt": base64.b64encode(self.salt).decode(),
            "iv": base64.b64encode(self.nonce).decode(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EncryptionMaterial":
        return cls(
            salt=base64.b64decode(data["salt"]),
            nonce=base64.b64decode(data["iv"]),
        )


@dataclass(frozen=True)
class BackendLocator:
    """
    Where the bytes were last seen. A hint only: always re-validated on read.
    """
    content_address: str
    cached_locally: bool = True
    remote_gateway: str | None = None   # gateway that last served the bytes
    remote_cid: str | None = None       # identifier the pinning service returned

    def to_dict(self) -> dict:
        return {
            "content_address": self.content_address,
            "cached_locally": self.cached_locally,
            "remote_gateway": self.remote_gateway,
            "remote_cid": self.remote_cid,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BackendLocator":
        return cls(
            content_address=data["content_address"],
            cached_locally=data.get("cached_locally", True),
            remote_gateway=data.get("remote_gateway"),
            remote_cid=data.get("remote_cid"),
        )


@dataclass
class LocatorResult:
    """Outcome of BackendRegistry.put()."""
    content_address: str
    cached_locally: bool
    remote_cid: str | None = None
    remote_unavailable: bool = False
    remote_error: str | None = None

    @property
    def on_network(self) -> bool:
        return self.remote_cid is not None

    def to_locator(self) -> BackendLocator:
        return BackendLocator(
            content_address=self.content_address,
            cached_locally=self.cached_locally,
            remote_cid=self.remote_cid,
        )


@dataclass
class FetchResult:
    """Bytes returned by BackendRegistry.get(), plus where they came from."""
    data: bytes
    source: str             # "local" or the gateway base URL

    @property
    def from_cache(self) -> bool:
        return self.source == "local"


@dataclass
class ProbeResult:
    """Outcome of BackendRegistry.probe()."""
    available: bool
    source: str | None = None

    def to_dict(self) -> dict:
        return {"available": self.available, "source": self.source}


@dataclass
class StoredObject:
    """
    Record of one encrypted upload.

    content_address is always hash(ciphertext), computed by the lifecycle
    manager. encrypted_size == original_size + 16 (the GCM tag).
    """
    id: str
    display_name: str
    file_name: str
    content_address: str
    original_size: int
    encrypted_size: int
    material: EncryptionMaterial
    locator: BackendLocator
    created_at: float
    status: ObjectStatus = ObjectStatus.PENDING
    verified_at: float | None = None

    # Storage metadata copied from settings at creation time
    redundancy: int = 3
    shard_count: int = 32
    preferred_storage: str = "both"
    encryption_strength: str = "standard"
    arweave_tx: str | None = None
    filecoin_deal: str | None = None

    # Opaque attestation tokens; nothing in this package verifies them
    proof_token: str = ""
    commitment: str = ""

    network_url: str | None = None
    on_network: bool = False
    failure_reason: str | None = None
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.original_size < 0 or self.encrypted_size < 0:
            raise ValueError("sizes must be non-negative")
        if self.encrypted_size != self.original_size + TAG_SIZE:
            raise ValueError(
                f"encrypted_size ({self.encrypted_size}) must equal "
                f"original_size + {TAG_SIZE} ({self.original_size + TAG_SIZE})"
            )

    def with_status(self, status: ObjectStatus, **changes) -> "StoredObject":
        """Copy of this record with a new status (and any other field changes)."""
        return replace(self, status=status, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "file_name": self.file_name,
            "content_address": self.content_address,
            "original_size": self.original_size,
            "encrypted_size": self.encrypted_size,
            "encryption": self.material.to_dict(),
            "locator": self.locator.to_dict(),
            "status": self.status.value,
            "created_at": self.created_at,
            "verified_at": self.verified_at,
            "redundancy": self.redundancy,
            "shard_count": self.shard_count,
            "preferred_storage": self.preferred_storage,
            "encryption_strength": self.encryption_strength,
            "arweave_tx": self.arweave_tx,
            "filecoin_deal": self.filecoin_deal,
            "proof_token": self.proof_token,
            "commitment": self.commitment,
            "network_url": self.network_url,
            "on_network": self.on_network,
            "failure_reason": self.failure_reason,
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoredObject":
        return cls(
            id=data["id"],
            display_name=data["display_name"],
            file_name=data["file_name"],
            content_address=data["content_address"],
            original_size=data["original_size"],
            encrypted_size=data["encrypted_size"],
            material=EncryptionMaterial.from_dict(data["encryption"]),
            locator=BackendLocator.from_dict(data["locator"]),
            status=ObjectStatus(data["status"]),
            created_at=data["created_at"],
            verified_at=data.get("verified_at"),
            redundancy=data.get("redundancy", 3),
            shard_count=data.get("shard_count", 32),
            preferred_storage=data.get("preferred_storage", "both"),
            encryption_strength=data.get("encryption_strength", "standard"),
            arweave_tx=data.get("arweave_tx"),
            filecoin_deal=data.get("filecoin_deal"),
            proof_token=data.get("proof_token", ""),
            commitment=data.get("commitment", ""),
            network_url=data.get("network_url"),
            on_network=data.get("on_network", False),
            failure_reason=data.get("failure_reason"),
            extra=data.get("extra", {}),
        )
