"""
Settings provider.

Per-identity defaults copied onto each new object. The core only reads
settings; storing and editing them is somebody else's job.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

STORAGE_CHOICES = ("arweave", "ipfs", "both")
STRENGTH_CHOICES = ("standard", "high")


@dataclass(frozen=True)
class StorageSettings:
    """Defaults applied at object creation."""
    default_redundancy: int = 3
    default_shard_count: int = 32
    preferred_storage: str = "both"
    encryption_strength: str = "standard"

    def __post_init__(self):
        if self.default_redundancy < 1:
            raise ValueError("default_redundancy must be at least 1")
        if self.default_shard_count < 1:
            raise ValueError("default_shard_count must be at least 1")
        if self.preferred_storage not in STORAGE_CHOICES:
            raise ValueError(f"preferred_storage must be one of {STORAGE_CHOICES}")
        if self.encryption_strength not in STRENGTH_CHOICES:
            raise ValueError(f"encryption_strength must be one of {STRENGTH_CHOICES}")

    @classmethod
    def from_dict(cls, data: dict) -> "StorageSettings":
        """Merge a partial dict over the defaults, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class SettingsProvider(ABC):
    """Read-only source of StorageSettings."""

    @abstractmethod
    def get_settings(self) -> StorageSettings:
        """Current settings for the active identity."""


class StaticSettings(SettingsProvider):
    """Fixed settings, defaults unless given."""

    def __init__(self, settings: StorageSettings = None):
        self._settings = settings or StorageSettings()

    def get_settings(self) -> StorageSettings:
        return self._settings
