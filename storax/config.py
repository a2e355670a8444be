"""
Configuration objects.

Everything the core needs is passed in explicitly. Nothing here is read
from the environment unless a caller hands a mapping to from_env().
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Mapping

from storax.backends.gateway import DEFAULT_FETCH_TIMEOUT, DEFAULT_PROBE_TIMEOUT
from storax.backends.pinning import DEFAULT_ENDPOINT, DEFAULT_UPLOAD_TIMEOUT, MIN_TOKEN_LENGTH
from storax.lifecycle import VerificationPolicy


# Public gateways, tried in this order on a cache miss
DEFAULT_GATEWAYS = [
    "https://ipfs.io/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
    "https://dweb.link/ipfs/",
    "https://w3s.link/ipfs/",
    "https://4everland.io/ipfs/",
]


@dataclass
class RemoteConfig:
    """Remote content network settings."""
    enabled: bool = False
    api_token: str = ""
    pinning_endpoint: str = DEFAULT_ENDPOINT
    gateways: list[str] = field(default_factory=lambda: list(DEFAULT_GATEWAYS))
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT

    @property
    def configured(self) -> bool:
        """Uploads are attempted only when enabled with a plausible token."""
        return self.enabled and len(self.api_token) > MIN_TOKEN_LENGTH

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "RemoteConfig":
        """
        Build from an environment-like mapping.

        Reads STORAX_PINNING_TOKEN, STORAX_PINNING_ENDPOINT and
        STORAX_GATEWAYS (comma separated). The caller decides what to pass,
        typically os.environ.
        """
        token = environ.get("STORAX_PINNING_TOKEN", "")
        gateways = [
            g.strip() for g in environ.get("STORAX_GATEWAYS", "").split(",") if g.strip()
        ]
        return cls(
            enabled=bool(token),
            api_token=token,
            pinning_endpoint=environ.get("STORAX_PINNING_ENDPOINT", DEFAULT_ENDPOINT),
            gateways=gateways or list(DEFAULT_GATEWAYS),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["api_token"] = "***" if self.api_token else ""
        return data


@dataclass
class StoraxConfig:
    """Top-level configuration for one client."""
    cache_dir: Path = Path("./storax-cache")
    state_dir: Path | None = None
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    policy: VerificationPolicy = field(default_factory=VerificationPolicy)

    @classmethod
    def from_dict(cls, data: dict) -> "StoraxConfig":
        remote = RemoteConfig(**data.get("remote", {}))
        policy = VerificationPolicy(**data.get("policy", {}))
        state_dir = data.get("state_dir")
        return cls(
            cache_dir=Path(data.get("cache_dir", "./storax-cache")).expanduser(),
            state_dir=Path(state_dir).expanduser() if state_dir else None,
            remote=remote,
            policy=policy,
        )


def load_config(path: str | Path) -> StoraxConfig:
    """Load a StoraxConfig from a JSON file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return StoraxConfig.from_dict(data)
