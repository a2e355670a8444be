"""
Backend Registry — tiered ciphertext storage.

Hides whether a blob lives only on this machine or on the content network.

Resolution order for reads:
  1. Local cache (keyed lookup, no network)
  2. Each configured gateway, in fixed order, one attempt each
  3. ContentNotFound

The first gateway that returns bytes hashing to the requested address wins;
those bytes are written back into the cache. Worst-case latency is bounded
by len(gateways) × fetch_timeout. No lock is held while a gateway is
being waited on.

Writes always land in the local cache first. If a remote is enabled the
blob is also pinned; a pinning failure degrades the result to local-only
instead of failing the write.
"""

import logging
import threading

import httpx

from storax import address as addressing
from storax.backends.gateway import GatewayClient
from storax.backends.local import CachedBlob, LocalCache
from storax.backends.pinning import PinningService
from storax.errors import BackendError, Cancelled, ContentNotFound, RemoteUnavailable
from storax.models import FetchResult, LocatorResult, ProbeResult

logger = logging.getLogger("storax.registry")

LOCAL_SOURCE = "local"


class BackendRegistry:
    """
    Local cache plus an ordered list of remote gateways.

    Args:
        cache: The local cache. Always present.
        gateways: Gateways to try on a cache miss, in order.
        pinning: Pinning service for uploads.
        remote_enabled: Whether puts are pushed to the pinning service.
            Defaults to True when a configured pinning service is given.
    """

    def __init__(
        self,
        cache: LocalCache,
        gateways: list[GatewayClient] = None,
        pinning: PinningService = None,
        remote_enabled: bool = None,
    ):
        self.cache = cache
        self._gateways = list(gateways or [])
        self.pinning = pinning
        if remote_enabled is None:
            remote_enabled = pinning is not None and pinning.is_configured()
        if remote_enabled and pinning is None:
            raise ValueError("remote_enabled requires a pinning service")
        self.remote_enabled = remote_enabled

    @classmethod
    def from_config(cls, config, client: httpx.Client = None) -> "BackendRegistry":
        """
        Build a registry from a StoraxConfig.

        Args:
            config: StoraxConfig with cache_dir and remote settings.
            client: Optional shared httpx.Client for every remote call.
        """
        remote = config.remote
        gateways = [
            GatewayClient(
                base,
                fetch_timeout=remote.fetch_timeout,
                probe_timeout=remote.probe_timeout,
                client=client,
            )
            for base in remote.gateways
        ]
        pinning = PinningService(
            remote.api_token,
            endpoint=remote.pinning_endpoint,
            timeout=remote.upload_timeout,
            client=client,
        )
        return cls(
            LocalCache(config.cache_dir),
            gateways=gateways,
            pinning=pinning,
            remote_enabled=remote.configured,
        )

    @property
    def gateways(self) -> list[str]:
        """Gateway base URLs in the order they are tried."""
        return [g.base_url for g in self._gateways]

    def gateway_url(self, address: str, preferred: str = None) -> str:
        """Public URL for an address on the preferred (or first) gateway."""
        base = preferred or (self._gateways[0].base_url if self._gateways else None)
        if base is None:
            return f"local://{address}"
        return f"{base}{address}"

    def put(self, address: str, data: bytes, file_name: str = None) -> LocatorResult:
        """
        Store a blob: local cache first, then the remote network if enabled.

        Args:
            address: Content address of data. Must match the bytes.
            data: The ciphertext.
            file_name: Name passed to the pinning service's metadata.

        Returns:
            LocatorResult. remote_unavailable is set when the remote upload
            was attempted and failed; the blob is then local-only.

        Raises:
            ValueError: address does not belong to data.
            BackendError: The local cache write failed.
        """
        if not addressing.matches(address, data):
            raise ValueError(f"Content address {address} does not match payload")

        self.cache.store(address, data)
        result = LocatorResult(content_address=address, cached_locally=True)

        if self.remote_enabled:
            try:
                result.remote_cid = self.pinning.upload(data, file_name or f"{address}.bin")
            except RemoteUnavailable as e:
                logger.warning("Remote upload of %s failed, keeping local copy only: %s", address, e)
                result.remote_unavailable = True
                result.remote_error = str(e)

        logger.info(
            "Stored %s (%d bytes, %s)",
            address, len(data), "pinned" if result.on_network else "local-only",
        )
        return result

    def fetch(
        self,
        address: str,
        cancel: threading.Event = None,
        remote_cid: str = None,
    ) -> FetchResult:
        """
        Fetch a blob and report where it came from.

        Args:
            address: Content address to resolve.
            cancel: Optional event. When set, no further gateway is tried and
                Cancelled is raised; partial bytes are discarded, never cached.
            remote_cid: Identifier assigned by the pinning service, used as the
                gateway path when known.

        Raises:
            ContentNotFound: Cache miss and every gateway failed.
            Cancelled: The caller aborted.
        """
        addressing.require_valid(address)
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"Fetch of {address} cancelled")

        data = self.cache.fetch(address)
        if data is not None:
            logger.debug("Cache hit for %s", address)
            return FetchResult(data=data, source=LOCAL_SOURCE)

        attempts = []
        for gateway in self._gateways:
            if cancel is not None and cancel.is_set():
                raise Cancelled(f"Fetch of {address} cancelled")
            attempts.append(gateway.base_url)
            logger.debug("Trying gateway %s for %s", gateway.base_url, address)
            try:
                data = gateway.fetch(address, cancel=cancel, path=remote_cid)
            except RemoteUnavailable as e:
                logger.warning("Gateway %s failed for %s: %s", gateway.base_url, address, e)
                continue

            if not addressing.matches(address, data):
                logger.warning(
                    "Gateway %s returned bytes that do not hash to %s", gateway.base_url, address
                )
                continue

            try:
                self.cache.store(address, data)
            except BackendError as e:
                logger.warning("Could not cache %s after gateway fetch: %s", address, e)

            logger.info("Retrieved %s from gateway %s", address, gateway.base_url)
            return FetchResult(data=data, source=gateway.base_url)

        raise ContentNotFound(address, attempts)

    def get(self, address: str, cancel: threading.Event = None, remote_cid: str = None) -> bytes:
        """Fetch a blob's bytes. See fetch()."""
        return self.fetch(address, cancel=cancel, remote_cid=remote_cid).data

    def probe(self, address: str, remote_cid: str = None) -> ProbeResult:
        """Availability check without transferring the payload."""
        addressing.require_valid(address)
        if self.cache.exists(address):
            return ProbeResult(available=True, source=LOCAL_SOURCE)
        for gateway in self._gateways:
            if gateway.exists(address, path=remote_cid):
                return ProbeResult(available=True, source=gateway.base_url)
        return ProbeResult(available=False)

    def remove(self, address: str) -> bool:
        """
        Evict a blob from the local cache. Remote pins are left alone.

        Idempotent: returns False if nothing was cached.
        """
        removed = self.cache.delete(address)
        if removed:
            logger.info("Removed %s from local cache", address)
        return removed

    def cached(self) -> list[CachedBlob]:
        """Everything currently in the local cache."""
        return self.cache.entries()

    def close(self):
        """Close any HTTP clients this registry created."""
        for gateway in self._gateways:
            gateway.close()
        if self.pinning is not None:
            self.pinning.close()

    def get_info(self) -> dict:
        return {
            "remote_enabled": self.remote_enabled,
            "cache": self.cache.get_info(),
            "gateways": self.gateways,
            "pinning": self.pinning.get_info() if self.pinning is not None else None,
        }
