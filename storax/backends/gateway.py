"""
HTTP gateway backend.
One public gateway of the content network: GET {base}{address} for bytes,
HEAD {base}{address} for availability.

Each attempt carries its own hard deadline. httpx timeouts bound each
connect/read individually; the deadline additionally bounds the whole
transfer so a gateway that trickles bytes cannot hold a caller forever.
Partially received bytes are dropped on any failure.
"""

import logging
import threading
import time

import httpx

from storax.backends.base import StorageBackend
from storax.errors import Cancelled, RemoteUnavailable

logger = logging.getLogger("storax.backends.gateway")

DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_PROBE_TIMEOUT = 5.0


class GatewayClient(StorageBackend):
    """
    Read-only access to one gateway.

    Args:
        base_url: Gateway prefix, e.g. "https://ipfs.io/ipfs/". The address is appended as-is.
        fetch_timeout: Hard per-attempt limit for GET, in seconds.
        probe_timeout: Limit for HEAD, in seconds.
        client: Shared httpx.Client. One is created lazily if not given.
    """

    def __init__(
        self,
        base_url: str,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        client: httpx.Client = None,
    ):
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = base_url
        self.fetch_timeout = fetch_timeout
        self.probe_timeout = probe_timeout
        self._client = client
        self._owns_client = client is None

    def _connect(self) -> httpx.Client:
        """Lazy client creation."""
        if self._client is None:
            self._client = httpx.Client(follow_redirects=True)
        return self._client

    def close(self):
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def url_for(self, address: str) -> str:
        return f"{self.base_url}{address}"

    def fetch(
        self,
        address: str,
        cancel: threading.Event | None = None,
        path: str | None = None,
    ) -> bytes | None:
        """
        Download the blob from this gateway.

        Returns:
            The complete body on a 2xx response.

        Raises:
            RemoteUnavailable: Timeout, transport error or non-success status.
            Cancelled: The cancel event was set before or during the transfer.
        """
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"Fetch of {address} cancelled")

        url = self.url_for(path or address)
        deadline = time.monotonic() + self.fetch_timeout
        client = self._connect()
        chunks = []
        try:
            with client.stream("GET", url, timeout=httpx.Timeout(self.fetch_timeout)) as response:
                if not response.is_success:
                    raise RemoteUnavailable(f"{url} returned HTTP {response.status_code}")
                for chunk in response.iter_bytes():
                    if cancel is not None and cancel.is_set():
                        raise Cancelled(f"Fetch of {address} cancelled")
                    if time.monotonic() > deadline:
                        raise RemoteUnavailable(
                            f"{url} exceeded {self.fetch_timeout}s deadline"
                        )
                    chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise RemoteUnavailable(f"{url} timed out after {self.fetch_timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteUnavailable(f"{url} failed: {e}") from e

        return b"".join(chunks)

    def exists(self, address: str, path: str | None = None) -> bool:
        """HEAD request. Any failure counts as not available."""
        url = self.url_for(path or address)
        try:
            response = self._connect().head(url, timeout=httpx.Timeout(self.probe_timeout))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Probe of %s failed: %s", url, e)
            return False
        return response.is_success

    def is_available(self) -> bool:
        return True

    def get_info(self) -> dict:
        return {
            "backend": "gateway",
            "base_url": self.base_url,
            "fetch_timeout": self.fetch_timeout,
            "probe_timeout": self.probe_timeout,
        }
