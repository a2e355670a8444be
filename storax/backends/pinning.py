"""
Pinning service connector.
Uploads ciphertext to a remote service that keeps it on the content
network and serves it through the public gateways.

HTTP contract:
  POST {endpoint}  multipart: file, pinataMetadata (JSON), pinataOptions (JSON)
  Authorization: Bearer {token}
  200 → {"IpfsHash": "<network identifier>", ...}

The network identifier is the service's own name for the bytes. It is kept
as a retrieval hint; it never replaces the locally derived content address.
"""

import json
import logging
import time

import httpx

from storax.errors import RemoteUnavailable

logger = logging.getLogger("storax.backends.pinning")

DEFAULT_ENDPOINT = "https://api.pinata.cloud/pinning/pinFileToIPFS"
DEFAULT_UPLOAD_TIMEOUT = 60.0
MIN_TOKEN_LENGTH = 10
APP_TAG = "storax"


class PinningService:
    """
    Remote pinning endpoint.

    Args:
        api_token: Bearer token for the service.
        endpoint: Upload URL.
        timeout: Per-upload timeout in seconds.
        client: Shared httpx.Client. One is created lazily if not given.
    """

    def __init__(
        self,
        api_token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT,
        client: httpx.Client = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._api_token = api_token or ""
        self._client = client
        self._owns_client = client is None

    def _connect(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self):
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def is_configured(self) -> bool:
        """A usable token is present."""
        return len(self._api_token) > MIN_TOKEN_LENGTH

    def upload(self, data: bytes, file_name: str) -> str:
        """
        Pin a blob.

        Args:
            data: Ciphertext to upload.
            file_name: Name to attach in the service's metadata.

        Returns:
            The network identifier from the response body.

        Raises:
            RemoteUnavailable: Not configured, transport error, non-success
                status or a response without an identifier.
        """
        if not self.is_configured():
            raise RemoteUnavailable("Pinning service is not configured")

        metadata = {
            "name": file_name,
            "keyvalues": {"app": APP_TAG, "timestamp": str(int(time.time() * 1000))},
        }
        options = {"cidVersion": 1}

        try:
            response = self._connect().post(
                self.endpoint,
                headers={"Authorization": f"Bearer {self._api_token}"},
                files={"file": (file_name, data, "application/octet-stream")},
                data={
                    "pinataMetadata": json.dumps(metadata),
                    "pinataOptions": json.dumps(options),
                },
                timeout=httpx.Timeout(self.timeout),
            )
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"Pinning upload failed: {e}") from e

        if not response.is_success:
            raise RemoteUnavailable(
                f"Pinning upload failed: HTTP {response.status_code} {response.text[:200]}"
            )

        try:
            network_id = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteUnavailable("Pinning response carried no identifier") from e

        logger.info("Pinned %s (%d bytes) as %s", file_name, len(data), network_id)
        return network_id

    def get_info(self) -> dict:
        return {
            "backend": "pinning",
            "endpoint": self.endpoint,
            "configured": self.is_configured(),
        }
