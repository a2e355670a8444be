"""
StoraxClient: one identity's view of the whole system.

Wires a config into the registry, store and lifecycle manager, and offers
the entry points a front-end needs:

  store(plaintext, name)     encrypt → address → put → PENDING record
  retrieve(address)          cache/gateways → decrypt → plaintext
  delete(object_id)          evict local copy, drop record
  status(object_id)          record + live availability probe

The background verification tick runs while the client is open.
"""

import threading

import httpx

from storax.config import StoraxConfig
from storax.errors import ObjectNotFound
from storax.events import EventSink
from storax.lifecycle import LifecycleManager
from storax.models import StoredObject
from storax.registry import BackendRegistry
from storax.settings import SettingsProvider
from storax.store import ObjectStore


class StoraxClient:
    """
    Args:
        identity_secret: The identity's secret. Used for key derivation and
            to scope the object collection.
        config: Where to cache, persist and which remote to use.
        sink: Activity event sink.
        settings: Defaults for new objects.
        client: Shared httpx.Client for remote calls.
        autostart: Start the verification tick immediately.
    """

    def __init__(
        self,
        identity_secret: str,
        config: StoraxConfig = None,
        sink: EventSink = None,
        settings: SettingsProvider = None,
        client: httpx.Client = None,
        autostart: bool = True,
    ):
        self.config = config or StoraxConfig()
        self._secret = identity_secret
        self.registry = BackendRegistry.from_config(self.config, client=client)
        self.store = ObjectStore(identity_secret, state_dir=self.config.state_dir)
        self.manager = LifecycleManager(
            self.store,
            self.registry,
            sink=sink,
            settings=settings,
            policy=self.config.policy,
        )
        if autostart:
            self.manager.start()

    def store_file(self, plaintext: bytes, name: str) -> StoredObject:
        """Encrypt and store; returns the new PENDING record."""
        return self.manager.upload(self._secret, plaintext, name)

    def retrieve(self, address: str, cancel: threading.Event = None) -> bytes:
        """Fetch and decrypt the object stored under address."""
        return self.manager.download(self._secret, self._by_address(address), cancel=cancel)

    def download(self, object_id: str, cancel: threading.Event = None) -> bytes:
        return self.manager.download(self._secret, self.store.get(object_id), cancel=cancel)

    def delete(self, object_id: str) -> bool:
        return self.manager.delete(self.store.get(object_id))

    def status(self, object_id: str) -> dict:
        """The stored record plus whether its bytes can be reached right now."""
        obj = self.store.get(object_id)
        probe = self.registry.probe(obj.content_address, remote_cid=obj.locator.remote_cid)
        return {
            "id": obj.id,
            "status": obj.status.value,
            "verified_at": obj.verified_at,
            "content_address": obj.content_address,
            "availability": probe.to_dict(),
        }

    def objects(self) -> list[StoredObject]:
        return self.manager.objects()

    def _by_address(self, address: str) -> StoredObject:
        for obj in self.store.objects():
            if obj.content_address == address:
                return obj
        raise ObjectNotFound(address)

    def close(self):
        self.manager.stop()
        self.registry.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
