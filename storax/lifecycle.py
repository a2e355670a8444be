"""
Object Lifecycle Manager
Upload, download, delete and the verification tick.

Upload flow:
  1. Encrypt under the identity secret (fresh salt + nonce)
  2. Derive the content address from the ciphertext
  3. Put the ciphertext into the Backend Registry
  4. Create the record in PENDING and report it

Verification is simulated attestation. A background tick advances records:

  PENDING    age <  pending_delay
  VERIFYING  pending_delay <= age < pending_delay + verify_delay
  VERIFIED   age >= pending_delay + verify_delay      (terminal)
  FAILED     only via fail()                          (terminal)

The tick works from a snapshot of the store. Each transition is a
compare-and-set, so an object deleted mid-scan is skipped, never resurrected.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from storax import cipher
from storax.errors import BackendError
from storax.events import ActivityEvent, EventSink, EventType, LoggingEventSink, emit
from storax.models import BackendLocator, EncryptionMaterial, ObjectStatus, StoredObject
from storax.registry import BackendRegistry
from storax.settings import SettingsProvider, StaticSettings
from storax.store import ObjectStore

logger = logging.getLogger("storax.lifecycle")


@dataclass
class VerificationPolicy:
    """
    Timing of the verification lifecycle, in seconds.

    The two delays are additive: VERIFIED is reached pending_delay +
    verify_delay after creation.
    """
    tick_interval: float = 2.0
    pending_delay: float = 3.0
    verify_delay: float = 8.0

    def __post_init__(self):
        if self.tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        if self.pending_delay < 0 or self.verify_delay < 0:
            raise ValueError("delays must be non-negative")

    @property
    def verified_after(self) -> float:
        return self.pending_delay + self.verify_delay

    def status_at(self, created_at: float, now: float) -> ObjectStatus:
        """Where a non-failed object created at created_at should be at now."""
        age = now - created_at
        if age >= self.verified_after:
            return ObjectStatus.VERIFIED
        if age >= self.pending_delay:
            return ObjectStatus.VERIFYING
        return ObjectStatus.PENDING


_NEXT = {
    ObjectStatus.PENDING: ObjectStatus.VERIFYING,
    ObjectStatus.VERIFYING: ObjectStatus.VERIFIED,
}
_ORDER = [ObjectStatus.PENDING, ObjectStatus.VERIFYING, ObjectStatus.VERIFIED]


class LifecycleManager:
    """
    Owns one identity's objects and drives them through their lifecycle.

    Args:
        store: The identity's ObjectStore.
        registry: Where ciphertext is kept.
        sink: Receives activity events. Logs them if not given.
        settings: Source of redundancy/shard defaults.
        policy: Verification timing.
        clock: Returns the current time in seconds. time.time by default.
    """

    def __init__(
        self,
        store: ObjectStore,
        registry: BackendRegistry,
        sink: EventSink = None,
        settings: SettingsProvider = None,
        policy: VerificationPolicy = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.registry = registry
        self.sink = sink or LoggingEventSink()
        self.settings = settings or StaticSettings()
        self.policy = policy or VerificationPolicy()
        self.clock = clock

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # -- operations -------------------------------------------------------

    def upload(
        self,
        identity_secret: str | bytes,
        plaintext: bytes,
        display_name: str,
    ) -> StoredObject:
        """
        Encrypt, address and store a file.

        Returns:
            The new record, in PENDING.

        Raises:
            CryptoError: Encryption failed.
            BackendError: The local cache write or the record save failed. No record is created.
        """
        ciphertext, salt, nonce = cipher.encrypt(plaintext, identity_secret)
        address = cipher.content_address(ciphertext)
        file_name = f"encrypted_{secrets.token_hex(8)}.bin"

        placement = self.registry.put(address, ciphertext, file_name=file_name)

        settings = self.settings.get_settings()
        if placement.on_network:
            network_url = self.registry.gateway_url(placement.remote_cid)
        else:
            network_url = f"local://{address}"

        obj = StoredObject(
            id=secrets.token_hex(16),
            display_name=display_name,
            file_name=file_name,
            content_address=address,
            original_size=len(plaintext),
            encrypted_size=len(ciphertext),
            material=EncryptionMaterial(salt=salt, nonce=nonce),
            locator=placement.to_locator(),
            created_at=self.clock(),
            redundancy=settings.default_redundancy,
            shard_count=settings.default_shard_count,
            preferred_storage=settings.preferred_storage,
            encryption_strength=settings.encryption_strength,
            proof_token=f"0x{secrets.token_hex(32)}",
            commitment=secrets.token_hex(64),
            network_url=network_url,
            on_network=placement.on_network,
        )
        try:
            self.store.add(obj)
        except BackendError:
            self.registry.remove(address)
            raise

        logger.info("Uploaded object %s as %s", obj.id, address)
        self._emit(
            EventType.UPLOAD, obj,
            f"Uploaded and encrypted {display_name}",
            metadata={
                "size": obj.original_size,
                "encrypted_size": obj.encrypted_size,
                "remote_unavailable": placement.remote_unavailable,
            },
        )
        return obj

    def download(
        self,
        identity_secret: str | bytes,
        obj: StoredObject,
        cancel: threading.Event = None,
    ) -> bytes:
        """
        Fetch and decrypt an object.

        Raises:
            ContentNotFound: No backend could supply the bytes.
            AuthenticationError: Wrong identity secret or corrupted bytes.
            Cancelled: cancel was set while gateways were being tried.
        """
        fetched = self.registry.fetch(
            obj.content_address,
            cancel=cancel,
            remote_cid=obj.locator.remote_cid,
        )
        plaintext = cipher.decrypt(
            fetched.data, obj.material.salt, obj.material.nonce, identity_secret,
        )

        if not fetched.from_cache or not obj.locator.cached_locally:
            locator = BackendLocator(
                content_address=obj.content_address,
                cached_locally=True,
                remote_gateway=None if fetched.from_cache else fetched.source,
                remote_cid=obj.locator.remote_cid,
            )
            current = self.store.update(obj.id, locator=locator)
        else:
            current = self.store.find(obj.id)

        if current is None:
            # deleted while the fetch was in flight; undo any cache fill
            self.registry.remove(obj.content_address)
            logger.info("Object %s was deleted during download", obj.id)
            return plaintext

        self._emit(
            EventType.DOWNLOAD, obj,
            f"Downloaded and decrypted {obj.display_name}",
            metadata={"source": fetched.source},
        )
        return plaintext

    def delete(self, obj: StoredObject) -> bool:
        """
        Evict the local copy and drop the record. Not reversible.

        Returns:
            True if a record was dropped, False if it was already gone.
        """
        self.registry.remove(obj.content_address)
        removed = self.store.remove(obj.id)
        if removed is None:
            return False
        logger.info("Deleted object %s", obj.id)
        self._emit(EventType.DELETE, removed, f"Deleted {removed.display_name}")
        return True

    def fail(self, object_id: str, reason: str) -> StoredObject | None:
        """
        Move a non-terminal object to FAILED.

        Returns:
            The updated record, or None if it was missing or already terminal.
        """
        for status in (ObjectStatus.PENDING, ObjectStatus.VERIFYING):
            updated = self.store.transition(
                object_id, status, ObjectStatus.FAILED, failure_reason=reason,
            )
            if updated is not None:
                logger.warning("Object %s failed: %s", object_id, reason)
                self._emit(
                    EventType.FAILED, updated,
                    f"Verification failed for {updated.display_name}: {reason}",
                )
                return updated
        return None

    # -- verification tick ------------------------------------------------

    def tick(self, now: float = None) -> list[tuple[str, ObjectStatus, ObjectStatus]]:
        """
        Advance every non-terminal object to where the policy says it should be.

        An object that is overdue moves one step at a time, so every
        intermediate transition is still reported.

        Returns:
            (object_id, from_status, to_status) for each transition applied.
        """
        if now is None:
            now = self.clock()

        transitions = []
        for obj in self.store.objects():
            if obj.status.terminal:
                continue
            target = self.policy.status_at(obj.created_at, now)
            current = obj.status
            while _ORDER.index(current) < _ORDER.index(target):
                nxt = _NEXT[current]
                changes = {"verified_at": now} if nxt is ObjectStatus.VERIFIED else {}
                updated = self.store.transition(obj.id, current, nxt, **changes)
                if updated is None:
                    break  # deleted or failed since the snapshot
                transitions.append((obj.id, current, nxt))
                self._report_transition(updated)
                current = nxt
        return transitions

    def _report_transition(self, obj: StoredObject):
        if obj.status is ObjectStatus.VERIFIED:
            description = f"Storage proof verified for {obj.display_name}"
            event_type = EventType.VERIFIED
        else:
            description = f"Verifying storage proof for {obj.display_name}"
            event_type = EventType.VERIFYING
        logger.debug("Object %s -> %s", obj.id, obj.status.value)
        self._emit(event_type, obj, description)

    def start(self):
        """Run tick() every policy.tick_interval seconds on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"storax-lifecycle-{self.store.fingerprint}", daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = None):
        """Stop the background tick and wait for it to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        while not self._stop.wait(self.policy.tick_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Lifecycle tick failed")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()

    # -- reporting --------------------------------------------------------

    def objects(self) -> list[StoredObject]:
        return self.store.objects()

    def summary(self) -> dict:
        """Counts per status and total sizes, for dashboards."""
        objects = self.store.objects()
        counts = {status.value: 0 for status in ObjectStatus}
        for obj in objects:
            counts[obj.status.value] += 1
        return {
            "total": len(objects),
            "by_status": counts,
            "original_bytes": sum(o.original_size for o in objects),
            "encrypted_bytes": sum(o.encrypted_size for o in objects),
            "on_network": sum(1 for o in objects if o.on_network),
        }

    def _emit(self, event_type: EventType, obj: StoredObject, description: str, metadata=None):
        emit(self.sink, ActivityEvent(
            type=event_type,
            description=description,
            object_id=obj.id,
            file_name=obj.display_name,
            metadata=metadata or {},
            timestamp=self.clock(),
        ))

