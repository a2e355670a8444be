"""
Object Store
One identity's collection of StoredObject records.

Constructed explicitly per identity and handed to the lifecycle manager;
there is no process-wide registry of identities. The store guards its own
dict with a lock private to this instance, so two identities never contend.

With a state_dir the collection is kept as JSON and reloaded on construction.
The file is named by a fingerprint of the identity, never the identity itself.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from storax.errors import BackendError, ObjectNotFound
from storax.models import ObjectStatus, StoredObject

logger = logging.getLogger("storax.store")


def identity_fingerprint(identity: str) -> str:
    """Short, non-reversible tag for an identity."""
    return hashlib.sha256(identity.encode("utf-8")).hexdigest()[:16]


class ObjectStore:
    """
    Args:
        identity: The identity this collection belongs to.
        state_dir: Directory for the JSON file. In-memory only if None.
    """

    def __init__(self, identity: str, state_dir: str | Path = None):
        self.identity = identity
        self.fingerprint = identity_fingerprint(identity)
        self.state_dir = Path(state_dir) if state_dir else None
        self._objects: dict[str, StoredObject] = {}
        self._lock = threading.Lock()

        if self.state_dir:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    @property
    def state_file(self) -> Path | None:
        if self.state_dir is None:
            return None
        return self.state_dir / f"objects-{self.fingerprint}.json"

    def _load(self):
        path = self.state_file
        if not path.exists():
            return
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable object state %s: %s", path, e)
            return
        for record in records:
            obj = StoredObject.from_dict(record)
            self._objects[obj.id] = obj
        logger.debug("Loaded %d objects from %s", len(self._objects), path)

    def _save(self, objects: dict[str, StoredObject]):
        """Write objects (newest first). Caller holds the lock."""
        path = self.state_file
        if path is None:
            return
        records = [o.to_dict() for o in _newest_first(objects)]
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.state_dir, prefix=".objects-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise BackendError(f"Could not persist object state to {path}: {e}") from e

    def _commit(self, objects: dict[str, StoredObject]):
        """Persist objects, then make them current. Nothing changes if the write fails."""
        self._save(objects)
        self._objects = objects

    def add(self, obj: StoredObject):
        with self._lock:
            if obj.id in self._objects:
                raise ValueError(f"Object {obj.id} already exists")
            self._commit({**self._objects, obj.id: obj})

    def find(self, object_id: str) -> StoredObject | None:
        with self._lock:
            return self._objects.get(object_id)

    def get(self, object_id: str) -> StoredObject:
        obj = self.find(object_id)
        if obj is None:
            raise ObjectNotFound(object_id)
        return obj

    def objects(self) -> list[StoredObject]:
        """All records, newest first. A snapshot: later changes don't show up in it."""
        with self._lock:
            return _newest_first(self._objects)

    def update(self, object_id: str, **changes) -> StoredObject | None:
        """Apply field changes. Returns None if the object no longer exists."""
        with self._lock:
            current = self._objects.get(object_id)
            if current is None:
                return None
            updated = current.with_status(changes.pop("status", current.status), **changes)
            self._commit({**self._objects, object_id: updated})
            return updated

    def transition(
        self,
        object_id: str,
        expected: ObjectStatus,
        new_status: ObjectStatus,
        **changes,
    ) -> StoredObject | None:
        """
        Move an object from expected to new_status atomically.

        Returns None, changing nothing, if the object is gone or is no
        longer in the expected state.
        """
        with self._lock:
            current = self._objects.get(object_id)
            if current is None or current.status is not expected:
                return None
            updated = current.with_status(new_status, **changes)
            self._commit({**self._objects, object_id: updated})
            return updated

    def remove(self, object_id: str) -> StoredObject | None:
        with self._lock:
            obj = self._objects.get(object_id)
            if obj is not None:
                remaining = dict(self._objects)
                del remaining[object_id]
                self._commit(remaining)
            return obj

    def __len__(self):
        with self._lock:
            return len(self._objects)

    def __contains__(self, object_id):
        with self._lock:
            return object_id in self._objects


def _newest_first(objects: dict[str, StoredObject]) -> list[StoredObject]:
    return sorted(objects.values(), key=lambda o: o.created_at, reverse=True)
