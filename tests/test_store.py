"""Tests for the per-identity object store, configuration and the client facade."""

import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from storax.cipher import encrypt, content_address
from storax.client import StoraxClient
from storax.config import DEFAULT_GATEWAYS, RemoteConfig, StoraxConfig, load_config
from storax.errors import ObjectNotFound
from storax.lifecycle import VerificationPolicy
from storax.models import BackendLocator, EncryptionMaterial, ObjectStatus, StoredObject
from storax.settings import StorageSettings
from storax.store import ObjectStore, identity_fingerprint


def _object(created_at=100.0, plaintext=b"hello"):
    ciphertext, salt, nonce = encrypt(plaintext, "alice")
    address = content_address(ciphertext)
    return StoredObject(
        id=f"{int(created_at):032x}",
        display_name="hello.txt",
        file_name="encrypted_0011223344556677.bin",
        content_address=address,
        original_size=len(plaintext),
        encrypted_size=len(ciphertext),
        material=EncryptionMaterial(salt=salt, nonce=nonce),
        locator=BackendLocator(content_address=address),
        created_at=created_at,
    )


def test_size_invariant_enforced():
    obj = _object()
    try:
        StoredObject(**{**obj.__dict__, "encrypted_size": obj.original_size})
        assert False, "size invariant should be enforced"
    except ValueError:
        pass
    print("  [PASS] encrypted_size == original_size + tag is enforced")


def test_object_dict_roundtrip():
    obj = _object()
    again = StoredObject.from_dict(json.loads(json.dumps(obj.to_dict())))
    assert again == obj
    assert again.material.salt == obj.material.salt
    print("  [PASS] StoredObject survives JSON serialization")


def test_store_add_get_remove():
    store = ObjectStore("alice")
    obj = _object()
    store.add(obj)
    assert store.get(obj.id) is obj
    assert obj.id in store
    assert len(store) == 1

    try:
        store.add(obj)
        assert False, "duplicate id should be rejected"
    except ValueError:
        pass

    assert store.remove(obj.id) is obj
    assert store.remove(obj.id) is None
    try:
        store.get(obj.id)
        assert False, "missing object should raise"
    except ObjectNotFound:
        pass
    print("  [PASS] Store add/get/remove")


def test_store_newest_first():
    store = ObjectStore("alice")
    old, new = _object(100.0), _object(200.0)
    store.add(old)
    store.add(new)
    assert [o.id for o in store.objects()] == [new.id, old.id]
    print("  [PASS] Store lists newest first")


def test_transition_compare_and_set():
    store = ObjectStore("alice")
    obj = _object()
    store.add(obj)

    moved = store.transition(obj.id, ObjectStatus.PENDING, ObjectStatus.VERIFYING)
    assert moved.status is ObjectStatus.VERIFYING
    # Stale expectation: nothing happens
    assert store.transition(obj.id, ObjectStatus.PENDING, ObjectStatus.VERIFYING) is None
    # Gone: nothing happens, nothing is re-created
    store.remove(obj.id)
    assert store.transition(obj.id, ObjectStatus.VERIFYING, ObjectStatus.VERIFIED) is None
    assert store.update(obj.id, display_name="x") is None
    assert len(store) == 0
    print("  [PASS] transition() is a compare-and-set")


def test_store_persistence():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ObjectStore("alice", state_dir=tmpdir)
        obj = _object()
        store.add(obj)
        store.transition(obj.id, ObjectStatus.PENDING, ObjectStatus.VERIFYING)

        reloaded = ObjectStore("alice", state_dir=tmpdir)
        assert reloaded.get(obj.id).status is ObjectStatus.VERIFYING

        # Identities do not see each other's objects
        assert len(ObjectStore("bob", state_dir=tmpdir)) == 0

        # The identity itself never appears in the file name
        files = [p.name for p in Path(tmpdir).iterdir()]
        assert files == [f"objects-{identity_fingerprint('alice')}.json"]
        assert "alice" not in files[0]
        print("  [PASS] Store persists per identity")


def test_remote_config():
    remote = RemoteConfig()
    assert not remote.configured
    assert remote.gateways == DEFAULT_GATEWAYS
    assert remote.fetch_timeout == 15.0

    assert not RemoteConfig(enabled=True, api_token="short").configured
    assert RemoteConfig(enabled=True, api_token="a-long-enough-token").configured

    env = {
        "STORAX_PINNING_TOKEN": "a-long-enough-token",
        "STORAX_GATEWAYS": "https://a.example/ipfs/, https://b.example/ipfs/",
    }
    from_env = RemoteConfig.from_env(env)
    assert from_env.configured
    assert from_env.gateways == ["https://a.example/ipfs/", "https://b.example/ipfs/"]
    assert from_env.to_dict()["api_token"] == "***"
    assert not RemoteConfig.from_env({}).configured
    print("  [PASS] RemoteConfig")


def test_load_config():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "storax.json"
        path.write_text(json.dumps({
            "cache_dir": str(Path(tmpdir) / "cache"),
            "state_dir": str(Path(tmpdir) / "state"),
            "remote": {"gateways": ["https://only.example/ipfs/"], "fetch_timeout": 3.0},
            "policy": {"tick_interval": 1.0, "pending_delay": 2.0, "verify_delay": 4.0},
        }))
        config = load_config(path)
        assert config.cache_dir == Path(tmpdir) / "cache"
        assert config.state_dir == Path(tmpdir) / "state"
        assert config.remote.gateways == ["https://only.example/ipfs/"]
        assert config.remote.fetch_timeout == 3.0
        assert config.policy == VerificationPolicy(1.0, 2.0, 4.0)
        assert StoraxConfig.from_dict({}).state_dir is None
        print("  [PASS] load_config")


def test_storage_settings():
    assert StorageSettings().default_redundancy == 3
    assert StorageSettings().default_shard_count == 32
    merged = StorageSettings.from_dict({"default_redundancy": 7, "theme": "dark"})
    assert merged.default_redundancy == 7
    assert merged.preferred_storage == "both"
    try:
        StorageSettings(preferred_storage="tape")
        assert False, "unknown storage choice should be rejected"
    except ValueError:
        pass
    print("  [PASS] StorageSettings")


def test_client_end_to_end():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = StoraxConfig(
            cache_dir=Path(tmpdir) / "cache",
            state_dir=Path(tmpdir) / "state",
            remote=RemoteConfig(gateways=[]),
        )
        with StoraxClient("alice", config=config, autostart=False) as client:
            obj = client.store_file(b"through the front door", "door.txt")
            assert client.retrieve(obj.content_address) == b"through the front door"
            assert client.download(obj.id) == b"through the front door"

            status = client.status(obj.id)
            assert status["status"] == "pending"
            assert status["availability"] == {"available": True, "source": "local"}

            assert [o.id for o in client.objects()] == [obj.id]
            assert client.delete(obj.id)
            try:
                client.retrieve(obj.content_address)
                assert False, "deleted object should be gone"
            except ObjectNotFound:
                pass
        print("  [PASS] StoraxClient store/retrieve/delete")


if __name__ == "__main__":
    print("Testing object store, config and client...\n")
    test_size_invariant_enforced()
    test_object_dict_roundtrip()
    test_store_add_get_remove()
    test_store_newest_first()
    test_transition_compare_and_set()
    test_store_persistence()
    test_remote_config()
    test_load_config()
    test_storage_settings()
    test_client_end_to_end()
    print(f"\n{'='*50}")
    print("All 10 store tests passed!")
