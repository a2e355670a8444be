"""Tests for the on-chain storage registry decoder."""

import struct
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from storax.onchain import (
    StorageRecordError,
    decode_storage_record,
    decode_storage_records,
)


def _string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def _record(cid="bafkreicid", arweave="ar-tx-1", deal="deal-42",
            redundancy=3, shards=32, slot=123_456_789_012, status=2) -> bytes:
    return (
        b"\x01" * 32
        + b"\x02" * 32
        + _string(cid)
        + _string(arweave)
        + _string(deal)
        + struct.pack("<HHQB", redundancy, shards, slot, status)
    )


def test_decode_full_record():
    record = decode_storage_record(_record(), "RegistryAccount1")
    assert record.address == "RegistryAccount1"
    assert record.owner == b"\x02" * 32
    assert record.cid == "bafkreicid"
    assert record.arweave_tx == "ar-tx-1"
    assert record.filecoin_deal == "deal-42"
    assert record.redundancy == 3
    assert record.shard_count == 32
    assert record.last_proof_slot == 123_456_789_012
    assert record.status == "Verified"
    assert record.to_dict()["lastProofSlot"] == 123_456_789_012
    assert record.to_dict()["arweaveTx"] == "ar-tx-1"
    print("  [PASS] Decode full record")


def test_status_mapping():
    expected = ["Pending", "Verifying", "Verified", "SlashProposed"]
    for index, name in enumerate(expected):
        assert decode_storage_record(_record(status=index), "a").status == name
    # Out of range falls back to Pending
    assert decode_storage_record(_record(status=9), "a").status == "Pending"
    print("  [PASS] Status index mapping with Pending default")


def test_empty_and_unicode_strings():
    record = decode_storage_record(_record(cid="", arweave="ärweave", deal=""), "a")
    assert record.cid == ""
    assert record.arweave_tx == "ärweave"
    print("  [PASS] Empty and non-ASCII strings")


def test_trailing_bytes_ignored():
    record = decode_storage_record(_record() + b"\xff" * 10, "a")
    assert record.status == "Verified"
    print("  [PASS] Trailing account padding is ignored")


def test_truncated_record():
    data = _record()
    for cut in [10, 64, 70, len(data) - 1]:
        try:
            decode_storage_record(data[:cut], "a")
            assert False, f"truncated at {cut} should fail"
        except StorageRecordError:
            pass
    print("  [PASS] Truncated records raise StorageRecordError")


def test_invalid_utf8():
    data = b"\x00" * 64 + struct.pack("<I", 2) + b"\xff\xfe"
    try:
        decode_storage_record(data, "a")
        assert False, "invalid UTF-8 should fail"
    except StorageRecordError:
        pass
    print("  [PASS] Invalid UTF-8 raises StorageRecordError")


def test_decode_many():
    records = decode_storage_records([("a", _record(status=0)), ("b", _record(status=1))])
    assert [(r.address, r.status) for r in records] == [("a", "Pending"), ("b", "Verifying")]
    print("  [PASS] Decode many")


if __name__ == "__main__":
    print("Testing on-chain registry decoder...\n")
    test_decode_full_record()
    test_status_mapping()
    test_empty_and_unicode_strings()
    test_trailing_bytes_ignored()
    test_truncated_record()
    test_invalid_utf8()
    test_decode_many()
    print(f"\n{'='*50}")
    print("All 7 decoder tests passed!")
