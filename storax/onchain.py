"""
On-chain storage registry decoder.

Turns the raw account data of a registry entry into a StorageRecord.
Pure and stateless; it has nothing to do with encryption or the backends.

Layout (little-endian):
  32 bytes   registry key
  32 bytes   owner key
  u32 + utf8 cid
  u32 + utf8 arweave transaction id
  u32 + utf8 storage deal id
  u16        redundancy
  u16        shard count
  u64        last proof slot
  u8         status index
"""

import struct
from dataclasses import dataclass
from typing import Iterable

KEY_SIZE = 32
STATUSES = ["Pending", "Verifying", "Verified", "SlashProposed"]
DEFAULT_STATUS = "Pending"

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class StorageRecordError(ValueError):
    """Account data is too short or malformed."""


@dataclass(frozen=True)
class StorageRecord:
    """Decoded registry entry."""
    address: str
    owner: bytes
    cid: str
    arweave_tx: str
    filecoin_deal: str
    redundancy: int
    shard_count: int
    last_proof_slot: int
    status: str

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "cid": self.cid,
            "arweaveTx": self.arweave_tx,
            "filecoinDeal": self.filecoin_deal,
            "redundancy": self.redundancy,
            "shardCount": self.shard_count,
            "lastProofSlot": self.last_proof_slot,
            "status": self.status,
        }


class _Cursor:
    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.offset = 0

    def take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise StorageRecordError(
                f"Record truncated: need {n} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.take(fmt.size))[0]

    def string(self) -> str:
        length = self.unpack(_U32)
        try:
            return self.take(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageRecordError(f"Invalid UTF-8 string at offset {self.offset}") from e


def decode_storage_record(data: bytes, address: str) -> StorageRecord:
    """
    Decode one registry entry.

    Args:
        data: Raw account bytes.
        address: The account's address, as rendered by the caller.

    Raises:
        StorageRecordError: If the data is truncated or a string is not UTF-8.
    """
    cursor = _Cursor(data)
    cursor.take(KEY_SIZE)              # registry
    owner = cursor.take(KEY_SIZE)

    cid = cursor.string()
    arweave_tx = cursor.string()
    filecoin_deal = cursor.string()

    redundancy = cursor.unpack(_U16)
    shard_count = cursor.unpack(_U16)
    last_proof_slot = cursor.unpack(_U64)
    status_index = cursor.take(1)[0]

    status = STATUSES[status_index] if status_index < len(STATUSES) else DEFAULT_STATUS

    return StorageRecord(
        address=address,
        owner=owner,
        cid=cid,
        arweave_tx=arweave_tx,
        filecoin_deal=filecoin_deal,
        redundancy=redundancy,
        shard_count=shard_count,
        last_proof_slot=last_proof_slot,
        status=status,
    )


def decode_storage_records(accounts: Iterable[tuple[str, bytes]]) -> list[StorageRecord]:
    """Decode (address, data) pairs, in order."""
    return [decode_storage_record(data, address) for address, data in accounts]
