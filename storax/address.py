"""
Content Addressor
Names ciphertext blobs by their contents.

An address is a fixed, human-recognizable prefix followed by lowercase hex
taken from the SHA-256 digest of the exact bytes. The prefix marks the
content type, mimicking CIDv1 multibase strings:

  bafkreig...   raw ciphertext blobs (what the registry stores)
  bafybeig...   directory/DAG style content

Addresses are always derived, never accepted from a caller as truth.
validate() only checks shape; proving an address belongs to some bytes
requires the bytes (see matches()).
"""

import hashlib
import hmac
import string


RAW_PREFIX = "bafkreig"
DAG_PREFIX = "bafybeig"
PREFIXES = (RAW_PREFIX, DAG_PREFIX)

DIGEST_CHARS = 52  # hex characters of the SHA-256 digest kept in the address
ADDRESS_LENGTH = len(RAW_PREFIX) + DIGEST_CHARS

_HEX = frozenset(string.hexdigits.lower())


def address_for(data: bytes, prefix: str = RAW_PREFIX) -> str:
    """
    Compute the content address of a byte buffer.

    Pure function: the same bytes always give the same address.

    Args:
        data: The exact bytes (ciphertext) to name.
        prefix: Content-type prefix. Defaults to raw blobs.

    Returns:
        The address string, e.g. "bafkreig3f1c...".
    """
    if prefix not in PREFIXES:
        raise ValueError(f"Unknown address prefix: {prefix!r}")
    digest = hashlib.sha256(data).hexdigest()
    return f"{prefix}{digest[:DIGEST_CHARS]}"


def validate(address: str) -> bool:
    """Check prefix, length and charset. Does not (cannot) check contents."""
    if not isinstance(address, str) or len(address) != ADDRESS_LENGTH:
        return False
    prefix, body = address[:len(RAW_PREFIX)], address[len(RAW_PREFIX):]
    return prefix in PREFIXES and all(c in _HEX for c in body)


def matches(address: str, data: bytes) -> bool:
    """True if data hashes to address (under the address's own prefix)."""
    if not validate(address):
        return False
    expected = address_for(data, prefix=address[:len(RAW_PREFIX)])
    return hmac.compare_digest(expected, address)


def require_valid(address: str) -> str:
    """Return address unchanged, or raise ValueError if it is malformed."""
    if not validate(address):
        raise ValueError(f"Malformed content address: {address!r}")
    return address
