"""
Cipher Engine — identity-bound AES-256-GCM encryption.

Every object gets its own key:
  identity secret + fresh 16-byte salt → key (via PBKDF2-HMAC-SHA256)
  key + fresh 12-byte nonce → AES-256-GCM (16-byte tag appended)

Nothing here keeps state. The key lives only for the duration of a call;
it is never stored and never logged. To decrypt you need the identity
secret AND the salt/nonce kept alongside the object.
"""

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from storax.address import address_for
from storax.errors import AuthenticationError, CryptoError


PBKDF2_ITERATIONS = 100_000
SALT_SIZE = 16
NONCE_SIZE = 12   # 96-bit GCM nonce
KEY_SIZE = 32     # 256 bits
TAG_SIZE = 16     # GCM tag, appended to the ciphertext


def _secret_bytes(identity_secret: str | bytes) -> bytes:
    if isinstance(identity_secret, str):
        return identity_secret.encode("utf-8")
    return bytes(identity_secret)


def derive_key(identity_secret: str | bytes, salt: bytes) -> bytes:
    """Derive the 256-bit object key from the identity secret using PBKDF2."""
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(_secret_bytes(identity_secret))


def encrypt(plaintext: bytes, identity_secret: str | bytes) -> tuple[bytes, bytes, bytes]:
    """
    Encrypt plaintext under a fresh salt and nonce.

    Args:
        plaintext: Raw bytes to protect.
        identity_secret: The caller's identity secret (key derivation input).

    Returns:
        (ciphertext, salt, nonce). The ciphertext carries the 16-byte tag,
        so len(ciphertext) == len(plaintext) + TAG_SIZE.

    Raises:
        CryptoError: If the underlying primitive fails.
    """
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    try:
        key = derive_key(identity_secret, salt)
        ciphertext = AESGCM(key).encrypt(nonce, bytes(plaintext), None)
    except (TypeError, ValueError, OverflowError) as e:
        raise CryptoError(f"Encryption failed: {e}") from e
    return ciphertext, salt, nonce


def decrypt(
    ciphertext: bytes,
    salt: bytes,
    nonce: bytes,
    identity_secret: str | bytes,
) -> bytes:
    """
    Re-derive the key and authenticate + decrypt.

    AES-GCM checks the tag before releasing any plaintext, so a failure
    never yields partial output.

    Raises:
        AuthenticationError: Wrong identity secret, corrupted or tampered bytes.
        CryptoError: Malformed parameters (e.g. wrong nonce size).
    """
    if len(nonce) != NONCE_SIZE:
        raise CryptoError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    try:
        key = derive_key(identity_secret, salt)
    except ValueError as e:
        raise CryptoError(str(e)) from e
    try:
        return AESGCM(key).decrypt(nonce, bytes(ciphertext), None)
    except InvalidTag:
        raise AuthenticationError("Ciphertext failed authentication") from None


def content_address(ciphertext: bytes) -> str:
    """Content address of a ciphertext blob (see storax.address)."""
    return address_for(ciphertext)
