"""Tests for the Cipher Engine and the Content Addressor."""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from storax import address
from storax.cipher import (
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    content_address,
    decrypt,
    derive_key,
    encrypt,
)
from storax.errors import AuthenticationError, CryptoError


def test_roundtrip():
    """decrypt(encrypt(P, S), S) == P for assorted sizes."""
    for plaintext in [b"", b"x", b"hello world", os.urandom(4096)]:
        ciphertext, salt, nonce = encrypt(plaintext, "alice")
        assert len(salt) == SALT_SIZE
        assert len(nonce) == NONCE_SIZE
        assert len(ciphertext) == len(plaintext) + TAG_SIZE
        assert decrypt(ciphertext, salt, nonce, "alice") == plaintext
    print("  [PASS] Encrypt/decrypt roundtrip")


def test_bytes_and_str_secrets_agree():
    ciphertext, salt, nonce = encrypt(b"data", "alice")
    assert decrypt(ciphertext, salt, nonce, b"alice") == b"data"
    print("  [PASS] str and bytes secrets derive the same key")


def test_wrong_secret_fails_authentication():
    ciphertext, salt, nonce = encrypt(b"sensitive", "alice")
    try:
        decrypt(ciphertext, salt, nonce, "bob")
        assert False, "wrong secret should not decrypt"
    except AuthenticationError:
        pass
    print("  [PASS] Wrong secret raises AuthenticationError")


def test_tampered_ciphertext_fails_authentication():
    ciphertext, salt, nonce = encrypt(b"sensitive data", "alice")
    tampered = bytearray(ciphertext)
    tampered[0] ^= 0x01
    try:
        decrypt(bytes(tampered), salt, nonce, "alice")
        assert False, "tampered ciphertext should not decrypt"
    except AuthenticationError:
        pass

    # Truncating the tag is tampering too
    try:
        decrypt(ciphertext[:-1], salt, nonce, "alice")
        assert False, "truncated ciphertext should not decrypt"
    except AuthenticationError:
        pass
    print("  [PASS] Tampered ciphertext raises AuthenticationError")


def test_bad_nonce_is_crypto_error():
    ciphertext, salt, _ = encrypt(b"abc", "alice")
    try:
        decrypt(ciphertext, salt, b"short", "alice")
        assert False, "short nonce should be rejected"
    except CryptoError:
        pass
    print("  [PASS] Malformed nonce raises CryptoError")


def test_derive_key_deterministic():
    salt = os.urandom(SALT_SIZE)
    k1 = derive_key("alice", salt)
    k2 = derive_key("alice", salt)
    assert k1 == k2
    assert len(k1) == 32
    assert derive_key("bob", salt) != k1
    assert derive_key("alice", os.urandom(SALT_SIZE)) != k1

    try:
        derive_key("alice", b"too-short")
        assert False, "short salt should be rejected"
    except ValueError:
        pass
    print("  [PASS] Key derivation is deterministic")


def test_fresh_material_each_encryption():
    """Same plaintext, same secret → different ciphertexts and addresses."""
    c1, s1, n1 = encrypt(b"same file", "alice")
    c2, s2, n2 = encrypt(b"same file", "alice")
    assert s1 != s2
    assert n1 != n2
    assert c1 != c2
    assert content_address(c1) != content_address(c2)
    print("  [PASS] Fresh salt/nonce per encryption")


def test_content_address_pure():
    data = os.urandom(100)
    a1 = content_address(data)
    a2 = content_address(data)
    assert a1 == a2
    assert a1.startswith(address.RAW_PREFIX)
    assert len(a1) == address.ADDRESS_LENGTH
    assert content_address(data + b"\x00") != a1
    print("  [PASS] Content address is a pure function of the bytes")


def test_address_known_vector():
    # sha256(b"") = e3b0c442...b855
    expected = "bafkreig" + "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"[:52]
    assert address.address_for(b"") == expected
    assert address.address_for(b"", prefix=address.DAG_PREFIX).startswith("bafybeig")
    print("  [PASS] Address matches known SHA-256 vector")


def test_validate_shape_only():
    good = address.address_for(b"payload")
    assert address.validate(good)
    assert address.validate(address.address_for(b"payload", prefix=address.DAG_PREFIX))
    assert not address.validate(good[:-1])
    assert not address.validate(good + "0")
    assert not address.validate("Qm" + good[2:])
    assert not address.validate(good[:-1] + "Z")
    assert not address.validate(good.upper())
    assert not address.validate(None)
    print("  [PASS] validate() checks prefix, length and charset")


def test_matches_requires_bytes():
    addr = address.address_for(b"payload")
    assert address.matches(addr, b"payload")
    assert not address.matches(addr, b"other")
    assert not address.matches("garbage", b"payload")
    try:
        address.address_for(b"x", prefix="nope")
        assert False, "unknown prefix should be rejected"
    except ValueError:
        pass
    print("  [PASS] matches() binds an address to its bytes")


if __name__ == "__main__":
    print("Testing cipher engine and addressing...\n")
    test_roundtrip()
    test_bytes_and_str_secrets_agree()
    test_wrong_secret_fails_authentication()
    test_tampered_ciphertext_fails_authentication()
    test_bad_nonce_is_crypto_error()
    test_derive_key_deterministic()
    test_fresh_material_each_encryption()
    test_content_address_pure()
    test_address_known_vector()
    test_validate_shape_only()
    test_matches_requires_bytes()
    print(f"\n{'='*50}")
    print("All 11 cipher tests passed!")
