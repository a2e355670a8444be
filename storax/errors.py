"""
Errors raised by the storage core.

Callers need to tell "can't fetch" (ContentNotFound) from "can't open"
(AuthenticationError), so each failure kind gets its own class.
"""


class StoraxError(Exception):
    """Base class for all storax errors."""


class CryptoError(StoraxError):
    """An encryption primitive failed. Not expected for valid inputs."""


class AuthenticationError(StoraxError):
    """Ciphertext did not authenticate: wrong identity secret or corrupted bytes."""


class BackendError(StoraxError):
    """The local cache could not be written or read."""


class RemoteUnavailable(StoraxError):
    """The remote pinning service refused or could not be reached."""


class ContentNotFound(StoraxError):
    """No backend, local or remote, could supply the requested address."""

    def __init__(self, address: str, attempts: list[str] = None):
        self.address = address
        self.attempts = attempts or []
        super().__init__(
            f"Content {address} not found "
            f"(tried local cache and {len(self.attempts)} gateway(s))"
        )


class Cancelled(StoraxError):
    """The caller aborted the operation."""


class ObjectNotFound(StoraxError, KeyError):
    """No stored object with the given id exists for this identity."""

    def __str__(self):
        return f"No stored object with id {self.args[0]}"
