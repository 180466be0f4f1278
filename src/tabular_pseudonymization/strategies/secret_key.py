"""Scoped holder for the secret key of the keyed-hash strategy."""

import os
import secrets
from typing import Union

from ..core.exceptions import MissingKey


class SecretKey:
    """
    Secret key material with an explicit end of life.

    The key bytes live in a mutable buffer that :meth:`destroy` overwrites, after
    which every access raises :class:`MissingKey`. Used as a context manager the
    key is destroyed on exit, so it is unreachable to code that runs after the
    hashing pass. The value never appears in ``repr`` or ``str``.
    """

    def __init__(self, value: Union[str, bytes, bytearray]):
        if isinstance(value, str):
            value = value.encode('utf-8')
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"Secret key must be str or bytes, not {type(value).__name__}")
        if not value:
            raise MissingKey("Secret key is empty")
        self._buffer = bytearray(value)
        self._destroyed = False

    @classmethod
    def generate(cls, nbytes: int = 32) -> "SecretKey":
        """Create a new random key."""
        return cls(secrets.token_bytes(nbytes))

    @classmethod
    def from_env(cls, variable: str) -> "SecretKey":
        """Read a key from an environment variable."""
        value = os.environ.get(variable)
        if not value:
            raise MissingKey(f"Environment variable {variable} is not set or empty")
        return cls(value)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def reveal(self) -> bytes:
        """Return the key bytes for a single hashing call."""
        if self._destroyed:
            raise MissingKey("Secret key has been destroyed")
        return bytes(self._buffer)

    def destroy(self) -> None:
        """Overwrite the key material and mark the key unusable."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._buffer = bytearray()
        self._destroyed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "***"
        return f"SecretKey({state})"

    __str__ = __repr__
