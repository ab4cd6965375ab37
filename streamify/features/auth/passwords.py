"""Password hashing."""

import logging

from argon2 import extract_parameters
from argon2.exceptions import InvalidHashError
from pwdlib import PasswordHash
from pwdlib.exceptions import PwdlibError, UnknownHashError

logger = logging.getLogger(__name__)


class HashingError(Exception):
    """Raised when a password cannot be hashed or a stored hash is malformed."""

    pass


class PasswordHasher:
    """One-way adaptive password hashing using Argon2.

    Salt is generated per hash and embedded in the returned string, and the
    cost parameters are fixed by the hasher configuration.
    """

    def __init__(self, password_hash: PasswordHash | None = None):
        self._hasher = password_hash or PasswordHash.recommended()

    def hash(self, password: str) -> str:
        try:
            return self._hasher.hash(password)
        except (PwdlibError, ValueError, MemoryError) as exc:
            raise HashingError("Failed to hash password") from exc

    def verify(self, password: str, hashed: str) -> bool:
        """Check a password against a stored hash.

        Returns False on mismatch. Raises HashingError when the stored hash is
        not in a recognised format or its Argon2 encoding is malformed.
        """
        if hashed.startswith("$argon2"):
            try:
                extract_parameters(hashed)
            except InvalidHashError as exc:
                raise HashingError("Stored password hash is malformed") from exc
        try:
            return self._hasher.verify(password, hashed)
        except UnknownHashError as exc:
            raise HashingError("Stored password hash has an unrecognised format") from exc
