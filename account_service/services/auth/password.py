"""
Password hashing and verification using Argon2.

Uses passlib with the argon2-cffi backend. Every hash gets its own random
salt, and the encoded output is self-describing:

    $argon2id$v=19$m=65536,t=3,p=4$<salt>$<digest>

so verification never needs parameters stored anywhere else.

Security considerations:
- Inputs are bounded (1..128 bytes) before hashing to cap hashing cost
- Verification compares digests in constant time (argon2-cffi)
- Parameters can be raised over time; needs_rehash() detects old hashes
"""

import secrets
from functools import cached_property

from passlib.context import CryptContext

from account_service.services.exceptions import (
    EmptyPasswordError,
    HashingError,
    MalformedHashError,
    PasswordTooLongError,
)


MAX_PASSWORD_LENGTH = 128


class PasswordHasher:
    """
    Argon2 password hasher.

    Instances are immutable after construction and safe to share between
    threads. The CPU-heavy calls are meant to run on a HashingExecutor.
    """

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ) -> None:
        """
        Args:
            time_cost: Argon2 iterations
            memory_cost: Argon2 memory in KiB
            parallelism: Argon2 lanes
        """
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=time_cost,
            argon2__memory_cost=memory_cost,
            argon2__parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password.

        Args:
            plaintext: The password to hash (1 to 128 bytes as UTF-8)

        Returns:
            Encoded argon2 hash string (algorithm, parameters, salt, digest)

        Raises:
            EmptyPasswordError: If the password is empty
            PasswordTooLongError: If the password exceeds 128 bytes
            HashingError: If the backend fails

        Example:
            >>> hasher = PasswordHasher()
            >>> hasher.hash("mypassword123").startswith("$argon2id$")
            True
        """
        _check_length(plaintext)
        try:
            return self._context.hash(plaintext)
        except (ValueError, TypeError) as e:
            raise HashingError(f"Hashing error: {e}") from e

    def verify(self, plaintext: str, stored_hash: str) -> bool:
        """
        Verify a plaintext password against a stored hash.

        A mismatch is a normal False result, never an exception.

        Args:
            plaintext: The candidate password
            stored_hash: Hash previously produced by hash()

        Returns:
            True if the password matches, False otherwise

        Raises:
            EmptyPasswordError: If the password is empty
            PasswordTooLongError: If the password exceeds 128 bytes
            MalformedHashError: If stored_hash is not a parseable argon2 hash
        """
        _check_length(plaintext)
        if not stored_hash or not self._context.identify(stored_hash):
            raise MalformedHashError()
        try:
            return self._context.verify(plaintext, stored_hash)
        except (ValueError, TypeError) as e:
            raise MalformedHashError() from e

    @cached_property
    def dummy_hash(self) -> str:
        """
        Hash of a random throwaway password under the current parameters.

        Login verifies against it when the email is unknown, so both failure
        paths cost one argon2 verification.
        """
        return self._context.hash(secrets.token_urlsafe(32))

    def needs_rehash(self, stored_hash: str) -> bool:
        """
        Check if a hash was made with different parameters than the current ones.

        Call this after a successful verify() to keep hashes current.
        """
        try:
            return self._context.needs_update(stored_hash)
        except (ValueError, TypeError) as e:
            raise MalformedHashError() from e


def _check_length(plaintext: str) -> None:
    if not plaintext:
        raise EmptyPasswordError()
    if len(plaintext.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise PasswordTooLongError(MAX_PASSWORD_LENGTH)
