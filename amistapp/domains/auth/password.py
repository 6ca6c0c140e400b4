# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing utilities using bcrypt.

This module provides salted password hashing and verification using the
bcrypt library directly. bcrypt only uses the first 72 bytes of a password,
so longer inputs are truncated the same way when hashing and verifying.

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import asyncio
import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 10


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted password hashing using bcrypt.

    Each hash gets a random salt, and the work factor is embedded in the
    hash string so older hashes keep verifying after the rounds change.

    Attributes:
        rounds: bcrypt work factor used for new hashes.

    Example:
        >>> hasher = PasswordHasher(rounds=10)
        >>> hashed = hasher.hash("secure_password")
        >>> hasher.verify("secure_password", hashed)
        True
        >>> hasher.verify("wrong_password", hashed)
        False
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. Higher is more secure but slower.
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(_encode(password), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Never raises: a mismatch, an empty input or a malformed hash all
        return False.

        Args:
            password: Plain text password to verify.
            password_hash: Bcrypt hash to verify against.

        Returns:
            True if password matches the hash, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.warning("Password verification failed: %s", str(e))
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """Check whether a hash was made with a different work factor.

        Args:
            password_hash: Existing password hash to check.

        Returns:
            True if the hash should be regenerated with the current rounds.
        """
        parts = password_hash.split("$") if password_hash else []
        if len(parts) < 4 or not parts[2].isdigit():
            return False
        return int(parts[2]) != self.rounds

    async def hash_async(self, password: str) -> str:
        """Hash in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        """Verify in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.verify, password, password_hash)
