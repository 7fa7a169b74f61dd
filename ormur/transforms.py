"""
Ormur Transforms — ready-made column transforms.

Argon2id password hashing for credential columns:

    from ormur.transforms import hash_password

    class User(Model):
        password = Column("string", not_null=True, hidden=True, transform=hash_password)

Hashing runs in a worker thread, so the transform returns an awaitable and
the model's transform pipeline awaits it alongside any other pending
transforms.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from argon2 import PasswordHasher, extract_parameters
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

__all__ = ["hash_password", "verify_password", "is_password_hash"]

# Security parameters: time_cost=2, memory_cost=64MB, parallelism=4
_hasher = PasswordHasher(time_cost=2, memory_cost=65536, parallelism=4)


def is_password_hash(value: Any) -> bool:
    """True when ``value`` parses as an encoded argon2 hash."""
    if not isinstance(value, str):
        return False
    try:
        extract_parameters(value)
    except InvalidHashError:
        return False
    return True


async def hash_password(value: Optional[str]) -> Optional[str]:
    """
    Hash a plaintext password with argon2id.

    ``None`` and values that are already argon2 hashes are returned
    unchanged, so running the pipeline again on ``update()`` keeps the
    stored hash.
    """
    if value is None or is_password_hash(value):
        return value
    return await asyncio.to_thread(_hasher.hash, value)


def verify_password(password_hash: str, password: str) -> bool:
    """
    Verify password against hash.

    Returns True if password matches hash, False otherwise.
    """
    try:
        return _hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
