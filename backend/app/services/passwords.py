from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

PH = PasswordHasher(
    time_cost=2,
    memory_cost=102_400,
    parallelism=8,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    return PH.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Return ``True`` when ``password`` matches the stored argon2 hash."""

    try:
        return PH.verify(password_hash, password)
    except (InvalidHashError, VerificationError):
        return False


def needs_rehash(password_hash: str) -> bool:
    return PH.check_needs_rehash(password_hash)


__all__ = ["hash_password", "needs_rehash", "verify_password"]
