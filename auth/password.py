"""
Password hashing and verification with bcrypt.

The work factor comes from ``Settings.bcrypt_rounds``; the salt is embedded
in every stored hash.
"""

from __future__ import annotations

import functools
import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes of a password and newer releases
# refuse anything longer.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check ``password`` against a stored bcrypt hash.

    A hash bcrypt can't parse is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False


@functools.lru_cache(maxsize=None)
def decoy_hash(rounds: int = 12) -> str:
    """
    Hash of a random throwaway password at the given cost.

    Login verifies against it when the email is unknown, so a miss takes as
    long as a wrong password.
    """
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)
