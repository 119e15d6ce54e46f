"""
hoa_portal.auth.passwords

bcrypt password hashing for `auth_users.password_hash`.
"""

from __future__ import annotations

import bcrypt


def _encode(plain_password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes.
    return plain_password.encode("utf-8")[:72]


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(_encode(plain_password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False
