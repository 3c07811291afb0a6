"""
onedosh_api.auth.passwords

bcrypt helpers for account passwords and transaction PINs.
"""

from __future__ import annotations

import hashlib
import secrets

import bcrypt

# bcrypt only reads the first 72 bytes; newer releases raise instead of truncating.
BCRYPT_MAX_BYTES = 72


def _secret(raw: str) -> bytes:
    return raw.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(raw: str) -> str:
    return bcrypt.hashpw(_secret(raw), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_secret(raw), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def new_verification_token() -> tuple[str, str]:
    """
    Return (plain token, sha256 digest). Only the digest is persisted.
    """

    token = secrets.token_urlsafe(32)
    return token, hash_verification_token(token)


def hash_verification_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
