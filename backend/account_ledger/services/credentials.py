"""
Credential store: salt generation, password hashing and verification.

Hashes are PBKDF2-HMAC-SHA256 over the UTF-8 password with the account's
own salt, hex encoded. The same (password, salt) pair always produces the
same hash, so verification simply recomputes and compares.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from account_ledger.core.config import get_settings
from account_ledger.core.errors import InvalidInputError


def generate_salt(nbytes: Optional[int] = None) -> str:
    """Return a fresh random salt as a hex string."""
    return secrets.token_hex(nbytes or get_settings().SALT_BYTES)


def hash_password(
    password: str, salt: str, iterations: Optional[int] = None
) -> str:
    if not password:
        raise InvalidInputError("Password must not be empty")
    if not salt:
        raise InvalidInputError("Password salt must not be empty")

    try:
        password_bytes = password.encode("utf-8")
        salt_bytes = salt.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidInputError("Password and salt must be valid UTF-8 text") from None

    return hashlib.pbkdf2_hmac(
        "sha256",
        password_bytes,
        salt_bytes,
        iterations or get_settings().PASSWORD_HASH_ITERATIONS,
    ).hex()


def verify_password(
    password: str,
    salt: str,
    expected_hash: str,
    iterations: Optional[int] = None,
) -> bool:
    """
    Check `password` against a stored hash in constant time.

    Never raises: anything that cannot match (empty password, empty salt,
    a hash of the wrong length or type) is simply a mismatch.
    """
    if not isinstance(expected_hash, str) or not expected_hash:
        return False
    try:
        actual = hash_password(password, salt, iterations)
        expected = expected_hash.encode("utf-8")
    except (InvalidInputError, TypeError, AttributeError, ValueError):
        return False
    return hmac.compare_digest(actual.encode("utf-8"), expected)
