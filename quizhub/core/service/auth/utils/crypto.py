"""
Cryptographic utilities for authentication services.
Password hashing, refresh token digests and one-time code generation.
"""

import hashlib
import hmac
import secrets

from passlib.context import CryptContext

# PBKDF2-SHA256 keeps the stack free of the native `bcrypt` package
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=310_000,
)


def hash_password(password: str) -> str:
    """Hash a password for storage"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a password against its stored hash.

    passlib compares digests in constant time; a malformed stored hash is
    treated as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token, used to persist refresh tokens"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, stored_hash: str) -> bool:
    """Constant-time comparison of a presented token with its stored digest"""
    return hmac.compare_digest(hash_token(token), stored_hash)


def generate_numeric_code(length: int = 6) -> str:
    """
    Generate a numeric one-time code of exactly `length` digits.

    The first digit is never zero so the code keeps its length when it is
    handled as a number by clients.
    """
    lower = 10 ** (length - 1)
    return str(lower + secrets.randbelow(9 * lower))


def codes_match(submitted: str, expected: str) -> bool:
    """Constant-time comparison of two one-time codes"""
    return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))
