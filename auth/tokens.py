"""Public ids and edit tokens.

The public id is the non-secret sharing key. The edit token is the bearer
secret: it is returned once at creation and only its SHA-256 digest is
stored. Verification compares digests with hmac.compare_digest.
"""

import hashlib
import hmac
import secrets
import string

# Same 64-symbol URL-safe alphabet as nanoid.
ALPHABET = string.ascii_letters + string.digits + "_-"

PUBLIC_ID_LENGTH = 12
EDIT_TOKEN_LENGTH = 32
HASH_HEX_LENGTH = 64


def _random_string(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_public_id() -> str:
    """Short URL-safe invoice id (12 chars, ~2^72 space)."""
    return _random_string(PUBLIC_ID_LENGTH)


def generate_edit_token() -> str:
    """Random edit token (32 chars, ~2^192 space)."""
    return _random_string(EDIT_TOKEN_LENGTH)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(candidate: str, stored_hash: str) -> bool:
    """
    Check a candidate token against a stored digest in constant time.

    Returns False, never raises, for a non-string or empty candidate and for
    a stored hash that isn't 64 hex chars.
    """
    if not isinstance(candidate, str) or not candidate:
        return False
    if not isinstance(stored_hash, str) or len(stored_hash) != HASH_HEX_LENGTH:
        return False

    try:
        stored = bytes.fromhex(stored_hash)
        provided = bytes.fromhex(hash_token(candidate))
    except (ValueError, UnicodeEncodeError):
        return False

    return hmac.compare_digest(provided, stored)
