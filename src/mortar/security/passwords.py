"""Password hashing utilities — argon2id, with scrypt and legacy PBKDF2 verification.

New hashes are always argon2id via ``argon2-cffi``. Verification
auto-detects the algorithm from the stored string, so entities protected
before the switch keep working:

1. **argon2id** (``$argon2id$...``) — current default
2. **scrypt** (``$scrypt$n=..,r=..,p=..$salt$dk``) — PHC strings from stdlib ``hashlib``
3. **PBKDF2-SHA512** (``<hex salt>:<hex hash>``) — written by the first
   serverless endpoint: 10 000 iterations, 64-byte key, the hex salt used
   as-is (not decoded)

Usage::

    from mortar.security.passwords import hash_password, verify_password

    hashed = hash_password("class-of-2024")
    ok = verify_password("class-of-2024", hashed)
"""

import base64
import hashlib
import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# PHC format prefixes
_ARGON2_PREFIX = "$argon2"
_SCRYPT_PREFIX = "$scrypt$"

# Scrypt defaults for PHC strings that omit a parameter
_SCRYPT_N = 2**14  # CPU/memory cost
_SCRYPT_R = 8  # Block size
_SCRYPT_P = 1  # Parallelism
_SCRYPT_DKLEN = 64  # Derived key length

# Legacy PBKDF2 parameters
_PBKDF2_ITERATIONS = 10_000
_PBKDF2_DKLEN = 64

_hasher = PasswordHasher()


# ---------------------------------------------------------------------------
# Scrypt
# ---------------------------------------------------------------------------


def _verify_scrypt(password: str, phc_hash: str) -> bool:
    """Verify password against a scrypt PHC-format hash."""
    # parts: ['', 'scrypt', 'n=...,r=...,p=...', 'salt_b64', 'dk_b64']
    parts = phc_hash.split("$")
    if len(parts) != 5 or parts[1] != "scrypt":
        return False

    try:
        params = {}
        for param in parts[2].split(","):
            key, _, value = param.partition("=")
            params[key] = int(value)

        salt = base64.b64decode(parts[3])
        expected_dk = base64.b64decode(parts[4])
    except ValueError:
        return False

    try:
        dk = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=params.get("n", _SCRYPT_N),
            r=params.get("r", _SCRYPT_R),
            p=params.get("p", _SCRYPT_P),
            dklen=len(expected_dk) or _SCRYPT_DKLEN,
        )
    except ValueError:
        return False

    return hmac.compare_digest(dk, expected_dk)


# ---------------------------------------------------------------------------
# Legacy PBKDF2 (salt:hash)
# ---------------------------------------------------------------------------


def _verify_pbkdf2(password: str, stored: str) -> bool:
    salt, sep, expected_hex = stored.partition(":")
    if not sep or not salt or not expected_hex:
        return False
    dk = hashlib.pbkdf2_hmac(
        "sha512", password.encode("utf-8"), salt.encode("utf-8"), _PBKDF2_ITERATIONS, _PBKDF2_DKLEN
    )
    return hmac.compare_digest(dk.hex(), expected_hex.lower())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Hash a password with argon2id.

    Returns a PHC-format string safe for database storage.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against any supported stored hash.

    Returns ``False`` for a wrong password or an empty input. Raises
    ``ValueError`` for a hash in no recognised format.
    """
    if not password or not stored_hash:
        return False

    if stored_hash.startswith(_ARGON2_PREFIX):
        try:
            return _hasher.verify(stored_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    if stored_hash.startswith(_SCRYPT_PREFIX):
        return _verify_scrypt(password, stored_hash)

    if ":" in stored_hash:
        return _verify_pbkdf2(password, stored_hash)

    msg = f"Unknown hash format: {stored_hash[:20]}..."
    raise ValueError(msg)
