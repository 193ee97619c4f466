"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler, has no
compatibility shim, and is actively maintained.

The salt and the work factor are embedded in the digest, so verification
needs nothing but the digest. The work factor comes from
Settings.bcrypt_rounds.

bcrypt only reads the first 72 bytes of its input. Longer passwords are
refused outright (hash_password raises, verify_password never matches) so
two passwords sharing a 72-byte prefix can never verify against each other.

Plaintext passwords exist only as arguments to these functions. They are
never logged and never returned.

Layer rule: no imports from api/ or audit/.
"""

from __future__ import annotations

import bcrypt

from core.config import get_settings

_settings = get_settings()

# bcrypt input limit, in UTF-8 bytes.
MAX_PASSWORD_BYTES = 72


def password_fits(plain: str) -> bool:
    """Return True if plain is within bcrypt's 72-byte input limit."""
    return len(plain.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError if the password is longer than 72 UTF-8 bytes.
    """
    if not password_fits(plain):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed digest or an over-long password is a mismatch, not an error.
    """
    if not password_fits(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. The login flow always runs verify_password(),
# against this digest when the account does not exist, so response time does
# not reveal whether a username exists.
DUMMY_HASH: str = hash_password("secdash_timing_dummy")
