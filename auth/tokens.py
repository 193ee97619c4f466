"""
auth/tokens.py -- JWT bearer token issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (user id), username, role, iat and exp. The validity window is
       fixed at issue time (Settings.token_expire_seconds, 24h by default).

  Verification is a pure function of the token and SECRET_KEY. It never
       touches a store. The Gate (auth/dependencies.py) re-loads the user by
       id afterwards, so a deleted account stops working immediately, but a
       role change is only visible on the re-loaded record, not in the claims.

  No revocation: a token remains valid until exp even if the account it was
       issued for changes. Logout is advisory; the client drops the token.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       refuses to start in production without one [M7].

Layer rule: no imports from api/ or audit/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Role, TokenClaims, User
from core.config import get_settings

logger = logging.getLogger("secdash.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton [M6]
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "username", "role", "iat", "exp")


class InvalidTokenError(Exception):
    """Raised by decode_access_token() for any token that must not be trusted.

    Covers bad signatures, malformed structure, missing claims and expiry.
    The message is for server logs only -- clients just see a 401.
    """


def create_access_token(user: User, now: datetime | None = None) -> str:
    """Encode a signed JWT for user, valid for Settings.token_expire_seconds.

    Args:
        user: A stored user (must have an id).
        now:  Issue time. Defaults to the current UTC time; tests pass an
              explicit value to place the expiry precisely.
    """
    if user.id is None:
        raise ValueError("Cannot issue a token for a user without an id.")
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(seconds=_settings.token_expire_seconds)
    payload = {
        "sub": user.id,
        "username": user.username,
        "role": Role(user.role).value,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Decode and verify a JWT. Returns TokenClaims or raises InvalidTokenError.

    python-jose checks the signature and exp. Claim presence and the role
    value are checked here so callers receive a fully typed claim set.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    missing = [claim for claim in _REQUIRED_CLAIMS if claim not in payload]
    if missing:
        raise InvalidTokenError(f"Token is missing claims: {', '.join(missing)}")

    try:
        role = Role(payload["role"])
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError(f"Token carries an invalid claim: {exc}") from exc

    return TokenClaims(
        user_id=str(payload["sub"]),
        username=str(payload["username"]),
        role=role,
        issued_at=issued_at,
        expires_at=expires_at,
    )
