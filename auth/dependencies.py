"""
auth/dependencies.py -- FastAPI Depends() helpers: the per-request auth gate.

Request states, in order:
  Unauthenticated -> TokenPresented -> TokenVerified -> UserLoaded
      -> RoleChecked -> Authorized

  1. Authorization: Bearer <token> must be present and well formed,
     else 401.
  2. decode_access_token() must accept the token, else 401.
  3. The user named by the token's subject must still exist, else 401.
  4. require_role(): the user's role must match the requirement unless the
     requirement is ANY_ROLE, else 403. Role is never checked for an
     unauthenticated request -- a bad token is always 401, never 403.

On success the User is attached to request.state.user for downstream
attribution (audit records, logging).

Failures raise core.errors.UnauthorizedError / ForbiddenError; the handler
registered in api/main.py renders them.

Layer rule: no imports from api/. This module may import from fastapi
(Depends/Request) because it is part of the FastAPI dependency injection
system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import ANY_ROLE, Role, RoleRequirement, User
from auth.tokens import InvalidTokenError, decode_access_token
from core.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger("secdash.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from Authorization: Bearer <token>, or None if absent/malformed."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        return None
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    return token or None


def get_client_info(request: Request) -> tuple[str, str]:
    """Return (ip_address, user_agent) for audit records.

    The first X-Forwarded-For entry wins when a proxy sets one; otherwise the
    socket peer address. Both fall back to "unknown".
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip_address = forwarded.split(",")[0].strip() if forwarded else ""
    if not ip_address:
        ip_address = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("User-Agent") or "unknown"
    return ip_address, user_agent


def get_current_user(request: Request) -> User:
    """Require authentication. Raises UnauthorizedError (401) on any failure.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = extract_bearer_token(request)
    if token is None:
        raise UnauthorizedError()

    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token on %s: %s", request.url.path, exc)
        raise UnauthorizedError() from exc

    # Re-load so a deleted account stops working before its token expires.
    user = request.app.state.user_store.get_by_id(claims.user_id)
    if user is None:
        logger.info("Bearer token for unknown user %s on %s", claims.user_id, request.url.path)
        raise UnauthorizedError()

    request.state.user = user
    return user


def role_satisfies(role: Role, requirement: RoleRequirement) -> bool:
    if requirement == ANY_ROLE:
        return True
    return Role(role) == requirement


def require_role(requirement: RoleRequirement) -> Callable[..., User]:
    """Dependency factory for role-gated endpoints.

    Usage:
        @router.get("/admin/users")
        def route(user: User = Depends(require_role(Role.admin))): ...
    """

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if not role_satisfies(user.role, requirement):
            raise ForbiddenError()
        return user

    return role_checker


# Admin-only endpoints share one dependency instance.
require_admin = require_role(Role.admin)
