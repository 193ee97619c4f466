"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/auth/login   -- username-or-email + password; returns {user, token}
  POST /api/auth/logout  -- records the logout; tokens are not invalidated
  GET  /api/auth/me      -- current user (requires auth)

Security:
  [H2] POST /login is rate-limited per client IP (Settings.login_rate_limit).
  [C1] auth.service.login() provides timing equalization and identical
       failures for unknown user and wrong password -- use it, never inline.
  [M5] Cache-Control: no-store on login responses, success and failure.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.errors import error_response
from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MessageResponse, UserResponse
from auth import service
from auth.dependencies import get_client_info, get_current_user
from auth.models import User
from core.config import get_settings
from core.errors import UnauthorizedError

# Auth policy:
# - POST /api/auth/login:   public -- login endpoint must be unauthenticated
# - POST /api/auth/logout:  requires auth (get_current_user) so the logout is attributable
# - GET  /api/auth/me:      requires auth (get_current_user)
router = APIRouter()

_settings = get_settings()


@limiter.limit(_settings.login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username (or email) and password; return the user and a bearer token.

    A failed attempt is audited (failed activity log + warning security event)
    before the 401 is returned.
    """
    ip_address, user_agent = get_client_info(request)
    try:
        result = service.login(
            request.app.state.user_store,
            request.app.state.audit_store,
            body.username,
            body.password,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except UnauthorizedError as exc:
        resp = error_response(exc)
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            user=UserResponse.from_domain(result.user),
            token=result.token,
        ).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request, current_user: User = Depends(get_current_user)) -> MessageResponse:
    """Record the logout. The client is responsible for discarding its token."""
    ip_address, user_agent = get_client_info(request)
    service.logout(request.app.state.audit_store, current_user, ip_address=ip_address, user_agent=user_agent)
    return MessageResponse(message="Logged out successfully")


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user (without the password hash)."""
    return UserResponse.from_domain(current_user)
