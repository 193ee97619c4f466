"""
API request and response models for SecDash REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
audit/models.py, which own the internal domain representation. Route handlers
map between the two through the from_domain() factories below.

Wire format: the browser front end expects camelCase keys (firstName,
createdAt, ipAddress). Every response model uses the camel alias generator;
FastAPI serializes by alias, and populate_by_name lets the factories build
models with snake_case field names.

UserResponse deliberately has no password field of any kind. Serializing a
User through it cannot leak the hash.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from audit.models import ActivityLog, ActivityStatus, SecurityEvent, Severity
from auth.models import Role, User
from auth.passwords import MAX_PASSWORD_BYTES, password_fits

_RESPONSE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login.

    username accepts either a username or an email address. Its whitespace is
    stripped before the min_length check, so "   " is rejected. The password
    is taken verbatim and must fit bcrypt's 72-byte input limit.
    """

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_within_byte_limit(cls, v: str) -> str:
        if not password_fits(v):
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """A user record as exposed to clients -- never includes the password hash."""

    model_config = _RESPONSE_CONFIG

    id: str
    username: str
    email: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginResponse(BaseModel):
    """Response for POST /api/auth/login."""

    model_config = _RESPONSE_CONFIG

    user: UserResponse
    token: str


class MessageResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    message: str


class ActivityLogResponse(BaseModel):
    """One row of GET /api/activity-logs."""

    model_config = _RESPONSE_CONFIG

    id: str
    user_id: Optional[str]
    username: str
    action: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    status: ActivityStatus
    timestamp: datetime

    @classmethod
    def from_domain(cls, record: ActivityLog) -> "ActivityLogResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            username=record.username,
            action=record.action,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            status=record.status,
            timestamp=record.timestamp,
        )


class SecurityEventResponse(BaseModel):
    """One row of GET /api/security-events."""

    model_config = _RESPONSE_CONFIG

    id: str
    type: str
    description: str
    severity: Severity
    ip_address: Optional[str]
    user_id: Optional[str]
    resolved: bool
    timestamp: datetime

    @classmethod
    def from_domain(cls, event: SecurityEvent) -> "SecurityEventResponse":
        return cls(
            id=event.id,
            type=event.type,
            description=event.description,
            severity=event.severity,
            ip_address=event.ip_address,
            user_id=event.user_id,
            resolved=event.resolved,
            timestamp=event.timestamp,
        )


class DashboardMetricsResponse(BaseModel):
    """Response for GET /api/dashboard/metrics.

    active_users and uptime are simulated placeholders (see core/config.py).
    failed_logins and security_events are real 24-hour counts.
    """

    model_config = _RESPONSE_CONFIG

    active_users: int
    failed_logins: int
    security_events: int
    uptime: float


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
