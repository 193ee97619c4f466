"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in audit/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/ or audit/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal, Union


class Role(str, Enum):
    """The two fixed roles. Closed set -- there is no general RBAC."""

    admin = "admin"
    viewer = "viewer"


# Wildcard requirement for require_role(): any authenticated user passes.
# Kept distinct from Role so "any" can never be assigned to a user.
ANY_ROLE: Literal["any"] = "any"

RoleRequirement = Union[Role, Literal["any"]]


@dataclass
class User:
    """A stored identity.

    hashed_password is a bcrypt digest and never leaves the service: API
    response models do not declare it, so it cannot be serialized by mistake.

    id, created_at and updated_at are assigned by the store.
    """

    username: str
    email: str
    hashed_password: str
    role: Role = Role.viewer
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Name used for audit attribution: email, falling back to username."""
        return self.email or self.username


@dataclass
class UserCandidate:
    """Input to UserStore.create_user().

    password is plaintext. The store hashes it before anything is stored and
    the candidate is discarded afterwards.
    """

    username: str
    email: str
    password: str
    role: Role = Role.viewer
    first_name: str | None = None
    last_name: str | None = None

    def __repr__(self) -> str:
        # Keep plaintext out of logs and tracebacks.
        return f"UserCandidate(username={self.username!r}, email={self.email!r}, role={self.role.value!r})"


@dataclass(frozen=True)
class TokenClaims:
    """Decoded bearer token payload."""

    user_id: str
    username: str
    role: Role
    issued_at: datetime
    expires_at: datetime
