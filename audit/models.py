"""
audit/models.py -- Domain dataclasses for audit records.

These are pure data containers with zero logic. Both record types are frozen:
once written they are never updated or deleted, only listed. The one mutable
attribute of a security event (resolved) is settable only at creation time
in this service.

id and timestamp are None on the entry a caller builds. The store assigns
both at write time and returns a new record; caller-supplied values are
ignored.

user_id is a weak reference to auth.models.User.id -- no foreign key, no
cascade. A record outlives the account it mentions.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ActivityStatus(str, Enum):
    success = "success"
    failed = "failed"


class Severity(str, Enum):
    info = "info"
    warning = "warning"
    critical = "critical"


@dataclass(frozen=True)
class ActivityLog:
    """One auth-relevant action.

    username is a display string (email or submitted identifier), not a
    lookup key. It is recorded even when no account matched.
    """

    username: str
    action: str
    status: ActivityStatus = ActivityStatus.success
    user_id: Optional[str] = None  # None = unauthenticated actor
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    id: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class SecurityEvent:
    """A noteworthy condition, e.g. a failed login attempt."""

    type: str  # "login_attempt" | "security_alert" | "system_update" | "user_created"
    description: str
    severity: Severity = Severity.info
    ip_address: Optional[str] = None
    user_id: Optional[str] = None
    resolved: bool = False
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
