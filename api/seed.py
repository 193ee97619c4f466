"""
api/seed.py -- Demo data for local development (SEED_DEMO_DATA=true).

Creates two accounts and a handful of sample audit records so a fresh
dashboard has something to show:

  admin  / admin123   role=admin   admin@company.com
  viewer / viewer123  role=viewer  viewer@company.com

The passwords are public. Settings.seed_demo_data defaults to False and the
lifespan logs a warning whenever seeding runs.

Seeding is idempotent per store: if any user already exists, nothing is
written (a SQL-backed store keeps its data across restarts).
"""

from __future__ import annotations

import logging

from audit.models import ActivityLog, ActivityStatus, SecurityEvent, Severity
from audit.store import AuditStore
from auth.models import Role, User, UserCandidate
from auth.store import UserStore

logger = logging.getLogger("secdash.api")

DEMO_USERS = (
    UserCandidate(
        username="admin",
        email="admin@company.com",
        password="admin123",
        role=Role.admin,
        first_name="John",
        last_name="Admin",
    ),
    UserCandidate(
        username="viewer",
        email="viewer@company.com",
        password="viewer123",
        role=Role.viewer,
        first_name="Jane",
        last_name="Viewer",
    ),
)


def seed_users(users: UserStore) -> list[User]:
    """Create the demo accounts. Returns [] if the store already has users."""
    if users.count_users() > 0:
        return []
    return [users.create_user(candidate) for candidate in DEMO_USERS]


def seed_audit(audit: AuditStore, admin: User | None = None, viewer: User | None = None) -> None:
    """Write the sample activity logs and security events."""
    activity = [
        ActivityLog(
            user_id=admin.id if admin else None,
            username="admin@company.com",
            action="User login",
            ip_address="192.168.1.105",
            user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
            status=ActivityStatus.success,
        ),
        ActivityLog(
            user_id=viewer.id if viewer else None,
            username="viewer@company.com",
            action="Dashboard access",
            ip_address="192.168.1.103",
            user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
            status=ActivityStatus.success,
        ),
        ActivityLog(
            user_id=None,
            username="unknown@domain.com",
            action="Failed login attempt",
            ip_address="192.168.1.100",
            user_agent="Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36",
            status=ActivityStatus.failed,
        ),
    ]
    events = [
        SecurityEvent(
            type="security_alert",
            description="Multiple failed login attempts detected",
            severity=Severity.warning,
            ip_address="192.168.1.100",
        ),
        SecurityEvent(
            type="system_update",
            description="Security patch successfully applied",
            severity=Severity.info,
            resolved=True,
        ),
        SecurityEvent(
            type="user_created",
            description="New user account created",
            severity=Severity.info,
            ip_address="192.168.1.105",
            user_id=admin.id if admin else None,
            resolved=True,
        ),
    ]
    for entry in activity:
        audit.record_activity(entry)
    for event in events:
        audit.record_security_event(event)


def seed_demo_data(users: UserStore, audit: AuditStore) -> bool:
    """Seed accounts and sample audit records. Returns True if anything was written."""
    created = seed_users(users)
    if not created:
        logger.info("Demo seed skipped -- user store is not empty")
        return False
    by_name = {u.username: u for u in created}
    seed_audit(audit, admin=by_name.get("admin"), viewer=by_name.get("viewer"))
    logger.warning("Seeded demo accounts admin/admin123 and viewer/viewer123 -- never enable in production")
    return True
