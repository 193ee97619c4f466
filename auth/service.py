"""
auth/service.py -- Login and logout flows with their audit side effects.

These functions orchestrate the credential store, the password hasher, the
token issuer and the audit recorder. They take their stores as arguments and
know nothing about HTTP: the route layer passes in the client IP and user
agent, and turns raised AppErrors into responses via the global handler.

Anti-enumeration [C1]:
  - An unknown identifier and a wrong password produce the same
    InvalidCredentialsError and the same audit records.
  - bcrypt runs in both cases (against DUMMY_HASH when no account matched),
    so response time does not reveal whether the account exists either.

Audit bookkeeping: a failed login writes exactly one failed ActivityLog and
one warning SecurityEvent, BEFORE the error is raised. A successful login
writes exactly one success ActivityLog. The writes are not transactional with
each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from audit.models import ActivityLog, ActivityStatus, SecurityEvent, Severity
from audit.store import AuditStore
from auth.models import User
from auth.passwords import DUMMY_HASH, verify_password
from auth.store import UserStore
from auth.tokens import create_access_token
from core.errors import InvalidCredentialsError, ValidationError

logger = logging.getLogger("secdash.auth")

LOGIN_ACTION = "User login"
LOGOUT_ACTION = "User logout"
FAILED_LOGIN_ACTION = "Failed login attempt"
LOGIN_ATTEMPT_EVENT = "login_attempt"


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: str


def resolve_account(store: UserStore, identifier: str) -> User | None:
    """Find an account by username first, then by email."""
    user = store.get_by_username(identifier)
    if user is None:
        user = store.get_by_email(identifier)
    return user


def authenticate_user(store: UserStore, identifier: str, password: str) -> User | None:
    """Authenticate a username-or-email / password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown identifier: bcrypt runs against DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = resolve_account(store, identifier)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_password(password, DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def login(
    users: UserStore,
    audit: AuditStore,
    username: str,
    password: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> LoginResult:
    """Run the full login flow.

    Raises:
        ValidationError:         username or password is empty.
        InvalidCredentialsError: no such account, or the password is wrong.
    """
    identifier = (username or "").strip()
    if not identifier or not password:
        raise ValidationError("Username and password are required.")

    user = authenticate_user(users, identifier, password)
    if user is None:
        audit.record_activity(
            ActivityLog(
                username=identifier,
                action=FAILED_LOGIN_ACTION,
                status=ActivityStatus.failed,
                user_id=None,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        audit.record_security_event(
            SecurityEvent(
                type=LOGIN_ATTEMPT_EVENT,
                description=f"Failed login attempt for user: {identifier}",
                severity=Severity.warning,
                ip_address=ip_address,
                user_id=None,
            )
        )
        logger.warning("Failed login for %r from %s", identifier, ip_address or "unknown")
        raise InvalidCredentialsError()

    token = create_access_token(user)
    audit.record_activity(
        ActivityLog(
            username=user.display_name,
            action=LOGIN_ACTION,
            status=ActivityStatus.success,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    logger.info("User %s logged in from %s", user.username, ip_address or "unknown")
    return LoginResult(user=user, token=token)


def logout(
    audit: AuditStore,
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ActivityLog:
    """Record a logout. Tokens are stateless, so nothing is invalidated."""
    record = audit.record_activity(
        ActivityLog(
            username=user.display_name,
            action=LOGOUT_ACTION,
            status=ActivityStatus.success,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    logger.info("User %s logged out", user.username)
    return record
