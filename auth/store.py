"""
auth/store.py -- Credential store: the UserStore interface and two backends.

Pattern: Repository + Data Mapper.
UserStore is the capability interface every caller depends on. The login
flow, the Gate and the admin routes only ever see UserStore, so a backend
can be swapped without touching them.

  InMemoryUserStore -- dict keyed by id, guarded by one lock. The default.
  SqlUserStore      -- SQLAlchemy Core; selected when DATABASE_URL is set.
                       _row_to_user is the mapper. All queries use bound
                       parameters.

Invariants held by both backends:
  - username and email are unique across all users (ConflictError otherwise)
  - the plaintext password is hashed before it reaches storage
  - lookups are exact, case-sensitive matches

Concurrency: bcrypt hashing runs BEFORE the in-memory lock is taken, so a
slow hash never blocks readers. The uniqueness check and the insert happen
under the same lock acquisition.

Layer rule: no imports from api/ or audit/.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User, UserCandidate
from auth.passwords import hash_password
from core.db import create_store_engine, from_iso, to_iso
from core.errors import ConflictError

# Fields update_user() accepts. "password" is plaintext and gets re-hashed.
_UPDATABLE_FIELDS = frozenset({"username", "email", "role", "first_name", "last_name", "password"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _prepare_updates(fields: dict) -> dict:
    """Validate update_user() keyword arguments and hash a new password.

    Unknown keys raise ValueError rather than silently ignoring them --
    fail-fast principle.
    """
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
    updates = dict(fields)
    if "password" in updates:
        updates["hashed_password"] = hash_password(updates.pop("password"))
    if "role" in updates:
        updates["role"] = Role(updates["role"])
    return updates


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class UserStore(Protocol):
    """Capability interface for user persistence."""

    def get_by_id(self, user_id: str) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def create_user(self, candidate: UserCandidate) -> User: ...

    def update_user(self, user_id: str, **fields) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def count_users(self) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryUserStore:
    """Map-backed UserStore.

    Usage:
        store = InMemoryUserStore()
        admin = store.create_user(UserCandidate("admin", "admin@company.com", "secret", role=Role.admin))
        store.get_by_username("admin")

    Records are never mutated in place: update_user() swaps in a new User via
    dataclasses.replace, so a User already handed to a caller stays a
    consistent snapshot.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def get_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def get_by_email(self, email: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def create_user(self, candidate: UserCandidate) -> User:
        """Hash the password, then insert under the lock.

        Raises ConflictError if the username or email is taken, ValueError if
        the password is longer than 72 bytes.
        """
        hashed = hash_password(candidate.password)
        now = self._clock()
        user = User(
            id=str(uuid.uuid4()),
            username=candidate.username,
            email=candidate.email,
            hashed_password=hashed,
            role=Role(candidate.role),
            first_name=candidate.first_name or None,
            last_name=candidate.last_name or None,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._check_unique(user.username, user.email, exclude_id=None)
            self._users[user.id] = user
        return user

    def update_user(self, user_id: str, **fields) -> User | None:
        """Merge fields over the stored record and refresh updated_at.

        Returns None if user_id is unknown.
        """
        updates = _prepare_updates(fields)
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            self._check_unique(
                updates.get("username", current.username),
                updates.get("email", current.email),
                exclude_id=user_id,
            )
            updated = replace(current, **updates, updated_at=self._clock())
            self._users[user_id] = updated
        return updated

    def list_users(self) -> list[User]:
        """Return all users in creation order."""
        with self._lock:
            return list(self._users.values())

    def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    def close(self) -> None:
        with self._lock:
            self._users.clear()

    def _check_unique(self, username: str, email: str, exclude_id: str | None) -> None:
        # Caller holds self._lock.
        for other in self._users.values():
            if other.id == exclude_id:
                continue
            if other.username == username:
                raise ConflictError("A user with that username already exists.")
            if other.email == email:
                raise ConflictError("A user with that email already exists.")


# ---------------------------------------------------------------------------
# SQL backend -- schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    # seq preserves insertion order for list_users(); id is the public identity.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(36), nullable=False, unique=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(16), nullable=False, server_default=Role.viewer.value),
    Column("first_name", String(255)),
    Column("last_name", String(255)),
    Column("created_at", String(40), nullable=False),
    Column("updated_at", String(40), nullable=False),
)


class SqlUserStore:
    """SQLAlchemy Core UserStore.

    Usage:
        store = SqlUserStore("sqlite:///secdash.db")
        store.create_user(UserCandidate("admin", "admin@company.com", "secret", role=Role.admin))
        store.close()

    Uniqueness is enforced by UNIQUE constraints; IntegrityError is translated
    to ConflictError so callers see the same error as with the in-memory store.
    """

    def __init__(self, db_url: str, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self.engine: Engine = create_store_engine(db_url)
        _metadata.create_all(self.engine)

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by id. Returns None if not found."""
        return self._fetch_one(_users.c.id == user_id)

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.c.username == username)

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.c.email == email)

    def create_user(self, candidate: UserCandidate) -> User:
        hashed = hash_password(candidate.password)
        now = to_iso(self._clock())
        user_id = str(uuid.uuid4())
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        username=candidate.username,
                        email=candidate.email,
                        hashed_password=hashed,
                        role=Role(candidate.role).value,
                        first_name=candidate.first_name or None,
                        last_name=candidate.last_name or None,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as exc:
            raise ConflictError("A user with that username or email already exists.") from exc
        created = self.get_by_id(user_id)
        if created is None:
            raise RuntimeError("User not found after insert.")
        return created

    def update_user(self, user_id: str, **fields) -> User | None:
        updates = _prepare_updates(fields)
        if "role" in updates:
            updates["role"] = updates["role"].value
        updates["updated_at"] = to_iso(self._clock())
        try:
            with self.engine.begin() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(**updates))
        except IntegrityError as exc:
            raise ConflictError("A user with that username or email already exists.") from exc
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def list_users(self) -> list[User]:
        """Return all users in creation order."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.seq)).fetchall()
        return [_row_to_user(r) for r in rows]

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, clause) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(clause)).fetchone()
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        first_name=row.first_name,
        last_name=row.last_name,
        created_at=from_iso(row.created_at),
        updated_at=from_iso(row.updated_at),
    )
