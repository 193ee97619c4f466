"""
audit/store.py -- Audit recorder: the AuditStore interface and two backends.

The recorder is an append-only sink. It performs no cross-validation --
callers (the login/logout flows) decide what is worth recording.

Every write:
  - assigns a fresh UUID and stamps the store clock's current time,
    ignoring any id/timestamp on the entry the caller passed in
  - returns the stored record (a new frozen dataclass)

Every listing is newest first. Records with equal timestamps keep their
insertion order (Python's sort is stable; the SQL backend orders by an
autoincrement sequence as the tie-breaker).

  InMemoryAuditStore -- two lists, one lock per collection. Listings copy
                        under the lock and sort outside it, so a slow reader
                        never tears a concurrent append.
  SqlAuditStore      -- SQLAlchemy Core, same shape as auth/store.py.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from audit.models import ActivityLog, ActivityStatus, SecurityEvent, Severity
from core.db import create_store_engine, from_iso, to_iso

logger = logging.getLogger("secdash.audit")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(records: list, key) -> list:
    return sorted(records, key=key, reverse=True)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class AuditStore(Protocol):
    """Capability interface for audit persistence."""

    def record_activity(self, entry: ActivityLog) -> ActivityLog: ...

    def record_security_event(self, entry: SecurityEvent) -> SecurityEvent: ...

    def list_activity(self, limit: int = 20, offset: int = 0) -> list[ActivityLog]: ...

    def list_security_events(self, limit: int = 10) -> list[SecurityEvent]: ...

    def list_unresolved_security_events(self) -> list[SecurityEvent]: ...

    def count_failed_logins(self, since: datetime) -> int: ...

    def count_security_events(self, since: datetime) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryAuditStore:
    """List-backed AuditStore with one lock per collection."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._activity: list[ActivityLog] = []
        self._events: list[SecurityEvent] = []
        self._activity_lock = threading.Lock()
        self._events_lock = threading.Lock()

    def record_activity(self, entry: ActivityLog) -> ActivityLog:
        with self._activity_lock:
            record = replace(
                entry, status=ActivityStatus(entry.status), id=str(uuid.uuid4()), timestamp=self._clock()
            )
            self._activity.append(record)
        logger.debug("activity recorded: %s %s (%s)", record.username, record.action, record.status.value)
        return record

    def record_security_event(self, entry: SecurityEvent) -> SecurityEvent:
        with self._events_lock:
            record = replace(
                entry, severity=Severity(entry.severity), id=str(uuid.uuid4()), timestamp=self._clock()
            )
            self._events.append(record)
        logger.debug("security event recorded: %s (%s)", record.type, record.severity.value)
        return record

    def list_activity(self, limit: int = 20, offset: int = 0) -> list[ActivityLog]:
        with self._activity_lock:
            snapshot = list(self._activity)
        return _newest_first(snapshot, key=lambda r: r.timestamp)[offset : offset + limit]

    def list_security_events(self, limit: int = 10) -> list[SecurityEvent]:
        with self._events_lock:
            snapshot = list(self._events)
        return _newest_first(snapshot, key=lambda r: r.timestamp)[:limit]

    def list_unresolved_security_events(self) -> list[SecurityEvent]:
        with self._events_lock:
            snapshot = [e for e in self._events if not e.resolved]
        return _newest_first(snapshot, key=lambda r: r.timestamp)

    def count_failed_logins(self, since: datetime) -> int:
        with self._activity_lock:
            return sum(1 for r in self._activity if r.status == ActivityStatus.failed and r.timestamp >= since)

    def count_security_events(self, since: datetime) -> int:
        with self._events_lock:
            return sum(1 for e in self._events if e.timestamp >= since)

    def close(self) -> None:
        with self._activity_lock:
            self._activity.clear()
        with self._events_lock:
            self._events.clear()


# ---------------------------------------------------------------------------
# SQL backend -- schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_activity_logs = Table(
    "activity_logs",
    _metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(36), nullable=False, unique=True),
    Column("user_id", String(36)),  # weak reference, no FK
    Column("username", String(255), nullable=False),
    Column("action", Text, nullable=False),
    Column("ip_address", String(64)),
    Column("user_agent", Text),
    Column("status", String(16), nullable=False, server_default=ActivityStatus.success.value),
    Column("timestamp", String(40), nullable=False, index=True),
)

_security_events = Table(
    "security_events",
    _metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(36), nullable=False, unique=True),
    Column("type", String(64), nullable=False),
    Column("description", Text, nullable=False),
    Column("severity", String(16), nullable=False, server_default=Severity.info.value),
    Column("ip_address", String(64)),
    Column("user_id", String(36)),  # weak reference, no FK
    Column("resolved", Boolean, nullable=False, server_default="0"),
    Column("timestamp", String(40), nullable=False, index=True),
)


class SqlAuditStore:
    """SQLAlchemy Core AuditStore.

    Timestamps are stored as fixed-width ISO 8601 UTC strings (core.db.to_iso)
    so ORDER BY timestamp and the >= cutoff comparisons are chronological.
    """

    def __init__(self, db_url: str, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self.engine: Engine = create_store_engine(db_url)
        _metadata.create_all(self.engine)

    def record_activity(self, entry: ActivityLog) -> ActivityLog:
        record = replace(entry, status=ActivityStatus(entry.status), id=str(uuid.uuid4()), timestamp=self._clock())
        with self.engine.begin() as conn:
            conn.execute(
                _activity_logs.insert().values(
                    id=record.id,
                    user_id=record.user_id,
                    username=record.username,
                    action=record.action,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    status=record.status.value,
                    timestamp=to_iso(record.timestamp),
                )
            )
        return record

    def record_security_event(self, entry: SecurityEvent) -> SecurityEvent:
        record = replace(entry, severity=Severity(entry.severity), id=str(uuid.uuid4()), timestamp=self._clock())
        with self.engine.begin() as conn:
            conn.execute(
                _security_events.insert().values(
                    id=record.id,
                    type=record.type,
                    description=record.description,
                    severity=record.severity.value,
                    ip_address=record.ip_address,
                    user_id=record.user_id,
                    resolved=record.resolved,
                    timestamp=to_iso(record.timestamp),
                )
            )
        return record

    def list_activity(self, limit: int = 20, offset: int = 0) -> list[ActivityLog]:
        query = (
            _activity_logs.select()
            .order_by(_activity_logs.c.timestamp.desc(), _activity_logs.c.seq)
            .limit(limit)
            .offset(offset)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_activity(r) for r in rows]

    def list_security_events(self, limit: int = 10) -> list[SecurityEvent]:
        query = _security_events.select().order_by(_security_events.c.timestamp.desc(), _security_events.c.seq).limit(limit)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_event(r) for r in rows]

    def list_unresolved_security_events(self) -> list[SecurityEvent]:
        query = (
            _security_events.select()
            .where(_security_events.c.resolved.is_(False))
            .order_by(_security_events.c.timestamp.desc(), _security_events.c.seq)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_event(r) for r in rows]

    def count_failed_logins(self, since: datetime) -> int:
        query = (
            select(func.count())
            .select_from(_activity_logs)
            .where(
                (_activity_logs.c.status == ActivityStatus.failed.value)
                & (_activity_logs.c.timestamp >= to_iso(since))
            )
        )
        with self.engine.connect() as conn:
            return conn.execute(query).scalar() or 0

    def count_security_events(self, since: datetime) -> int:
        query = select(func.count()).select_from(_security_events).where(_security_events.c.timestamp >= to_iso(since))
        with self.engine.connect() as conn:
            return conn.execute(query).scalar() or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_activity(row) -> ActivityLog:
    return ActivityLog(
        id=row.id,
        user_id=row.user_id,
        username=row.username,
        action=row.action,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        status=ActivityStatus(row.status),
        timestamp=from_iso(row.timestamp),
    )


def _row_to_event(row) -> SecurityEvent:
    return SecurityEvent(
        id=row.id,
        type=row.type,
        description=row.description,
        severity=Severity(row.severity),
        ip_address=row.ip_address,
        user_id=row.user_id,
        resolved=bool(row.resolved),
        timestamp=from_iso(row.timestamp),
    )
