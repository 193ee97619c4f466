"""
core/db.py -- SQLAlchemy engine construction shared by the SQL-backed stores.

Both auth/store.py and audit/store.py open their own engine through
create_store_engine() so SQLite connection quirks are handled in one place.

Layer rule: core/ is the kernel. No imports from api/, auth/, or audit/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_store_engine(db_url: str) -> Engine:
    """Return an Engine for db_url with SQLite-specific settings applied.

    FastAPI runs sync handlers in a thread pool, so SQLite connections must be
    usable across threads (check_same_thread=False). A plain in-memory SQLite
    URL is per-connection, so it is pinned to a single shared connection with
    StaticPool -- otherwise every pooled connection would see an empty schema.
    """
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(db_url, **kwargs)
    event.listen(engine, "connect", _set_wal_mode)
    return engine


def to_iso(value: datetime) -> str:
    """Fixed-width ISO 8601 so stored timestamps sort lexically in time order."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
