"""
tests/conftest.py -- Shared test fixtures for SecDash.

This module provides:
  - user_store / audit_store: fresh in-memory stores per test
  - seeded_users: the admin/admin123 and viewer/viewer123 demo accounts
  - admin_token / viewer_token: bearer tokens for the seeded accounts
  - client: TestClient wired to the per-test stores via a patched lifespan
  - make_client: factory for tests that need custom stores or client options
  - clock: a FakeClock (deterministic clock for ordering and time-window tests)

Environment variables must be set before any auth/core import:
  DEBUG=true               -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4          -- bcrypt minimum cost, keeps the suite fast
  RATE_LIMIT_ENABLED=false -- tests log in far more than 10 times a minute
  ALLOWED_HOSTS=["*"]      -- TestClient sends Host: testserver
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set env before any auth/core import so get_settings() picks it up.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["*"]')
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("DATABASE_URL", "")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.seed import seed_users
from audit.store import InMemoryAuditStore
from auth.models import User
from auth.store import InMemoryUserStore
from auth.tokens import create_access_token


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_store() -> Generator[InMemoryUserStore, None, None]:
    store = InMemoryUserStore()
    yield store
    store.close()


@pytest.fixture
def audit_store() -> Generator[InMemoryAuditStore, None, None]:
    store = InMemoryAuditStore()
    yield store
    store.close()


@pytest.fixture
def seeded_users(user_store: InMemoryUserStore) -> dict[str, User]:
    """Create admin/admin123 (admin) and viewer/viewer123 (viewer), keyed by username."""
    return {u.username: u for u in seed_users(user_store)}


@pytest.fixture
def admin_token(seeded_users: dict[str, User]) -> str:
    return create_access_token(seeded_users["admin"])


@pytest.fixture
def viewer_token(seeded_users: dict[str, User]) -> str:
    return create_access_token(seeded_users["viewer"])


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store, audit_store):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated per-test stores rather than whatever DATABASE_URL selects.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.audit_store = audit_store
        yield

    return test_lifespan


@pytest.fixture
def make_client() -> Callable:
    """Return a context-manager factory: with make_client(users, audit) as client: ..."""

    @contextmanager
    def _make(user_store, audit_store, raise_server_exceptions: bool = True):
        app.router.lifespan_context = _patch_lifespan(user_store, audit_store)
        with TestClient(app, raise_server_exceptions=raise_server_exceptions) as client:
            yield client

    return _make


@pytest.fixture
def client(make_client, user_store, audit_store, seeded_users) -> Generator[TestClient, None, None]:
    """TestClient over fresh stores that already hold the two demo accounts."""
    with make_client(user_store, audit_store) as test_client:
        yield test_client
