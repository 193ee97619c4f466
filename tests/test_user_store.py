"""Tests for auth/store.py -- both UserStore backends.

Every test runs against InMemoryUserStore and SqlUserStore (in-memory
SQLite) so the two backends stay behaviourally identical.

Covers:
- create_user assigns id/timestamps and defaults the role to viewer
- the stored password is a bcrypt digest, never the plaintext
- duplicate username or email -> ConflictError
- lookups are exact and case-sensitive
- update_user merges, refreshes updated_at, re-hashes passwords
- list_users keeps creation order; count_users
- concurrent creates never produce duplicate usernames or lost users
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor

import pytest

from auth.models import Role, UserCandidate
from auth.passwords import verify_password
from auth.store import InMemoryUserStore, SqlUserStore
from core.errors import ConflictError


@pytest.fixture(params=["memory", "sql"])
def store(request, clock) -> Generator:
    if request.param == "memory":
        backend = InMemoryUserStore(clock=clock)
    else:
        backend = SqlUserStore("sqlite://", clock=clock)
    yield backend
    backend.close()


def _candidate(username: str = "alice", email: str = "alice@example.com", **kwargs) -> UserCandidate:
    return UserCandidate(username=username, email=email, password=kwargs.pop("password", "s3cret!"), **kwargs)


class TestCreate:
    def test_defaults(self, store, clock) -> None:
        user = store.create_user(_candidate())
        assert user.id
        assert user.role is Role.viewer
        assert user.first_name is None and user.last_name is None
        assert user.created_at == clock()
        assert user.updated_at == user.created_at

    def test_ids_are_unique(self, store) -> None:
        a = store.create_user(_candidate("a", "a@example.com"))
        b = store.create_user(_candidate("b", "b@example.com"))
        assert a.id != b.id

    def test_password_is_hashed(self, store) -> None:
        user = store.create_user(_candidate(password="viewer123"))
        assert user.hashed_password != "viewer123"
        assert verify_password("viewer123", user.hashed_password)

    def test_role_and_names_kept(self, store) -> None:
        user = store.create_user(_candidate(role=Role.admin, first_name="John", last_name="Admin"))
        fetched = store.get_by_id(user.id)
        assert fetched.role is Role.admin
        assert (fetched.first_name, fetched.last_name) == ("John", "Admin")

    def test_duplicate_username_conflicts(self, store) -> None:
        store.create_user(_candidate())
        with pytest.raises(ConflictError):
            store.create_user(_candidate(email="other@example.com"))
        assert store.count_users() == 1

    def test_duplicate_email_conflicts(self, store) -> None:
        store.create_user(_candidate())
        with pytest.raises(ConflictError):
            store.create_user(_candidate(username="alice2"))
        assert store.count_users() == 1

    def test_over_long_password_rejected(self, store) -> None:
        with pytest.raises(ValueError):
            store.create_user(_candidate(password="x" * 73))
        assert store.count_users() == 0


class TestLookup:
    def test_by_id_username_email(self, store) -> None:
        user = store.create_user(_candidate())
        assert store.get_by_id(user.id).username == "alice"
        assert store.get_by_username("alice").id == user.id
        assert store.get_by_email("alice@example.com").id == user.id

    def test_unknown_returns_none(self, store) -> None:
        assert store.get_by_id("nope") is None
        assert store.get_by_username("nope") is None
        assert store.get_by_email("nope@example.com") is None

    def test_case_sensitive(self, store) -> None:
        store.create_user(_candidate())
        assert store.get_by_username("Alice") is None
        assert store.get_by_email("ALICE@example.com") is None


class TestUpdate:
    def test_merges_and_refreshes_updated_at(self, store, clock) -> None:
        user = store.create_user(_candidate())
        clock.advance(60)
        updated = store.update_user(user.id, first_name="Alice", role=Role.admin)
        assert updated.first_name == "Alice"
        assert updated.role is Role.admin
        assert updated.email == "alice@example.com"
        assert updated.created_at == user.created_at
        assert updated.updated_at == clock()
        assert store.get_by_id(user.id).role is Role.admin

    def test_password_rehashed(self, store) -> None:
        user = store.create_user(_candidate(password="old-pass"))
        updated = store.update_user(user.id, password="new-pass")
        assert verify_password("new-pass", updated.hashed_password)
        assert not verify_password("old-pass", updated.hashed_password)

    def test_unknown_id_returns_none(self, store) -> None:
        assert store.update_user("missing", first_name="x") is None

    def test_unknown_field_rejected(self, store) -> None:
        user = store.create_user(_candidate())
        with pytest.raises(ValueError):
            store.update_user(user.id, hashed_password="$2b$plain")

    def test_update_into_taken_username_conflicts(self, store) -> None:
        store.create_user(_candidate())
        bob = store.create_user(_candidate("bob", "bob@example.com"))
        with pytest.raises(ConflictError):
            store.update_user(bob.id, username="alice")


class TestListing:
    def test_creation_order_and_count(self, store, clock) -> None:
        names = ["carol", "alice", "bob"]
        for name in names:
            store.create_user(_candidate(name, f"{name}@example.com"))
            clock.advance(1)
        assert [u.username for u in store.list_users()] == names
        assert store.count_users() == 3

    def test_empty(self, store) -> None:
        assert store.list_users() == []
        assert store.count_users() == 0


# ---------------------------------------------------------------------------
# Concurrency
#
# The SQL variant uses a file database so every worker thread gets its own
# pooled connection; uniqueness is then enforced by the UNIQUE constraints.
# ---------------------------------------------------------------------------


@pytest.fixture(params=["memory", "sqlite-file"])
def shared_store(request, tmp_path) -> Generator:
    if request.param == "memory":
        backend = InMemoryUserStore()
    else:
        backend = SqlUserStore(f"sqlite:///{tmp_path / 'users.db'}")
    yield backend
    backend.close()


def test_concurrent_duplicate_creates_admit_exactly_one(shared_store) -> None:
    workers = 8
    barrier = threading.Barrier(workers)

    def attempt(i: int) -> str:
        barrier.wait()
        try:
            shared_store.create_user(_candidate("racer", f"racer{i}@example.com"))
        except ConflictError:
            return "conflict"
        return "created"

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(attempt, range(workers)))

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == workers - 1
    assert shared_store.count_users() == 1


def test_concurrent_distinct_creates_are_all_kept(shared_store) -> None:
    workers = 8
    barrier = threading.Barrier(workers)

    def create(i: int) -> str:
        barrier.wait()
        return shared_store.create_user(_candidate(f"user{i}", f"user{i}@example.com")).id

    with ThreadPoolExecutor(max_workers=workers) as pool:
        ids = list(pool.map(create, range(workers)))

    assert len(set(ids)) == workers
    assert shared_store.count_users() == workers
