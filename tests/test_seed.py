"""Tests for api/seed.py -- demo data for local development."""

from api.seed import seed_demo_data
from auth.models import Role
from auth.passwords import verify_password


def test_seed_creates_demo_accounts(user_store, audit_store):
    assert seed_demo_data(user_store, audit_store) is True
    admin = user_store.get_by_username("admin")
    viewer = user_store.get_by_email("viewer@company.com")
    assert admin.role is Role.admin
    assert viewer.role is Role.viewer
    assert verify_password("admin123", admin.hashed_password)
    assert verify_password("viewer123", viewer.hashed_password)


def test_seed_writes_sample_audit_records(user_store, audit_store):
    seed_demo_data(user_store, audit_store)
    assert len(audit_store.list_activity()) == 3
    assert len(audit_store.list_security_events()) == 3
    unresolved = audit_store.list_unresolved_security_events()
    assert [e.type for e in unresolved] == ["security_alert"]


def test_seed_is_idempotent(user_store, audit_store):
    seed_demo_data(user_store, audit_store)
    assert seed_demo_data(user_store, audit_store) is False
    assert user_store.count_users() == 2
    assert len(audit_store.list_activity()) == 3
