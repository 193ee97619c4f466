"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status and version
  - No authentication required
"""

from __future__ import annotations

from api.main import VERSION


def test_health_returns_ok(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": VERSION}


def test_health_no_auth_required(client):
    """Health endpoint is accessible without any authentication headers."""
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
