"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status and version
  - No authentication required
  - Unknown routes still answer with the JSON error envelope
"""

from __future__ import annotations

from api.main import __version__


def test_health_returns_status_and_version(client):
    """Health endpoint returns 200 with status ok and the app version."""
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": __version__}


def test_health_no_auth_required(client):
    """Health endpoint is reachable with an empty cookie jar and no headers."""
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


def test_untrusted_host_is_rejected(client):
    """TrustedHostMiddleware answers 400 before any route runs."""
    resp = client.get("/api/health", headers={"Host": "evil.example.com"})
    assert resp.status_code == 400
