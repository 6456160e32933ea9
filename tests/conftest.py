"""Pytest shared fixtures."""
import json
import os
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from groupconsole.config import AppConfig, GroupsConfig
from groupconsole.flask_app import create_app
from scripts import audit


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)


@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """Fail loudly on unexpected HTTP calls; integration tests opt out."""
    if request.node.get_closest_marker("integration"):
        return

    def _unexpected(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    for method in ("get", "post", "put", "delete"):
        monkeypatch.setattr(requests, method, _unexpected(method.upper()))


@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Keep audit events of every test in its own directory."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "group-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_dir / "group-events.jsonl"


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    base = dict(
        demo_mode=True,
        secret_key="test-secret",
        secret_key_fallbacks=[],
        session_cookie_secure=False,
        trusted_proxy_ips="127.0.0.1/32,::1/128",
        group_list_limit=25,
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def groups_config():
    """Two backends: a writable memory store and a read-only YAML file."""
    return GroupsConfig({
        "local": {
            "backend": "memory",
            "groups": [
                {"name": "admins", "members": ["alice", "bob"]},
                {"name": "operators", "parent": "admins", "members": ["carol"]},
                {"name": "empty"},
            ],
        },
        "corporate": {
            "backend": "yaml",
            "path": str(ROOT / "tests" / "data" / "corporate-groups.yaml"),
        },
    })


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def flask_app(groups_config, tmp_path, monkeypatch):
    monkeypatch.setenv("FLASK_SESSION_DIR", str(tmp_path / "sessions"))
    app = create_app(make_config(), groups_config)
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture()
def csrf_token(client) -> str:
    """CSRF token of the test client session."""
    client.get("/health")
    with client.session_transaction() as session:
        return session["_csrf_token"]
