"""Tests for the Keycloak user group backend with stubbed HTTP calls."""
import pytest
import requests

from groupconsole.core.backends import KeycloakUserGroupBackend
from groupconsole.core.capabilities import Extensible, Reducible, Updatable
from groupconsole.core.exceptions import BackendConfigError, BackendError
from groupconsole.core.filters import match_all, where
from groupconsole.core.keycloak import KeycloakAPIError

BASE = "http://keycloak:8080"

GROUPS = [
    {
        "id": "g-admins",
        "name": "admins",
        "attributes": {"created_at": ["2024-01-01T00:00:00+00:00"]},
        "subGroups": [{"id": "g-ops", "name": "operators", "subGroups": []}],
    },
    {"id": "g-analysts", "name": "analysts"},
]

MEMBERS = {
    "g-admins": [{"id": "u-alice", "username": "alice"}, {"id": "u-bob", "username": "bob"}],
    "g-ops": [{"id": "u-carol", "username": "carol"}],
    "g-analysts": [],
}


class _Response:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


@pytest.fixture()
def keycloak_api(monkeypatch):
    """Stub the token endpoint and the admin group endpoints."""
    calls = {"post": [], "get": [], "delete": []}
    failing_deletes = set()

    def _post(url, data=None, timeout=None, **kwargs):
        calls["post"].append(url)
        if url == f"{BASE}/realms/master/protocol/openid-connect/token":
            assert data["client_secret"] == "s3cret"
            return _Response({"access_token": "token", "expires_in": 300})
        return _Response({"error": "not found"}, 404)

    def _get(url, headers=None, params=None, timeout=None, **kwargs):
        calls["get"].append(url)
        assert headers["Authorization"] == "Bearer token"
        if url == f"{BASE}/admin/realms/demo/groups":
            assert params == {"briefRepresentation": "false"}
            return _Response(GROUPS)
        prefix = f"{BASE}/admin/realms/demo/groups/"
        if url.startswith(prefix) and url.endswith("/members"):
            return _Response(MEMBERS[url[len(prefix):-len("/members")]])
        return _Response({"error": "not found"}, 404)

    def _delete(url, headers=None, timeout=None, **kwargs):
        calls["delete"].append(url)
        if url in failing_deletes:
            return _Response({"error": "forbidden"}, 403)
        return _Response(None, 204)

    monkeypatch.setattr(requests, "post", _post)
    monkeypatch.setattr(requests, "get", _get)
    monkeypatch.setattr(requests, "delete", _delete)
    calls["failing_deletes"] = failing_deletes
    return calls


@pytest.fixture()
def backend():
    return KeycloakUserGroupBackend("keycloak", {
        "backend": "keycloak",
        "url": BASE,
        "realm": "demo",
        "auth_realm": "master",
        "client_id": "automation-cli",
        "client_secret": "s3cret",
    })


def test_keycloak_backend_capabilities(backend):
    assert isinstance(backend, Reducible)
    assert not isinstance(backend, (Extensible, Updatable))


def test_keycloak_backend_requires_url_and_realm():
    with pytest.raises(BackendConfigError):
        KeycloakUserGroupBackend("keycloak", {"url": BASE})


def test_lists_groups_with_hierarchy(keycloak_api, backend):
    rows = backend.select().order("group_name").fetch_all()

    assert [(r["group_name"], r["parent_name"]) for r in rows] == [
        ("admins", None),
        ("analysts", None),
        ("operators", "admins"),
    ]
    assert rows[0]["created_at"] == "2024-01-01T00:00:00+00:00"
    assert keycloak_api["post"] == [f"{BASE}/realms/master/protocol/openid-connect/token"]


def test_lists_members(keycloak_api, backend):
    members = backend.select(["user_name"], table="group_membership").where("group_name", "admins")
    assert [row["user_name"] for row in members] == ["alice", "bob"]


def test_delete_membership_calls_user_group_endpoint(keycloak_api, backend):
    removed = backend.delete(
        "group_membership", match_all(where("group_name", "admins"), where("user_name", "bob"))
    )

    assert removed == 1
    assert keycloak_api["delete"] == [f"{BASE}/admin/realms/demo/users/u-bob/groups/g-admins"]


def test_delete_membership_only_fetches_members_of_matching_group(keycloak_api, backend):
    backend.delete("group_membership", match_all(where("group_name", "admins"), where("user_name", "bob")))

    member_urls = [url for url in keycloak_api["get"] if url.endswith("/members")]
    assert member_urls == [f"{BASE}/admin/realms/demo/groups/g-admins/members"]


def test_delete_membership_by_user_scans_every_group(keycloak_api, backend):
    assert backend.delete("group_membership", where("user_name", "carol")) == 1

    member_urls = [url for url in keycloak_api["get"] if url.endswith("/members")]
    assert len(member_urls) == 3
    assert keycloak_api["delete"] == [f"{BASE}/admin/realms/demo/users/u-carol/groups/g-ops"]


def test_delete_group_calls_group_endpoint(keycloak_api, backend):
    assert backend.delete("group", where("group_name", "operators")) == 1
    assert keycloak_api["delete"] == [f"{BASE}/admin/realms/demo/groups/g-ops"]


def test_delete_failure_raises_backend_error(keycloak_api, backend):
    keycloak_api["failing_deletes"].add(f"{BASE}/admin/realms/demo/users/u-alice/groups/g-admins")

    with pytest.raises(KeycloakAPIError) as excinfo:
        backend.delete("group_membership", match_all(where("group_name", "admins"), where("user_name", "alice")))

    assert isinstance(excinfo.value, BackendError)
    assert excinfo.value.status_code == 403


def test_missing_client_secret_is_a_config_error(monkeypatch, tmp_path):
    from groupconsole.config import settings

    monkeypatch.setattr(settings, "SECRETS_DIR", str(tmp_path))
    monkeypatch.delenv("KEYCLOAK_SERVICE_CLIENT_SECRET", raising=False)
    backend = KeycloakUserGroupBackend("keycloak", {"url": BASE, "realm": "demo"})

    with pytest.raises(BackendConfigError):
        backend.select().fetch_all()


def test_client_secret_falls_back_to_environment(monkeypatch, tmp_path, keycloak_api):
    from groupconsole.config import settings

    monkeypatch.setattr(settings, "SECRETS_DIR", str(tmp_path))
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "s3cret")
    backend = KeycloakUserGroupBackend("keycloak", {"url": BASE, "realm": "demo", "auth_realm": "master"})

    assert backend.select().count() == 3
