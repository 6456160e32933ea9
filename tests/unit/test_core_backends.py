"""Tests for the memory and YAML user group backends and the backend factory."""
from pathlib import Path

import pytest

from groupconsole.core.backends import (
    BackendFactory,
    KeycloakUserGroupBackend,
    MemoryUserGroupBackend,
    YamlUserGroupBackend,
    create_backend,
)
from groupconsole.core.capabilities import Extensible, Reducible, Selectable, Updatable, capability_name
from groupconsole.core.exceptions import (
    BackendConfigError,
    BackendError,
    GroupAlreadyExistsError,
    GroupNotFoundError,
)
from groupconsole.core.filters import match_all, where

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@pytest.fixture()
def memory():
    return MemoryUserGroupBackend("local", {
        "groups": [
            {"name": "admins", "members": ["alice", "bob"]},
            {"name": "operators", "parent": "admins", "members": ["carol"]},
        ],
    })


def _group_names(backend):
    return sorted(row["group_name"] for row in backend.select(["group_name"]))


# ─────────────────────────────────────────────────────────────────────────────
# Memory backend
# ─────────────────────────────────────────────────────────────────────────────
def test_memory_backend_has_every_capability(memory):
    for capability in (Selectable, Extensible, Updatable, Reducible):
        assert isinstance(memory, capability)
    assert capability_name(Reducible) == "reducible"


def test_memory_seed_sets_timestamps(memory):
    row = memory.select().where("group_name", "operators").fetch_row()
    assert row["parent_name"] == "admins"
    assert row["created_at"] and row["created_at"] == row["last_modified"]


def test_memory_insert_rejects_duplicates_and_missing_parents(memory):
    with pytest.raises(GroupAlreadyExistsError):
        memory.insert("group", {"group_name": "admins"})
    with pytest.raises(GroupNotFoundError):
        memory.insert("group", {"group_name": "new", "parent_name": "missing"})
    with pytest.raises(GroupNotFoundError):
        memory.insert("group_membership", {"group_name": "missing", "user_name": "alice"})
    with pytest.raises(BackendError):
        memory.insert("group_membership", {"group_name": "admins", "user_name": "alice"})


def test_memory_rename_cascades_to_members_and_children(memory):
    changed = memory.update("group", {"group_name": "root"}, where("group_name", "admins"))

    assert changed == 1
    assert _group_names(memory) == ["operators", "root"]
    assert memory.select().where("group_name", "operators").fetch_row()["parent_name"] == "root"
    members = memory.select(["user_name"], table="group_membership").where("group_name", "root")
    assert members.count() == 2


def test_memory_update_rejects_rename_onto_existing_group(memory):
    with pytest.raises(GroupAlreadyExistsError):
        memory.update("group", {"group_name": "operators"}, where("group_name", "admins"))


def test_memory_update_without_match_returns_zero(memory):
    assert memory.update("group", {"parent_name": None}, where("group_name", "missing")) == 0


def test_memory_delete_group_removes_memberships(memory):
    assert memory.delete("group", where("group_name", "admins")) == 1
    assert _group_names(memory) == ["operators"]
    assert memory.select(table="group_membership").where("group_name", "admins").count() == 0


def test_memory_delete_single_membership(memory):
    removed = memory.delete(
        "group_membership", match_all(where("group_name", "admins"), where("user_name", "bob"))
    )
    assert removed == 1
    remaining = memory.select(["user_name"], table="group_membership").where("group_name", "admins")
    assert remaining.fetch_all() == [{"user_name": "alice"}]


def test_memory_rejects_malformed_seed():
    with pytest.raises(BackendConfigError):
        MemoryUserGroupBackend("bad", {"groups": [{"members": ["x"]}]})
    with pytest.raises(BackendConfigError):
        MemoryUserGroupBackend("bad", {"groups": "admins"})


# ─────────────────────────────────────────────────────────────────────────────
# YAML backend
# ─────────────────────────────────────────────────────────────────────────────
def test_yaml_backend_reads_groups_and_members():
    backend = YamlUserGroupBackend("corporate", {"path": str(DATA_DIR / "corporate-groups.yaml")})

    assert isinstance(backend, Selectable)
    assert not isinstance(backend, (Extensible, Updatable, Reducible))
    assert _group_names(backend) == ["engineering", "finance", "platform"]
    assert backend.select().where("group_name", "platform").fetch_row()["parent_name"] == "engineering"
    members = backend.select(["user_name"], table="group_membership").where("group_name", "engineering")
    assert [row["user_name"] for row in members.order("user_name")] == ["dave", "erin"]


def test_yaml_backend_requires_path():
    with pytest.raises(BackendConfigError):
        YamlUserGroupBackend("corporate", {})


def test_yaml_backend_reports_unreadable_file(tmp_path):
    backend = YamlUserGroupBackend("corporate", {"path": str(tmp_path / "missing.yaml")})
    with pytest.raises(BackendError):
        backend.select().fetch_all()


def test_yaml_backend_rejects_non_mapping(tmp_path):
    path = tmp_path / "groups.yaml"
    path.write_text("- admins\n- operators\n")
    with pytest.raises(BackendError):
        YamlUserGroupBackend("corporate", {"path": str(path)}).select().count()


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────
def test_create_backend_dispatches_on_type():
    assert isinstance(create_backend("a", {"backend": "memory"}), MemoryUserGroupBackend)
    assert isinstance(create_backend("b", {"backend": "YAML", "path": "x.yaml"}), YamlUserGroupBackend)
    assert isinstance(
        create_backend("c", {"backend": "keycloak", "url": "http://kc", "realm": "demo"}),
        KeycloakUserGroupBackend,
    )


@pytest.mark.parametrize("section", [None, {}, {"backend": "ldap"}])
def test_create_backend_rejects_missing_or_unknown_type(section):
    with pytest.raises(BackendConfigError):
        create_backend("x", section)


def test_backend_factory_keeps_memory_state_between_calls():
    factory = BackendFactory()
    section = {"backend": "memory", "groups": [{"name": "admins"}]}

    factory("local", section).insert("group", {"group_name": "new"})
    assert _group_names(factory("local", section)) == ["admins", "new"]

    factory.reset()
    assert _group_names(factory("local", section)) == ["admins"]
