"""Tests for group listing, lookup and member removal."""
import pytest

from groupconsole.core import group_service
from groupconsole.core.backends import MemoryUserGroupBackend, YamlUserGroupBackend
from groupconsole.core.exceptions import BackendError, GroupNotFoundError, QueryError, UnsupportedCapabilityError
from groupconsole.core.filters import where


@pytest.fixture()
def backend():
    return MemoryUserGroupBackend("local", {
        "groups": [
            {"name": "admins", "members": ["alice", "bob", "carol"]},
            {"name": "operators", "parent": "admins"},
            {"name": "analysts"},
        ],
    })


class _FailingForBob(MemoryUserGroupBackend):
    def delete(self, table, filter=None):
        if filter is not None and filter.matches({"group_name": "admins", "user_name": "bob"}):
            raise BackendError("bob is managed elsewhere")
        return super().delete(table, filter)


def test_list_groups_sorted_by_default_column(backend):
    page = group_service.list_groups(backend)

    assert [g["group_name"] for g in page.items] == ["admins", "analysts", "operators"]
    assert page.total == 3
    assert page.pages == 1
    assert set(page.items[0]) == {"group_name", "parent_name", "created_at", "last_modified"}


def test_list_groups_filter_sort_and_page(backend):
    page = group_service.list_groups(backend, sort="group_name", direction="desc", page=2, limit=1)
    assert [g["group_name"] for g in page.items] == ["analysts"]
    assert page.to_dict()["pages"] == 3

    filtered = group_service.list_groups(backend, filter=where("parent_name", "admins"))
    assert [g["group_name"] for g in filtered.items] == ["operators"]


def test_list_groups_rejects_unknown_sort_and_bad_page(backend):
    with pytest.raises(QueryError):
        group_service.list_groups(backend, sort="user_name")
    with pytest.raises(QueryError):
        group_service.list_groups(backend, page=0)


def test_get_group(backend):
    assert group_service.get_group(backend, "operators")["parent_name"] == "admins"
    with pytest.raises(GroupNotFoundError):
        group_service.get_group(backend, "missing")
    assert group_service.group_exists(backend, "admins")
    assert not group_service.group_exists(backend, "missing")


def test_list_members(backend):
    page = group_service.list_members(backend, "admins", sort="user_name", direction="desc")

    assert [m["user_name"] for m in page.items] == ["carol", "bob", "alice"]
    assert set(page.items[0]) == {"user_name", "created_at", "last_modified"}


def test_remove_members_continues_after_failure():
    backend = _FailingForBob("local", {"groups": [{"name": "admins", "members": ["alice", "bob"]}]})
    notifications = []

    results = group_service.remove_members(
        backend, "admins", ["alice", "bob"], notify=lambda message, category: notifications.append((category, message))
    )

    assert [(r.user_name, r.success) for r in results] == [("alice", True), ("bob", False)]
    assert notifications == [
        ("success", 'User "alice" has been removed from group "admins"'),
        ("error", "bob is managed elsewhere"),
    ]
    remaining = backend.select(["user_name"], table="group_membership").fetch_all()
    assert remaining == [{"user_name": "bob"}]


def test_remove_members_requires_reducible_backend(tmp_path):
    path = tmp_path / "groups.yaml"
    path.write_text("admins:\n  members: [alice]\n")
    backend = YamlUserGroupBackend("corporate", {"path": str(path)})

    with pytest.raises(UnsupportedCapabilityError):
        group_service.remove_members(backend, "admins", ["alice"])
