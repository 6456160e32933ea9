"""User group backend reading groups and memberships from a Keycloak realm.

Example section:

    keycloak:
      backend: keycloak
      url: http://keycloak:8080
      realm: demo
      auth_realm: demo
      client_id: automation-cli
      # client_secret falls back to /run/secrets and KEYCLOAK_SERVICE_CLIENT_SECRET

Groups are listed with their full hierarchy; members and groups can be
removed (Reducible) but creation and renaming stay in Keycloak.
"""
from __future__ import annotations
import logging
from typing import Any, Iterable, Optional

from ...config.settings import load_secret
from ..capabilities import Reducible
from ..exceptions import BackendConfigError
from ..filters import Filter, match_all
from ..keycloak import KeycloakClient
from .base import UserGroupBackend

logger = logging.getLogger(__name__)


def _first_attribute(group: dict, key: str) -> Optional[str]:
    values = (group.get("attributes") or {}).get(key) or []
    return values[0] if values else None


class KeycloakUserGroupBackend(UserGroupBackend, Reducible):
    """Selectable and Reducible backend over the Keycloak Admin REST API."""

    backend_type = "keycloak"

    def __init__(self, name: str, config: Optional[dict[str, Any]] = None, client: Optional[KeycloakClient] = None):
        super().__init__(name, config)
        url = self.config.get("url")
        self.realm = self.config.get("realm")
        if not url or not self.realm:
            raise BackendConfigError(f"Backend '{name}': 'url' and 'realm' are required for keycloak backends")
        self._client = client or KeycloakClient(url)
        self._authenticated = client is not None
        self._groups: Optional[list[dict[str, Any]]] = None
        self._members: dict[str, list[dict[str, Any]]] = {}

    @property
    def client(self) -> KeycloakClient:
        if not self._authenticated:
            secret = self.config.get("client_secret") or load_secret(
                "keycloak_service_client_secret", "KEYCLOAK_SERVICE_CLIENT_SECRET"
            )
            if not secret:
                raise BackendConfigError(f"Backend '{self.name}': no service account client secret available")
            self._client.authenticate_service_account(
                self.config.get("auth_realm", self.realm),
                self.config.get("client_id", "automation-cli"),
                secret,
            )
            self._authenticated = True
        return self._client

    # ─────────────────────────────────────────────────────────────────────
    # Reading
    # ─────────────────────────────────────────────────────────────────────
    def _flatten(self, groups: list[dict], parent: Optional[str] = None) -> Iterable[dict[str, Any]]:
        for group in groups:
            yield {"id": group["id"], "name": group["name"], "parent": parent, "raw": group}
            yield from self._flatten(group.get("subGroups") or [], group["name"])

    def _load_groups(self) -> list[dict[str, Any]]:
        if self._groups is None:
            resp = self.client.get(f"/admin/realms/{self.realm}/groups", params={"briefRepresentation": "false"})
            self._groups = list(self._flatten(resp.json() or []))
        return self._groups

    def _load_members(self, group: dict[str, Any]) -> list[dict[str, Any]]:
        if group["id"] not in self._members:
            resp = self.client.get(f"/admin/realms/{self.realm}/groups/{group['id']}/members")
            self._members[group["id"]] = resp.json() or []
        return self._members[group["id"]]

    def _group_row(self, group: dict[str, Any]) -> dict[str, Any]:
        return {
            "group_name": group["name"],
            "parent_name": group["parent"],
            "created_at": _first_attribute(group["raw"], "created_at"),
            "last_modified": _first_attribute(group["raw"], "last_modified"),
        }

    def _membership_rows(self, group: dict[str, Any]) -> Iterable[tuple[dict[str, Any], dict[str, Any]]]:
        for user in self._load_members(group):
            row = {
                "group_name": group["name"],
                "user_name": user.get("username"),
                "created_at": None,
                "last_modified": None,
            }
            yield row, user

    def fetch_rows(self, table: str) -> Iterable[dict[str, Any]]:
        self.table_columns(table)
        groups = self._load_groups()
        if table == "group":
            return [self._group_row(group) for group in groups]
        return [row for group in groups for row, _ in self._membership_rows(group)]

    # ─────────────────────────────────────────────────────────────────────
    # Deleting
    # ─────────────────────────────────────────────────────────────────────
    def delete(self, table: str, filter: Optional[Filter] = None) -> int:
        self.table_columns(table)
        f = filter or match_all()
        removed = 0
        if table == "group":
            for group in self._load_groups():
                if f.matches(self._group_row(group)):
                    self.client.delete(f"/admin/realms/{self.realm}/groups/{group['id']}")
                    logger.info("Removed group %s from realm %s", group["name"], self.realm)
                    removed += 1
            self._groups = None
            return removed

        for group in self._load_groups():
            if not f.could_match({"group_name": group["name"]}):
                continue
            for row, user in self._membership_rows(group):
                if not f.matches(row):
                    continue
                self.client.delete(f"/admin/realms/{self.realm}/users/{user['id']}/groups/{group['id']}")
                logger.info("Removed %s from group %s in realm %s", row["user_name"], group["name"], self.realm)
                removed += 1
        self._members.clear()
        return removed
