"""Low-level HTTP client for the Keycloak Admin API.

Authenticates with a service account (client credentials grant) and
re-authenticates shortly before the token expires.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("demo", "automation-cli", "secret")
        groups = client.get("/admin/realms/demo/groups").json()
    """

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, str] = {}

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate as service account and store credentials for auto-refresh.

        Args:
            auth_realm: Realm where service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        return self._refresh_token()

    def _refresh_token(self) -> str:
        url = f"{self.base_url}/realms/{self._auth_params['auth_realm']}/protocol/openid-connect/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self._auth_params["client_id"],
            "client_secret": self._auth_params["client_secret"],
        }
        resp = requests.post(url, data=data, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        self._token = payload["access_token"]
        # Refresh 10 seconds early; assume 60 seconds when Keycloak omits expires_in
        lifetime = int(payload.get("expires_in") or 60)
        self._token_expires_at = datetime.now() + timedelta(seconds=max(lifetime - 10, 0))
        return self._token

    def _ensure_authenticated(self) -> None:
        if not self._auth_params:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")
        if not self._token or not self._token_expires_at or datetime.now() >= self._token_expires_at:
            self._refresh_token()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"
        resp = getattr(requests, method)(url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp

    def get(self, path: str, params: Optional[Dict] = None) -> requests.Response:
        """Execute GET request; raises KeycloakAPIError on HTTP error."""
        return self._request("get", path, params=params)

    def delete(self, path: str) -> requests.Response:
        """Execute DELETE request; raises KeycloakAPIError on HTTP error."""
        return self._request("delete", path)
