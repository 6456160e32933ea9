"""Keycloak Admin API access used by the keycloak user group backend."""
from .client import KeycloakClient, REQUEST_TIMEOUT
from .exceptions import KeycloakError, KeycloakAPIError

__all__ = [
    "KeycloakClient",
    "REQUEST_TIMEOUT",
    "KeycloakError",
    "KeycloakAPIError",
]
