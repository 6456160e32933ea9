"""Resolve user group backends from a configuration snapshot."""
from __future__ import annotations
import logging
from typing import Callable, Optional

from ..config.groups import GroupsConfig
from .backends import UserGroupBackend, create_backend
from .capabilities import Selectable, capability_name
from .exceptions import BackendNotFoundError, UnsupportedCapabilityError

logger = logging.getLogger(__name__)

BackendFactory = Callable[[str, dict], UserGroupBackend]


def load_user_group_backends(
    config: GroupsConfig,
    capability: Optional[type] = None,
    factory: BackendFactory = create_backend,
) -> list[UserGroupBackend]:
    """Return all configured backends implementing `capability`, in configuration order.

    Args:
        config: Backend sections
        capability: Capability class to require, or None for no check
        factory: Callable creating a backend from (name, section)
    """
    backends = []
    for name in config:
        candidate = factory(name, config.get_section(name))
        if capability is None or isinstance(candidate, capability):
            backends.append(candidate)
    return backends


def get_user_group_backend(
    config: GroupsConfig,
    name: Optional[str] = None,
    capability: Optional[type] = Selectable,
    factory: BackendFactory = create_backend,
) -> Optional[UserGroupBackend]:
    """Return the named backend, or the first one implementing `capability`.

    Args:
        config: Backend sections
        name: Backend name, or None to pick the first match
        capability: Capability the backend must implement (None disables the check)
        factory: Callable creating a backend from (name, section)

    Returns:
        The backend, or None if no name was given and no backend qualifies

    Raises:
        BackendNotFoundError: If `name` is not configured
        UnsupportedCapabilityError: If the named backend lacks `capability`
    """
    if name is None:
        backends = load_user_group_backends(config, capability, factory)
        return backends[0] if backends else None

    if not config.has_section(name):
        raise BackendNotFoundError(name)

    backend = factory(name, config.get_section(name))
    if capability is not None and not isinstance(backend, capability):
        logger.info("Backend %s rejected: not %s", name, capability_name(capability))
        raise UnsupportedCapabilityError(name, capability_name(capability))
    return backend
