"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .groups import DEMO_GROUPS, GroupsConfig, load_groups_config

SECRETS_DIR = "/run/secrets"


def load_secret(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path(SECRETS_DIR) / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read {SECRETS_DIR}/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Flask
    secret_key: str
    secret_key_fallbacks: list[str] = field(default_factory=list)
    session_cookie_secure: bool = True
    trusted_proxy_ips: str = "127.0.0.1/32,::1/128"

    # User group backends
    groups_config_path: str = ""
    group_list_limit: int = 25

    # Audit
    audit_log_signing_key: str = ""

    def load_groups(self) -> GroupsConfig:
        """Load the backend sections; demo mode falls back to a built-in memory backend.

        Raises:
            GroupsConfigError: If a configured file cannot be parsed
        """
        if self.groups_config_path:
            return load_groups_config(self.groups_config_path)
        if self.demo_mode:
            return DEMO_GROUPS
        return GroupsConfig()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"Environment variable {name} must be positive, got {value}")
    return value


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = _env_flag("DEMO_MODE")

    secret_key = load_secret("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if not demo_mode:
            raise RuntimeError(f"FLASK_SECRET_KEY not found in {SECRETS_DIR} or environment")
        secret_key = secrets.token_urlsafe(48)
        print("[demo-mode] Generated temporary FLASK_SECRET_KEY")

    secret_key_fallbacks = [
        key.strip()
        for key in os.environ.get("FLASK_SECRET_KEY_FALLBACKS", "").split(",")
        if key.strip()
    ]

    session_cookie_secure = _env_flag("FLASK_SESSION_COOKIE_SECURE", "true")

    trusted_proxy_ips = os.environ.get("TRUSTED_PROXY_IPS")
    if not trusted_proxy_ips:
        is_testing = os.environ.get("PYTEST_CURRENT_TEST") is not None
        if not (demo_mode or is_testing):
            raise RuntimeError("TRUSTED_PROXY_IPS is required when DEMO_MODE is false.")
        trusted_proxy_ips = "127.0.0.1/32,::1/128"

    groups_config_path = os.environ.get("GROUPS_CONFIG", "").strip()
    if not groups_config_path and not demo_mode:
        print("[settings] WARNING: GROUPS_CONFIG not set; no user group backends are configured")

    audit_log_signing_key = load_secret("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; groups_config={groups_config_path or '(built-in)'}")

    return AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        secret_key_fallbacks=secret_key_fallbacks,
        session_cookie_secure=session_cookie_secure,
        trusted_proxy_ips=trusted_proxy_ips,
        groups_config_path=groups_config_path,
        group_list_limit=_positive_int("GROUP_LIST_LIMIT", 25),
        audit_log_signing_key=audit_log_signing_key,
    )
