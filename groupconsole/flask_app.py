"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.
"""
from __future__ import annotations
import hmac
import ipaddress
import logging
import os
import secrets
from tempfile import gettempdir
from typing import Optional

from flask import Flask, abort, g, redirect, request, session, url_for
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from groupconsole.config import AppConfig, GroupsConfig, load_settings
from groupconsole.core.backends import BackendFactory

CSRF_SESSION_KEY = "_csrf_token"


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, groups_config: Optional[GroupsConfig] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        groups_config: Backend sections; loaded through `cfg` when omitted
    """
    if cfg is None:
        cfg = load_settings()
    if groups_config is None:
        groups_config = cfg.load_groups()

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["GROUPS_CONFIG"] = groups_config
    app.extensions["groupconsole"] = BackendFactory()

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    if cfg.secret_key_fallbacks:
        app.config["SECRET_KEY_FALLBACKS"] = cfg.secret_key_fallbacks

    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "groupconsole_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure

    Session(app)

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    trusted_proxy_networks = _parse_networks(cfg.trusted_proxy_ips)
    app.config["TRUSTED_PROXY_NETWORKS"] = trusted_proxy_networks
    app.config["CSRF_SESSION_KEY"] = CSRF_SESSION_KEY

    # Register blueprints
    from groupconsole.api import errors, groups, health

    app.register_blueprint(health.bp)
    app.register_blueprint(groups.bp, url_prefix="/group")

    @app.route("/")
    def root():
        return redirect(url_for("group.index"))

    errors.register_error_handlers(app)
    _register_middleware(app, trusted_proxy_networks)
    _register_context_processors(app)

    if not app.debug:
        app.logger.setLevel(logging.INFO)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] User group backends: {', '.join(groups_config) or '(none)'}")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with the demo backend")

    return app


def _parse_networks(raw: str) -> list:
    networks = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            print(f"[flask_app] Ignoring invalid TRUSTED_PROXY_IPS entry: {entry}")
    return networks


def _register_middleware(app: Flask, trusted_proxy_networks: list):
    """Register before_request middleware."""

    @app.before_request
    def enforce_proxy_headers() -> None:
        """Validate proxy headers from trusted sources only."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # ProxyFix keeps the peer address it replaced
            original_remote = (request.environ.get("werkzeug.proxy_fix.orig") or {}).get("REMOTE_ADDR")
            if original_remote:
                try:
                    address = ipaddress.ip_address(original_remote)
                except ValueError:
                    abort(400, description="Invalid proxy address")
                if not any(address in network for network in trusted_proxy_networks):
                    abort(400, description="Untrusted proxy")

        forwarded_proto = request.headers.get("X-Forwarded-Proto")
        if forwarded_proto and forwarded_proto != "https":
            abort(400, description="Invalid forwarded protocol")

        if forwarded_for and "," in forwarded_for:
            abort(400, description="Multiple forwarded clients not permitted")

        g.csrf_token = _generate_csrf_token()

    @app.before_request
    def enforce_csrf() -> None:
        """Validate CSRF token for state-changing requests."""
        if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
            return

        submitted_token = (
            request.form.get("csrf_token")
            if not request.is_json
            else request.headers.get("X-CSRF-Token", "")
        )
        if not submitted_token:
            submitted_token = request.headers.get("X-CSRF-Token", "")

        session_token = session.get(app.config["CSRF_SESSION_KEY"], "")

        if not session_token or not submitted_token or not hmac.compare_digest(session_token, submitted_token):
            abort(400, description="CSRF validation failed")


def _register_context_processors(app: Flask):
    """Register context processors for templates."""

    @app.context_processor
    def inject_global_context():
        cfg = app.config["APP_CONFIG"]
        return {
            "csrf_token": g.get("csrf_token") or _generate_csrf_token(),
            "demo_mode": cfg.demo_mode,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _generate_csrf_token() -> str:
    """Generate or retrieve CSRF token for current session."""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
    return token
