"""User group console routes: list, show, create, edit, remove and member removal."""
from __future__ import annotations
from typing import Optional

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    get_flashed_messages,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from scripts import audit
from groupconsole.api.errors import wants_json
from groupconsole.api.helpers.listing import parse_list_controls
from groupconsole.core import group_service
from groupconsole.core.capabilities import Extensible, Reducible, Selectable, Updatable
from groupconsole.core.exceptions import GroupAlreadyExistsError, GroupNotFoundError
from groupconsole.core.forms import UserGroupForm
from groupconsole.core.resolver import get_user_group_backend, load_user_group_backends

bp = Blueprint("group", __name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _required_arg(name: str) -> str:
    """Return a required request parameter (query string or form) or abort with 400."""
    value = (request.values.get(name) or "").strip()
    if not value:
        abort(400, description=f"Required parameter '{name}' is missing")
    return value


def _backend(name: Optional[str], capability: type = Selectable):
    return get_user_group_backend(
        current_app.config["GROUPS_CONFIG"],
        name,
        capability,
        factory=current_app.extensions["groupconsole"],
    )


def _list_limit() -> int:
    return current_app.config["APP_CONFIG"].group_list_limit


def _render(template: str, status: int = 200, **context):
    """Render a template, or the view-model as JSON for JSON clients."""
    if wants_json():
        return jsonify(context), status
    return render_template(
        template,
        flash_messages=get_flashed_messages(with_categories=True),
        **context,
    ), status


def _done(message: str, target: str, status: int = 200, category: str = "success"):
    """Finish a state-changing request: JSON message or flash and redirect."""
    if wants_json():
        return jsonify({"message": message}), status
    flash(message, category)
    return redirect(target)


def _safe_redirect(raw: Optional[str], fallback: str) -> str:
    # only same-site paths are honoured
    if raw and raw.startswith("/") and not raw.startswith("//"):
        return raw
    return fallback


def _operator() -> str:
    return request.headers.get("X-Remote-User") or request.remote_addr or "console"


# ─────────────────────────────────────────────────────────────────────────────
# Read routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/")
def index():
    return redirect(url_for("group.list_groups"))


@bp.route("/list")
def list_groups():
    """List groups of the selected (or first selectable) backend."""
    config = current_app.config["GROUPS_CONFIG"]
    factory = current_app.extensions["groupconsole"]
    backend_names = [
        backend.name for backend in load_user_group_backends(config, Selectable, factory)
    ]
    backend = _backend(request.args.get("backend") or None)
    controls = parse_list_controls(request.args, _list_limit())

    if backend is None:
        return _render(
            "group/list.html",
            backends=backend_names,
            backend=None,
            groups=None,
            sort_columns=group_service.GROUP_SORT_COLUMNS,
            controls=controls.as_args(),
            can_add=False,
            can_remove=False,
        )

    page = group_service.list_groups(
        backend,
        filter=controls.filter,
        sort=controls.sort,
        direction=controls.direction,
        page=controls.page,
        limit=controls.limit,
    )
    return _render(
        "group/list.html",
        backends=backend_names,
        backend=backend.name,
        groups=page.to_dict(),
        sort_columns=group_service.GROUP_SORT_COLUMNS,
        controls=controls.as_args(),
        can_add=isinstance(backend, Extensible),
        can_remove=isinstance(backend, Reducible),
    )


@bp.route("/show")
def show_group():
    """Show a group's metadata and its paginated members."""
    backend_name = _required_arg("backend")
    group_name = _required_arg("group")
    backend = _backend(backend_name)

    # raises GroupNotFoundError (404) before any member query
    group = group_service.get_group(backend, group_name)
    controls = parse_list_controls(request.args, _list_limit())
    members = group_service.list_members(
        backend,
        group_name,
        filter=controls.filter,
        sort=controls.sort,
        direction=controls.direction,
        page=controls.page,
        limit=controls.limit,
    )
    return _render(
        "group/show.html",
        backend=backend.name,
        group=group,
        members=members.to_dict(),
        sort_columns=group_service.MEMBER_SORT_COLUMNS,
        controls=controls.as_args(),
        can_edit=isinstance(backend, Updatable),
        can_remove=isinstance(backend, Reducible),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Write routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/add", methods=["GET", "POST"])
def add_group():
    """Create a group (Extensible backends)."""
    backend_name = _required_arg("backend")
    backend = _backend(backend_name, Extensible)

    if request.method == "GET":
        return _render(
            "group/form.html",
            mode="add",
            backend=backend.name,
            values={"group_name": "", "parent_name": ""},
        )

    form = UserGroupForm(backend)
    try:
        message = form.add(request.form)
    except (ValueError, GroupAlreadyExistsError, GroupNotFoundError) as exc:
        audit.safe_log_group_event(
            "group_create",
            request.form.get("group_name", ""),
            backend=backend.name,
            operator=_operator(),
            details={"error": str(exc)},
            success=False,
        )
        return _done(str(exc), url_for("group.add_group", backend=backend.name), 400, "error")

    group_name = form.validate(request.form)["group_name"]
    audit.safe_log_group_event(
        "group_create",
        group_name,
        backend=backend.name,
        operator=_operator(),
        details={"parent_name": request.form.get("parent_name") or None},
    )
    return _done(message, url_for("group.show_group", backend=backend.name, group=group_name), 201)


@bp.route("/edit", methods=["GET", "POST"])
def edit_group():
    """Rename a group or change its parent (Updatable backends)."""
    backend_name = _required_arg("backend")
    group_name = _required_arg("group")
    backend = _backend(backend_name, Updatable)

    if request.method == "GET":
        group = group_service.get_group(backend, group_name)
        return _render(
            "group/form.html",
            mode="edit",
            backend=backend.name,
            group=group_name,
            values={"group_name": group["group_name"], "parent_name": group["parent_name"] or ""},
        )

    form = UserGroupForm(backend)
    try:
        message = form.edit(group_name, request.form)
    except (ValueError, GroupAlreadyExistsError) as exc:
        audit.safe_log_group_event(
            "group_edit",
            group_name,
            backend=backend.name,
            operator=_operator(),
            details={"error": str(exc)},
            success=False,
        )
        return _done(
            str(exc), url_for("group.edit_group", backend=backend.name, group=group_name), 400, "error"
        )

    new_name = form.validate(request.form)["group_name"]
    audit.safe_log_group_event(
        "group_edit",
        group_name,
        backend=backend.name,
        operator=_operator(),
        details={"group_name": new_name, "parent_name": request.form.get("parent_name") or None},
    )
    return _done(message, url_for("group.show_group", backend=backend.name, group=new_name))


@bp.route("/remove", methods=["GET", "POST"])
def remove_group():
    """Remove a group and its memberships (Reducible backends)."""
    backend_name = _required_arg("backend")
    group_name = _required_arg("group")
    backend = _backend(backend_name, Reducible)

    if request.method == "GET":
        group = group_service.get_group(backend, group_name)
        return _render("group/form.html", mode="remove", backend=backend.name, group=group_name, values=group)

    message = UserGroupForm(backend).remove(group_name)
    audit.safe_log_group_event("group_remove", group_name, backend=backend.name, operator=_operator())
    return _done(message, url_for("group.list_groups", backend=backend.name))


@bp.post("/removemember")
def remove_member():
    """Remove one or more users from a group; every user is attempted."""
    backend_name = _required_arg("backend")
    group_name = _required_arg("group")
    backend = _backend(backend_name, Reducible)

    if not group_service.group_exists(backend, group_name):
        raise GroupNotFoundError(group_name)

    user_names = [name.strip() for name in request.form.getlist("user_name") if name.strip()]
    if not user_names:
        abort(400, description="Required parameter 'user_name' is missing")

    json_client = wants_json()
    results = group_service.remove_members(
        backend,
        group_name,
        user_names,
        notify=None if json_client else flash,
    )
    for result in results:
        audit.safe_log_group_event(
            "member_remove",
            group_name,
            backend=backend.name,
            operator=_operator(),
            details={"user_name": result.user_name} if result.success
            else {"user_name": result.user_name, "error": result.message},
            success=result.success,
        )

    if json_client:
        return jsonify({
            "results": [
                {"user_name": r.user_name, "success": r.success, "message": r.message}
                for r in results
            ]
        })
    fallback = url_for("group.show_group", backend=backend.name, group=group_name)
    return redirect(_safe_redirect(request.values.get("redirect"), fallback))
