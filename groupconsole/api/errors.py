"""Error handlers for the application."""
from flask import jsonify, render_template, request
from werkzeug.exceptions import HTTPException

from groupconsole.config.groups import GroupsConfigError
from groupconsole.core.exceptions import (
    BackendConfigError,
    BackendError,
    NotFoundError,
    QueryError,
    UnsupportedCapabilityError,
)


def _error_response(status: int, title: str, message: str):
    if wants_json():
        return jsonify({"error": title, "message": message}), status
    return render_template(
        "errors/error.html",
        title=title,
        status=status,
        message=message,
    ), status


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return _error_response(400, "Bad Request", error.description or "Invalid request")

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        description = error.description
        if not description or description.startswith("The requested URL was not found"):
            description = "Resource not found"
        return _error_response(404, "Not Found", description)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error_response(405, "Method Not Allowed", f"{request.method} is not allowed here")

    @app.errorhandler(NotFoundError)
    def console_not_found(error):
        """Missing backend or group (read paths)."""
        return _error_response(404, "Not Found", str(error))

    @app.errorhandler(UnsupportedCapabilityError)
    def unsupported_capability(error):
        """Backend lacks the capability a write path needs."""
        return _error_response(400, "Bad Request", str(error))

    @app.errorhandler(QueryError)
    def invalid_query(error):
        return _error_response(400, "Bad Request", str(error))

    @app.errorhandler(BackendError)
    def backend_failure(error):
        app.logger.error("Backend failure: %s", error, exc_info=True)
        return _error_response(502, "Bad Gateway", str(error))

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        app.logger.error("Internal error: %s", error, exc_info=True)
        return _error_response(500, "Internal Server Error", "An unexpected error occurred")

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error("Unhandled exception: %s", error, exc_info=True)
        if isinstance(error, (BackendConfigError, GroupsConfigError)):
            return _error_response(500, "Configuration Error", str(error))
        return _error_response(500, "Internal Server Error", "An unexpected error occurred")


def wants_json():
    """Check if the client wants a JSON response."""
    if request.args.get("format") == "json":
        return True
    return request.accept_mimetypes.accept_json and \
        not request.accept_mimetypes.accept_html
