"""
Flask application factory.

Responsibility:
    Builds the WSGI app around a ``BlindBoxSystem``: registers the routes,
    binds a request id into the log context for every request, and maps
    the typed error hierarchy to HTTP status codes.

Error mapping:
    ValidationError        400
    NotFoundError          404
    AlreadyOpenedError     409
    EmptyTierError         500
    StoreUnavailableError  503
    anything else          500 (logged with traceback)

    Error bodies are ``{"error": message, "code": code}``.
"""

from __future__ import annotations

import uuid

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from blindbox_api.routes import api_bp, health_bp
from blindbox_config import AppSettings, get_catalog
from blindbox_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from blindbox_kernel.exceptions import (
    AlreadyOpenedError,
    BlindBoxError,
    EmptyTierError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from blindbox_kernel.logging_config import LogContext, get_logger
from blindbox_services.wiring import (
    BlindBoxSystem,
    bootstrap,
    build_memory_system,
    build_sql_system,
)

logger = get_logger("api")

REQUEST_ID_HEADER = "X-Request-ID"

_STATUS_BY_ERROR: tuple[tuple[type[BlindBoxError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (AlreadyOpenedError, 409),
    (EmptyTierError, 500),
    (StoreUnavailableError, 503),
)


def status_for(exc: BlindBoxError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def system_from_settings(settings: AppSettings) -> BlindBoxSystem:
    """Build and bootstrap a system as described by ``settings``."""
    catalog = get_catalog(settings.catalog_path)
    if settings.uses_database:
        init_engine_from_url(settings.database_url)
        create_tables()
        system = build_sql_system(
            get_session_factory(), default_probabilities=catalog.probabilities
        )
    else:
        system = build_memory_system(default_probabilities=catalog.probabilities)
    bootstrap(
        system,
        catalog.products if settings.seed_on_startup else None,
        reset_backpack=settings.reset_backpack,
    )
    return system


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(BlindBoxError)
    def handle_blindbox_error(exc: BlindBoxError):
        status = status_for(exc)
        log = logger.error if status >= 500 else logger.info
        log("request_failed", extra={
            "status": status,
            "error_code": exc.code,
            "path": request.path,
        }, exc_info=status >= 500)
        return jsonify({"error": str(exc), "code": exc.code}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = exc.name.upper().replace(" ", "_")
        return jsonify({"error": exc.description, "code": code}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.error("request_crashed", extra={"path": request.path}, exc_info=True)
        return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500


def _register_request_context(app: Flask) -> None:
    @app.before_request
    def bind_request_id():
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_id = request_id
        g.log_context = LogContext.bind(request_id=request_id)
        g.log_context.__enter__()

    @app.after_request
    def echo_request_id(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.teardown_request
    def unbind_request_id(exc):
        ctx = g.pop("log_context", None)
        if ctx is not None:
            ctx.__exit__(None, None, None)


def create_app(
    system: BlindBoxSystem | None = None,
    settings: AppSettings | None = None,
) -> Flask:
    """
    Create the Flask app.

    Args:
        system: A ready system (tests pass one built on in-memory stores).
            When None, one is built and bootstrapped from ``settings``.
        settings: Defaults to ``AppSettings.from_env()``.
    """
    if system is None:
        system = system_from_settings(settings or AppSettings.from_env())

    app = Flask(__name__)
    app.extensions["blindbox"] = system
    app.register_blueprint(health_bp)
    app.register_blueprint(api_bp)
    _register_request_context(app)
    _register_error_handlers(app)
    return app
