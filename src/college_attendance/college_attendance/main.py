from __future__ import annotations

import concurrent.futures
import importlib
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.async_runner import AsyncRunner
from .container import build_container
from .core.exceptions import (
    DomainError,
    InvalidTransitionError,
    LimitExceededError,
    MissingScopeError,
    NotFoundError,
    StoreError,
)
from .leaves.controller import register as register_leaves
from .notifications.controller import register as register_notifications

logger = logging.getLogger(__name__)


def settings_from_module(module) -> dict:
    return {name: getattr(module, name) for name in dir(module) if name.isupper()}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return jsonify({"success": False, "message": str(e)}), 404

    @app.errorhandler(InvalidTransitionError)
    def handle_conflict(e: InvalidTransitionError):
        return jsonify({"success": False, "message": str(e)}), 409

    @app.errorhandler(MissingScopeError)
    def handle_missing_scope(e: MissingScopeError):
        return jsonify({"success": False, "message": str(e), "missing": list(e.missing)}), 400

    @app.errorhandler(LimitExceededError)
    def handle_limit(e: LimitExceededError):
        return jsonify({"success": False, "message": str(e), "limit": e.limit, "actual": e.actual}), 400

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(StoreError)
    def handle_store_error(e: StoreError):
        logger.error("Store failure: %s", e)
        return jsonify({"success": False, "message": "Storage unavailable"}), 503

    @app.errorhandler(concurrent.futures.TimeoutError)
    def handle_timeout(e: concurrent.futures.TimeoutError):
        return jsonify({"success": False, "message": "Timed out waiting for storage; the operation may still complete"}), 504


def create_app(settings_overrides: dict | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = settings_from_module(importlib.import_module(settings_module))
    settings.update(settings_overrides or {})

    logging.basicConfig(
        level=str(settings.get("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.secret_key = settings.get("SECRET_KEY")
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    app.config["TESTING"] = bool(settings.get("TESTING", False))
    logger.info("college-attendance starting with %s (store=%s)", settings_module, settings.get("STORE_BACKEND"))

    container = build_container(settings=settings)
    runner = AsyncRunner(default_timeout=settings.get("REQUEST_TIMEOUT_SECONDS"))
    app.extensions["college_attendance"] = {"container": container, "runner": runner}

    if container.connection is not None:
        names = container.config.collections
        runner.run(container.store.create_indexes([names.attendance_root, names.leave_root]))

    register_error_handlers(app)
    register_attendance(app, container, runner)
    register_leaves(app, container, runner)
    register_notifications(app, container, runner)

    return app
