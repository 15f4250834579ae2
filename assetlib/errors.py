from __future__ import annotations

import logging
import uuid

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException


class AssetLibraryError(Exception):
    """Base class for errors surfaced to the user as a notification."""

    status_code = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AssetLibraryError):
    """Bad input: unsupported file, missing field or broken invariant."""

    status_code = 400


class NotFoundError(AssetLibraryError):
    status_code = 404


class StoreError(AssetLibraryError):
    """A read, write or subscribe against the backing store failed."""

    status_code = 503


class QuotaExceededError(StoreError):
    """The local store would exceed its storage ceiling."""

    status_code = 507


class VisionError(AssetLibraryError):
    """The vision relay is unavailable or returned a malformed reply."""

    status_code = 500


def _json_error(status: int, message: str | None = None, details: str | None = None):
    body = {
        "code": status,
        "message": message or "error",
        "path": request.path,
        "request_id": getattr(g, "request_id", None),
    }
    if details:
        body["details"] = details
    return jsonify(error=body), status


def register_instrumentation(app):
    @app.before_request
    def _assign_request_id():
        rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        g.request_id = rid

    @app.after_request
    def _attach_request_id(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-Id"] = rid
        return resp


def register_error_handlers(app):
    register_instrumentation(app)

    @app.errorhandler(AssetLibraryError)
    def _domain_error(e: AssetLibraryError):
        if e.status_code >= 500:
            app.logger.warning("%s: %s", type(e).__name__, e.message)
        return _json_error(e.status_code, e.message, e.details)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return _json_error(e.code or 500, e.description or e.name)

    @app.errorhandler(Exception)
    def _500(e):
        # log y respuesta JSON coherente
        try:
            app.logger.exception("Unhandled exception", exc_info=e)
        except Exception:
            logging.exception("Unhandled exception (fallback)")
        return _json_error(500, "Internal Server Error")
