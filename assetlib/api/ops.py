"""Health, version and Prometheus endpoints."""

from __future__ import annotations

import os

from flask import Blueprint, Response, current_app, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, REGISTRY, generate_latest, multiprocess

from assetlib.api import get_catalog
from assetlib.errors import StoreError

bp = Blueprint("ops", __name__)


@bp.get("/healthz")
def healthz() -> tuple[object, int]:
    return jsonify({"status": "ok"}), 200


@bp.get("/api/version")
def version():
    return (
        jsonify(
            version=current_app.config.get("APP_VERSION", "dev"),
            commit=current_app.config.get("GIT_SHA", "local"),
            env=current_app.config.get("ENV_NAME", "production"),
        ),
        200,
    )


@bp.get("/metrics")
def metrics() -> Response:
    try:
        get_catalog().refresh_gauges()
    except StoreError:
        current_app.logger.warning("Could not refresh asset gauges")
    registry = REGISTRY
    if os.getenv("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
    response = Response(generate_latest(registry))
    response.headers["Content-Type"] = CONTENT_TYPE_LATEST
    return response
