"""Prometheus metrics used across the asset library."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

uploads_total = Counter(
    "assetlib_uploads_total",
    "Uploaded files by outcome (stored, rejected, failed).",
    ["outcome"],
)
assets_deleted_total = Counter(
    "assetlib_assets_deleted_total",
    "Assets removed from the store, single and bulk deletes.",
)
vision_requests_total = Counter(
    "assetlib_vision_requests_total",
    "Image analysis requests relayed to the vision model by status.",
    ["status"],
)
store_errors_total = Counter(
    "assetlib_store_errors_total",
    "Failed store operations by operation name.",
    ["operation"],
)
assets_registered = Gauge(
    "assetlib_assets_registered",
    "Current number of assets registered in the database.",
)
projects_registered = Gauge(
    "assetlib_projects_registered",
    "Current number of projects registered in the database.",
)


__all__ = [
    "uploads_total",
    "assets_deleted_total",
    "vision_requests_total",
    "store_errors_total",
    "assets_registered",
    "projects_registered",
]
