"""JSON API used by the browser client, plus ops and static routes."""

from __future__ import annotations

from flask import current_app

from assetlib.library.hosted import HostedCatalog


def get_store():
    return current_app.extensions["assetlib"]["store"]


def get_catalog() -> HostedCatalog:
    return HostedCatalog(get_store(), current_app.config.get("FOLDER_DELETE_POLICY", "cascade"))


def get_vision():
    return current_app.extensions["assetlib"]["vision"]


def summary(asset: dict) -> dict:
    """Asset row without its payload."""
    return {k: v for k, v in asset.items() if k != "data"}
