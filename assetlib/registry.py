"""Centraliza el registro de blueprints de la aplicación."""

from __future__ import annotations

from flask import Blueprint, Flask

from assetlib.api.analyze import bp as analyze_bp
from assetlib.api.assets import bp as assets_bp
from assetlib.api.folders import bp as folders_bp
from assetlib.api.ops import bp as ops_bp
from assetlib.api.projects import bp as projects_bp
from assetlib.api.static import bp as static_bp


def register_blueprints(app: Flask) -> dict[str, Blueprint]:
    """Registra todos los blueprints conocidos y devuelve un índice por nombre."""

    entries: list[tuple[Blueprint, dict[str, object]]] = [
        (ops_bp, {}),
        (projects_bp, {}),
        (folders_bp, {}),
        (assets_bp, {}),
        (analyze_bp, {}),
        # catch-all de archivos: siempre al final
        (static_bp, {}),
    ]

    registry: dict[str, Blueprint] = {}
    for blueprint, options in entries:
        app.register_blueprint(blueprint, **options)
        registry[blueprint.name] = blueprint

    return registry
