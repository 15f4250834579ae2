from __future__ import annotations

from flask import Blueprint, jsonify, request

from assetlib.api import get_catalog

bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@bp.get("")
def list_projects():
    catalog = get_catalog()
    projects = catalog.projects()
    counts = catalog.asset_counts(p["id"] for p in projects)
    folders = catalog.folders()
    items = []
    for project in projects:
        items.append(
            {
                **project,
                "asset_count": counts.get(project["id"], 0),
                "folder_count": sum(1 for f in folders if f["project_id"] == project["id"]),
            }
        )
    return jsonify(items)


@bp.post("")
def create_project():
    payload = request.get_json(silent=True) or {}
    row = get_catalog().create_project(
        payload.get("name"), payload.get("description"), payload.get("color")
    )
    return jsonify(row), 201


@bp.delete("/<int:project_id>")
def delete_project(project_id: int):
    get_catalog().delete_project(project_id)
    return jsonify({"deleted": project_id}), 200
