from __future__ import annotations

from flask import Blueprint, jsonify, request

from assetlib.api import get_catalog
from assetlib.errors import ValidationError

bp = Blueprint("folders", __name__, url_prefix="/api/folders")


def _optional_int(value) -> int | None:
    if value in (None, "", "null"):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid id: {value!r}") from exc


@bp.get("")
def list_folders():
    project_id = request.args.get("project_id", type=int)
    return jsonify(get_catalog().folders(project_id))


@bp.post("")
def create_folder():
    payload = request.get_json(silent=True) or {}
    row = get_catalog().create_folder(
        _optional_int(payload.get("project_id")),
        payload.get("name"),
        _optional_int(payload.get("parent_id")),
    )
    return jsonify(row), 201


@bp.post("/<int:folder_id>/move")
def move_folder(folder_id: int):
    payload = request.get_json(silent=True) or {}
    row = get_catalog().move_folder(folder_id, _optional_int(payload.get("parent_id")))
    return jsonify(row), 200


@bp.delete("/<int:folder_id>")
def delete_folder(folder_id: int):
    removed = get_catalog().delete_folder(folder_id)
    return jsonify({"deleted": folder_id, "assets_deleted": removed}), 200
