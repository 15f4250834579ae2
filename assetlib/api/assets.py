from __future__ import annotations

import io

from flask import Blueprint, jsonify, request, send_file

from assetlib.api import get_catalog, summary
from assetlib.errors import ValidationError
from assetlib.services import filtering
from assetlib.services.downloads import prepare_download, zip_downloads
from assetlib.services.upload import UploadCandidate, format_file_size

bp = Blueprint("assets", __name__, url_prefix="/api")


def _ids_from_body() -> list[int]:
    payload = request.get_json(silent=True) or {}
    ids = payload.get("ids")
    if not isinstance(ids, list) or not ids:
        raise ValidationError("No assets selected")
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError) as exc:
        raise ValidationError("Asset ids must be integers") from exc


@bp.get("/assets")
def list_assets():
    project_id = request.args.get("project_id", type=int)
    if project_id is None:
        raise ValidationError("project_id is required")
    folder = request.args.get("folder", filtering.ALL)
    selected = filtering.ALL if folder in ("", filtering.ALL) else request.args.get("folder", type=int)
    if selected is None:
        raise ValidationError(f"Invalid folder: {folder!r}")
    parent_id = request.args.get("parent_id", type=int)
    query = request.args.get("q", "")

    catalog = get_catalog()
    rows = catalog.assets(project_id)
    visible = filtering.visible_assets(
        rows,
        catalog.folders(project_id),
        project_id=project_id,
        selected_folder=selected,
        parent_folder=parent_id,
        query=query,
    )
    include_data = request.args.get("data", "1") not in ("0", "false")
    return jsonify(
        {
            "assets": visible if include_data else [summary(a) for a in visible],
            "label": filtering.count_label(visible, query),
            "empty_state": filtering.empty_state(visible, query),
        }
    )


@bp.post("/assets")
def upload_assets():
    files = request.files.getlist("files[]") or request.files.getlist("files")
    candidates = [
        UploadCandidate(f.filename or "upload", f.mimetype or "", f.read()) for f in files
    ]
    result = get_catalog().upload(
        candidates,
        request.form.get("project_id", type=int),
        request.form.get("folder_id", type=int),
    )
    body = {
        "succeeded": result.succeeded,
        "failed": result.failed,
        "errors": result.errors,
        "assets": [summary(a) for a in result.assets],
    }
    return jsonify(body), 201 if result.succeeded else 400


@bp.get("/assets/<int:asset_id>/download")
def download_asset(asset_id: int):
    item = prepare_download(get_catalog().asset(asset_id))
    return send_file(
        io.BytesIO(item.content),
        mimetype=item.mime,
        as_attachment=True,
        download_name=item.name,
    )


@bp.delete("/assets/<int:asset_id>")
def delete_asset(asset_id: int):
    get_catalog().delete_asset(asset_id)
    return jsonify({"deleted": asset_id}), 200


@bp.post("/assets/bulk-delete")
def bulk_delete():
    removed = get_catalog().bulk_delete(_ids_from_body())
    return jsonify({"deleted": removed}), 200


@bp.post("/assets/bulk-download")
def bulk_download():
    archive, _result = zip_downloads(get_catalog().assets_by_ids(_ids_from_body()))
    return send_file(
        io.BytesIO(archive),
        mimetype="application/zip",
        as_attachment=True,
        download_name="assets.zip",
    )


@bp.get("/storage")
def storage():
    total = get_catalog().storage_total()
    return jsonify({"bytes": total, "label": format_file_size(total)})
