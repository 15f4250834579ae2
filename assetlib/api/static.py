"""Serves the browser client from ``STATIC_DIR``."""

from __future__ import annotations

from flask import Blueprint, Response, abort, current_app, send_from_directory
from werkzeug.exceptions import NotFound

bp = Blueprint("static_files", __name__)

NOT_FOUND_HTML = "<h1>404 - File Not Found</h1>"


@bp.get("/", defaults={"filename": "index.html"})
@bp.get("/<path:filename>")
def serve(filename: str):
    if filename.startswith("api/"):
        abort(404)
    try:
        response = send_from_directory(current_app.config["STATIC_DIR"], filename, max_age=0)
    except NotFound:
        return Response(NOT_FOUND_HTML, status=404, mimetype="text/html")
    response.headers["Cache-Control"] = "no-cache"
    return response
