from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from assetlib.api import get_vision
from assetlib.extensions import limiter
from assetlib.services.vision import analyze_image

bp = Blueprint("analyze", __name__, url_prefix="/api")


def _vision_limit() -> str:
    return current_app.config.get("VISION_RATE_LIMIT") or "30 per minute"


@bp.post("/analyze-image")
@limiter.limit(_vision_limit)
def analyze():
    payload = request.get_json(silent=True) or {}
    current_app.logger.info("Analyzing image with vision model")
    body, status = analyze_image(get_vision(), payload.get("imageData"))
    return jsonify(body), status
