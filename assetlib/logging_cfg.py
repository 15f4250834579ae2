"""Configuración centralizada de logging para la aplicación."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from flask import g, has_request_context


class RequestIdFilter(logging.Filter):
    """Adjunta el `request_id` actual (si existe) a cada registro."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - acceso contextual
        if has_request_context():
            record.request_id = getattr(g, "request_id", "-")
        else:
            record.request_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "request_id"):
            payload["request_id"] = getattr(record, "request_id")
        for key in ("event", "project_id", "asset_id", "table", "status"):
            if hasattr(record, key):
                value = getattr(record, key)
                if value is not None:
                    payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(app) -> None:
    """Configura el logger raíz y el de Flask con el filtro de request id."""

    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    if str(app.config.get("LOG_FORMAT", "text")).lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        fmt = "%(asctime)s %(levelname)s %(request_id)s %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))

    handler._assetlib = True  # type: ignore[attr-defined]

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Solo se reemplazan los handlers propios (pytest/gunicorn conservan los suyos).
    for existing in list(root_logger.handlers):
        if getattr(existing, "_assetlib", False):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    app.logger.handlers.clear()
    app.logger.propagate = True
    app.logger.setLevel(level)
