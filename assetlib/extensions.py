"""Extensiones compartidas (base de datos, rate limiting, CORS)."""

from __future__ import annotations

from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

# Base de datos
db = SQLAlchemy()

# Rate limiting (lazy init, se inicializa en create_app)
limiter = Limiter(key_func=get_remote_address, headers_enabled=True, default_limits=[])

cors = CORS()


def init_extensions(app) -> None:
    """Inicializa las extensiones sobre la app ya configurada."""

    db.init_app(app)
    limiter.init_app(app)
    if app.config.get("RATELIMIT_ENABLED") is False:
        limiter.enabled = False
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": "*"}},
        send_wildcard=True,
        methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
