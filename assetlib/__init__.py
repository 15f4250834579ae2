"""Fábrica de la app Flask de la biblioteca de assets."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from dotenv import load_dotenv
from flask import Flask

from .config import PROJECT_ROOT, load_config
from .errors import register_error_handlers
from .extensions import db, init_extensions
from .logging_cfg import setup_logging
from .migrate_ext import init_migrations
from .registry import register_blueprints
from .services.vision import VisionClient
from .stores.base import ChangeBus
from .stores.sql import SqlStore


def _normalize_db_url(raw: str | None) -> str:
    """
    Normaliza la DATABASE_URL:
    - Convierte postgres:// -> postgresql+psycopg://
    - Si es SQLite, elimina cualquier query (?sslmode=...)
    - Si es Postgres, asegura sslmode=require (si no está presente)
    """

    if not raw:
        return f"sqlite:///{PROJECT_ROOT / 'instance' / 'assetlib.db'}"

    if raw.startswith("postgres://"):
        raw = raw.replace("postgres://", "postgresql+psycopg://", 1)
    elif raw.startswith("postgresql://"):
        raw = raw.replace("postgresql://", "postgresql+psycopg://", 1)

    parts = urlsplit(raw)
    scheme = parts.scheme

    if scheme.startswith("sqlite"):
        base = raw.split("?", 1)[0].split("#", 1)[0]
        fragment = f"#{parts.fragment}" if parts.fragment else ""
        return f"{base}{fragment}"

    if scheme.startswith("postgresql"):
        query_params = dict(parse_qsl(parts.query))
        query_params.setdefault("sslmode", "require")
        return urlunsplit((scheme, parts.netloc, parts.path, urlencode(query_params), parts.fragment))

    return raw


def _ensure_sqlite_dir(uri: str) -> None:
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        Path(uri[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    load_dotenv()

    # los archivos del cliente se sirven desde STATIC_DIR (ver api/static.py)
    app = Flask(__name__, static_folder=None)
    app.config.from_object(load_config(config_name))
    if overrides:
        app.config.update(overrides)

    uri = _normalize_db_url(app.config.get("SQLALCHEMY_DATABASE_URI"))
    app.config["SQLALCHEMY_DATABASE_URI"] = uri
    _ensure_sqlite_dir(uri)

    setup_logging(app)
    init_extensions(app)
    init_migrations(app, db)
    register_error_handlers(app)
    app.extensions["assetlib"] = {
        "store": SqlStore(ChangeBus()),
        "vision": VisionClient.from_config(app.config),
    }
    app.extensions["assetlib_blueprints"] = register_blueprints(app)

    from .commands import register_commands

    register_commands(app)

    if app.config.get("CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    app.logger.info(
        "Asset library ready (vision %s)",
        "enabled" if app.extensions["assetlib"]["vision"].configured else "disabled",
    )
    return app


__all__ = ["create_app", "db"]
