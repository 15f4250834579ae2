"""Comandos de la CLI de Flask (``flask --app assetlib ...``)."""

from __future__ import annotations

import base64
import json
from datetime import datetime
from pathlib import Path

import click
from flask import current_app

from assetlib.errors import AssetLibraryError
from assetlib.library.hosted import HostedCatalog
from assetlib.services.upload import UploadCandidate, format_file_size
from assetlib.stores.local import STORAGE_KEY, FileBlobStore

# 1x1 transparent PNG
DEMO_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _catalog() -> HostedCatalog:
    return HostedCatalog(
        current_app.extensions["assetlib"]["store"],
        current_app.config.get("FOLDER_DELETE_POLICY", "cascade"),
    )


def _parse_date(value):
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def register_commands(app):
    """Registrar los comandos de mantenimiento de la biblioteca."""

    @app.cli.command("seed-demo")
    def seed_demo() -> None:
        """Crear un proyecto de ejemplo con carpetas anidadas."""

        catalog = _catalog()
        project = catalog.create_project("Marketing", "Demo project", None)
        logos = catalog.create_folder(project["id"], "Logos")
        year = catalog.create_folder(project["id"], "2024", logos["id"])
        result = catalog.upload([UploadCandidate("logo.png", "image/png", DEMO_PNG)], project["id"], year["id"])
        click.echo(
            f"Proyecto {project['name']} (id={project['id']}): 2 carpetas, {result.succeeded} asset(s)"
        )

    @app.cli.command("storage-report")
    @click.option("--json", "as_json", is_flag=True, default=False, help="Salida en JSON.")
    def storage_report(as_json: bool) -> None:
        """Mostrar assets por proyecto y el almacenamiento total."""

        catalog = _catalog()
        projects = catalog.projects()
        counts = catalog.asset_counts(p["id"] for p in projects)
        total = catalog.storage_total()
        if as_json:
            click.echo(
                json.dumps(
                    {
                        "projects": [
                            {"id": p["id"], "name": p["name"], "assets": counts.get(p["id"], 0)}
                            for p in projects
                        ],
                        "total_bytes": total,
                    }
                )
            )
            return
        for project in projects:
            click.echo(f"{project['name']}: {counts.get(project['id'], 0)} asset(s)")
        click.echo(f"Total: {format_file_size(total)}")

    @app.cli.command("import-local")
    @click.argument("path", required=False, type=click.Path(dir_okay=False))
    @click.option("--project", "project_name", default="Imported", show_default=True)
    def import_local(path: str | None, project_name: str) -> None:
        """Importar el blob de la variante local (por defecto LOCAL_STORE_PATH)."""

        path = path or current_app.config["LOCAL_STORE_PATH"]
        if not Path(path).is_file():
            click.echo(f"No existe el archivo {path}", err=True)
            raise SystemExit(1)
        try:
            raw = FileBlobStore(path).get(STORAGE_KEY)
            items = json.loads(raw) if raw else []
        except (AssetLibraryError, ValueError) as exc:
            click.echo(f"No se pudo leer {path}: {exc}", err=True)
            raise SystemExit(1)
        if not isinstance(items, list):
            click.echo("Formato inválido: se esperaba una lista de assets", err=True)
            raise SystemExit(1)

        catalog = _catalog()
        project = catalog.create_project(project_name)
        imported = 0
        for item in items:
            if not isinstance(item, dict) or not item.get("data") or not item.get("name"):
                continue
            values = {
                "project_id": project["id"],
                "name": item["name"],
                "type": item.get("type") or "application/octet-stream",
                "size": int(item.get("size") or 0),
                "data": item["data"],
            }
            stamp = _parse_date(item.get("upload_date") or item.get("uploadDate"))
            if stamp is not None:
                values["upload_date"] = stamp
            catalog.store.insert("assets", values)
            imported += 1
        click.echo(f"Importados {imported} asset(s) en {project['name']} (id={project['id']})")
