"""Entrada de consola ``assetlib``."""

from __future__ import annotations

import errno
import sys

import click
from werkzeug.serving import run_simple

from assetlib import create_app


@click.group()
def main() -> None:
    """Biblioteca de assets: servidor de archivos y API JSON."""


@main.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True, envvar="HOST")
@click.option("--port", default=8080, show_default=True, type=int, envvar="PORT")
@click.option("--env", "env_name", default=None, help="development | testing | production")
def serve(host: str, port: int, env_name: str | None) -> None:
    """Arrancar el servidor (archivos estáticos + API)."""

    app = create_app(env_name)
    vision = app.extensions["assetlib"]["vision"]
    click.echo(f"Asset Library running on http://{host}:{port}")
    click.echo(f"Serving files from: {app.config['STATIC_DIR']}")
    click.echo(f"Vision tagging: {'enabled' if vision.configured else 'disabled (add OPENAI_API_KEY to .env)'}")
    try:
        run_simple(host, port, app, threaded=True, use_reloader=False)
    except OSError as exc:
        if exc.errno == errno.EADDRINUSE:
            click.echo(f"Port {port} is already in use!", err=True)
            click.echo(f"Try a different port: assetlib serve --port {port + 1}", err=True)
        else:
            click.echo(f"Server error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
