import os
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from assetlib import create_app, db
from assetlib.extensions import limiter
from assetlib.library.hosted import HostedCatalog, HostedLibrary
from assetlib.notify import Notifier
from assetlib.services.upload import UploadCandidate

# 1x1 PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    b"\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\xdac\x00\x01\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00"
    b"\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture()
def app(tmp_path):
    os.environ.setdefault("FLASK_ENV", "testing")
    os.environ.setdefault("APP_ENV", "testing")
    os.environ.setdefault("SECRET_KEY", "test")

    flask_app = create_app("testing", {"STATIC_DIR": str(tmp_path / "static")})
    (tmp_path / "static").mkdir()
    (tmp_path / "static" / "index.html").write_text("<h1>Asset Library</h1>", encoding="utf-8")
    (tmp_path / "static" / "app.css").write_text("body{}", encoding="utf-8")

    with flask_app.app_context():
        db.create_all()
        try:
            yield flask_app
        finally:
            db.session.remove()
            db.drop_all()
            try:
                limiter.reset()
            except Exception:
                pass


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


@pytest.fixture()
def store(app):
    return app.extensions["assetlib"]["store"]


@pytest.fixture()
def catalog(store):
    return HostedCatalog(store)


@pytest.fixture()
def notifier():
    return Notifier()


@pytest.fixture()
def library(store, notifier):
    lib = HostedLibrary(store, notifier=notifier)
    yield lib
    lib.close()


@pytest.fixture()
def png():
    def _mk(name: str = "logo.png", content: bytes = PNG_BYTES) -> UploadCandidate:
        return UploadCandidate(name, "image/png", content)

    return _mk
