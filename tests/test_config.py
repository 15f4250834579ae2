import pytest

from assetlib import _normalize_db_url
from assetlib.config import DevelopmentConfig, TestingConfig, load_config


def test_postgres_urls_get_driver_and_sslmode():
    assert _normalize_db_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db?sslmode=require"
    assert _normalize_db_url("postgresql://u:p@h/db?sslmode=disable").endswith("sslmode=disable")


def test_sqlite_drops_query():
    assert _normalize_db_url("sqlite:///x.db?sslmode=require") == "sqlite:///x.db"


def test_empty_url_falls_back_to_instance_sqlite():
    assert _normalize_db_url(None).endswith("assetlib.db")


def test_testing_config():
    cfg = load_config("testing")
    assert isinstance(cfg, TestingConfig)
    assert cfg.SQLALCHEMY_DATABASE_URI == "sqlite:///:memory:"
    assert cfg.RATELIMIT_ENABLED is False
    assert cfg.ENV_NAME == "testing"


def test_production_without_database_falls_back_to_development(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("FLASK_ENV", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CI", raising=False)
    assert isinstance(load_config(), DevelopmentConfig)


def test_explicit_production_refuses_sqlite(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CI", raising=False)
    with pytest.raises(RuntimeError):
        load_config("production")


def test_folder_delete_policy_from_env(monkeypatch):
    monkeypatch.setenv("FOLDER_DELETE_POLICY", "detach")
    assert load_config("testing").FOLDER_DELETE_POLICY == "detach"
