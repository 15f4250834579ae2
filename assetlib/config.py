import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _engine_options(uri: str) -> dict[str, object]:
    options: dict[str, object] = {"pool_pre_ping": True}
    if uri.startswith("sqlite:"):
        options["connect_args"] = {"check_same_thread": False}
    return options


class Config:
    APP_NAME = "Asset Library"
    TESTING = False
    DEBUG = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
        default_sqlite_path = PROJECT_ROOT / "instance" / "assetlib.db"
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{default_sqlite_path}")
        self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SQLALCHEMY_ENGINE_OPTIONS = _engine_options(self.SQLALCHEMY_DATABASE_URI)
        self.CREATE_TABLES = _bool_env("CREATE_TABLES", False)

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

        self.STATIC_DIR = os.getenv("STATIC_DIR", str(BASE_DIR / "static"))
        self.LOCAL_STORE_PATH = os.getenv(
            "LOCAL_STORE_PATH", str(PROJECT_ROOT / "instance" / "local_store.json")
        )
        self.FOLDER_DELETE_POLICY = os.getenv("FOLDER_DELETE_POLICY", "cascade")
        # Headroom over the 2 MiB per-file ceiling for multipart batches.
        self.MAX_CONTENT_LENGTH = _int_env("MAX_CONTENT_LENGTH", 32 * 1024 * 1024)

        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
        self.OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o-mini")
        self.VISION_TIMEOUT = _int_env("VISION_TIMEOUT", 60)
        self.VISION_RATE_LIMIT = os.getenv("VISION_RATE_LIMIT", "30 per minute")
        self.RATELIMIT_STORAGE_URI = os.getenv(
            "RATELIMIT_STORAGE_URI", os.getenv("REDIS_URL", "memory://")
        )
        self.RATELIMIT_ENABLED = _bool_env("RATELIMIT_ENABLED", True)

        self.APP_VERSION = os.getenv("APP_VERSION", "dev")
        self.GIT_SHA = os.getenv("GIT_SHA", "local")
        self.DEBUG = _bool_env("DEBUG", self.DEBUG)


class DevelopmentConfig(Config):
    DEBUG = True

    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = True
        self.CREATE_TABLES = True


class ProductionConfig(Config):
    DEBUG = False

    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False


class TestingConfig(Config):
    TESTING = True
    DEBUG = False

    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False
        self.DATABASE_URL = "sqlite:///:memory:"
        self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL
        self.SQLALCHEMY_ENGINE_OPTIONS = _engine_options(self.SQLALCHEMY_DATABASE_URI)
        self.CREATE_TABLES = True
        self.RATELIMIT_ENABLED = False
        self.OPENAI_API_KEY = ""


def load_config(env: str | None = None) -> Config:
    """Devuelve la configuración según ``APP_ENV``/``FLASK_ENV``."""

    env_name = (env or os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "production").lower()

    if env is None and env_name in {"prod", "production"}:
        db_url_env = os.getenv("DATABASE_URL", "")
        running_ci = os.getenv("CI", "").lower() in {"true", "1"}
        if not running_ci and (not db_url_env or db_url_env.startswith("sqlite:")):
            env_name = "development"
    if env_name in {"test", "testing"}:
        cfg: Config = TestingConfig()
    elif env_name in {"prod", "production"}:
        cfg = ProductionConfig()
    elif env_name in {"dev", "development"}:
        cfg = DevelopmentConfig()
    else:
        cfg = Config()

    if (
        env_name in {"prod", "production"}
        and cfg.SQLALCHEMY_DATABASE_URI.startswith("sqlite:")
        and os.getenv("CI", "").lower() not in {"true", "1"}
    ):
        raise RuntimeError("DATABASE_URL no definido en producción (detectado sqlite)")

    cfg.ENV_NAME = env_name
    return cfg
