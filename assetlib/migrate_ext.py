from pathlib import Path

from flask_migrate import Migrate

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

migrate = Migrate(directory=str(MIGRATIONS_DIR))


def init_migrations(app, db):
    """Inicializar el soporte de migraciones en la aplicación."""
    # Vincula Flask-Migrate/Alembic a la app y al objeto db
    migrate.init_app(app, db)
