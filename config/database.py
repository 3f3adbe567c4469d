"""config.database

Database configuration.

Default: a local SQLite file, so the API boots without any database server.
Optional: MySQL using DB_* variables.
Optional: Postgres (Supabase, Render or elsewhere) by setting DATABASE_URL.

Notes for managed Postgres:
- Copy the connection string into DATABASE_URL.
- Provider URLs may be `postgres://...`; SQLAlchemy expects `postgresql://...`.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
load_dotenv(override=(not _is_production))


def _normalize_database_url(url: str) -> str:
    url = url.strip()
    # Heroku/Render-style scheme alias + make driver explicit.
    if url.startswith('postgres://'):
        return 'postgresql+psycopg://' + url[len('postgres://'):]
    if url.startswith('postgresql://'):
        return 'postgresql+psycopg://' + url[len('postgresql://'):]

    return url


def _build_mysql_uri() -> str:
    database_config = {
        'host': os.getenv('DB_HOST', 'localhost'),
        'port': int(os.getenv('DB_PORT', 3306)),
        'user': os.getenv('DB_USER', 'root'),
        'password': os.getenv('DB_PASSWORD', ''),
        'database': os.getenv('DB_NAME', 'storefront'),
        'charset': 'utf8mb4',
    }

    return (
        f"mysql+pymysql://{database_config['user']}:{database_config['password']}"
        f"@{database_config['host']}:{database_config['port']}/{database_config['database']}"
        f"?charset={database_config['charset']}"
    )


def _build_sqlite_uri() -> str:
    path = os.getenv('SQLITE_PATH') or str(Path(__file__).resolve().parent.parent / 'storefront.db')
    return f'sqlite:///{path}'


def get_sqlalchemy_database_uri() -> str:
    """Return the SQLAlchemy DB URI.

    Priority:
    1) DATABASE_URL (Postgres on managed DBs)
    2) DB_HOST + DB_* vars (MySQL)
    3) SQLite file next to the app
    """

    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return _normalize_database_url(database_url)

    if os.getenv('DB_HOST'):
        return _build_mysql_uri()

    return _build_sqlite_uri()

SQLALCHEMY_DATABASE_URI = get_sqlalchemy_database_uri()

SQLALCHEMY_TRACK_MODIFICATIONS = False
SQLALCHEMY_ECHO = os.getenv('SQL_ECHO', 'False').lower() == 'true'
