from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from storefront.core import config

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"

# Ambientes em que as tabelas vêm do create_all e não de migrations.
_UNMIGRATED_ENVS = {"test", "dev", "development", "local"}


def current_environment() -> str:
    return config.runtime_environment()


def validate_database_environment(database_url: Optional[str] = None) -> None:
    database_url = database_url or config.DATABASE_URL
    env = current_environment()
    if env in {"prod", "production"} and database_url.startswith("sqlite"):
        logger.critical("%s sqlite refused env=%s", MIGRATIONS_PREFIX, env)
        raise RuntimeError("SQLite is forbidden in production environment")


def expected_heads(alembic_config_path: Path) -> set[str]:
    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")
    script_directory = ScriptDirectory.from_config(Config(str(alembic_config_path)))
    return set(script_directory.get_heads())


def applied_heads(engine: Engine) -> set[str]:
    with engine.connect() as connection:
        if "alembic_version" not in inspect(connection).get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")
        rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()
    return {row[0] for row in rows if row and row[0]}


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    env = current_environment()
    if env in _UNMIGRATED_ENVS:
        logger.info("%s check skipped env=%s", MIGRATIONS_PREFIX, env)
        return

    expected = expected_heads(alembic_config_path)
    current = applied_heads(engine)
    if current != expected:
        logger.critical(
            "%s pending cart_snapshots migration current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current),
            sorted(expected),
        )
        raise RuntimeError("Pending migrations detected")
    logger.info("%s schema at head=%s", MIGRATIONS_PREFIX, ",".join(sorted(expected)))
