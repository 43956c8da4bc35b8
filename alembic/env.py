"""Alembic environment — runs the intake migrations over the async engine.

Design Decisions:
    - The URL comes from church_intake.config.Settings (DATABASE_URL, .env), so
      migrations and the API always target the same database
    - alembic.ini's sqlalchemy.url is only the fallback when Settings cannot load
"""

import asyncio
from logging.config import fileConfig

from pydantic import ValidationError
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

import church_intake.models  # noqa: F401
from church_intake.config import get_settings
from church_intake.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    try:
        return get_settings().database_url
    except ValidationError:
        return config.get_main_option("sqlalchemy.url")


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    _configure(connection=connection)


async def _run_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    engine = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool,
    )
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    _configure(
        url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_run_online())
