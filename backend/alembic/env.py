"""Alembic environment for the slide library and knowledge base schema.

Run from ``backend/`` (``prepend_sys_path = .`` puts ``app`` on the path).
The database URL always comes from ``app.core.config.settings``.
"""

import asyncio
import ssl
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

import app.models  # noqa: F401  registers every table on SQLModel.metadata
from app.core.config import ModeEnum, settings
from app.models.vector import Vector

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def render_item(type_, obj, autogen_context):
    """Emit pgvector columns as NullType so generated migrations stay free of app imports."""
    if type_ == "type" and isinstance(obj, Vector):
        return f"sa.types.NullType()  # vector({obj.dimensions}), add with op.execute"
    return False


def include_object(obj, name, type_, reflected, compare_to):
    # Reflected vector columns come back as NullType; never diff them
    return not (type_ == "column" and name == "embedding")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        render_item=render_item,
        include_object=include_object,
        **kwargs,
    )


def _connect_args() -> dict:
    if settings.MODE == ModeEnum.development:
        return {}
    # Supabase pooler certificates do not match the pooler host name
    ssl_context = ssl.create_default_context()
    ssl_context.check_hostname = False
    ssl_context.verify_mode = ssl.CERT_NONE
    return {"ssl": ssl_context}


def run_migrations_offline() -> None:
    """Write SQL to stdout instead of connecting."""
    _configure(
        url=str(settings.ASYNC_DATABASE_URI),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(
        str(settings.ASYNC_DATABASE_URI),
        echo=settings.LOG_LEVEL.upper() == "DEBUG",
        connect_args=_connect_args(),
    )
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
