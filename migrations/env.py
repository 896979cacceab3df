# Alembic environment: URL and metadata come from the app itself.

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from taskflow import db_models  # noqa: F401 (register tables on Base.metadata)
from taskflow.config import settings
from taskflow.db import Base, enable_sqlite_foreign_keys

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    enable_sqlite_foreign_keys(connectable)
    with connectable.connect() as connection:
        # SQLite cannot ALTER most constraints; batch mode rebuilds tables instead
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
