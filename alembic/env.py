"""
Alembic migration environment for the key server.

The database URL comes from the Alembic config (injected by ensure_schema()),
otherwise from the same resolution the runtime store uses.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from keyserver.app.db.migrate import get_database_url

# Alembic Config object provides access to alembic.ini values.
config = context.config

# Only configure logging from alembic.ini when invoked from the alembic CLI.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _get_database_url() -> str:
    """Resolve database URL from Alembic config or environment."""
    configured_url = config.get_main_option("sqlalchemy.url")
    if configured_url:
        return configured_url

    return get_database_url()


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without a live connection)."""
    url = _get_database_url()
    context.configure(
        url=url,
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (with a live DB connection)."""
    url = _get_database_url()

    connectable = create_engine(
        url,
        poolclass=pool.NullPool,
        connect_args={"check_same_thread": False},
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=None,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
