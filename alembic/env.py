from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from rewards_portal.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_metadata():
    from rewards_portal.db import Base
    import rewards_portal.main  # noqa: F401  registers every model on Base

    return Base.metadata


def run_migrations_offline():
    context.configure(url=get_settings().database_url, target_metadata=get_metadata(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = create_engine(get_settings().database_url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=get_metadata())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
