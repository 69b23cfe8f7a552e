"""
Alembic Environment Configuration

Migrations for the users, books and reviews tables.

- The database URL comes from application settings (DATABASE_URL), not
  alembic.ini
- All models are imported so autogenerate sees the full metadata
- SQLite runs in batch mode, since it cannot ALTER most constraints in place

COMMANDS:
- alembic revision --autogenerate -m "message"  # Create migration
- alembic upgrade head                           # Apply all migrations
- alembic downgrade -1                           # Rollback one migration
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from book_reviews.config import get_settings
from book_reviews.database import Base
from book_reviews.models import Book, Review, User  # noqa: F401 - needed for autogenerate

settings = get_settings()

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Emit SQL without a database connection.

    Usage:
        alembic upgrade head --sql > migration.sql
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=settings.is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # Don't pool connections for migrations
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=settings.is_sqlite,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
