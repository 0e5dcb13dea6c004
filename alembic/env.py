import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from ticketdesk.core.config import settings
from ticketdesk.db.session import Base

# Import all models so Alembic sees them in metadata
from ticketdesk.models.event import Event  # noqa: F401
from ticketdesk.models.booking import Booking  # noqa: F401
from ticketdesk.models.ticket import Ticket  # noqa: F401
from ticketdesk.models.used_ticket import UsedTicketRecord  # noqa: F401
from ticketdesk.models.email_log import EmailLog  # noqa: F401
from ticketdesk.models.audit_log import AuditLog  # noqa: F401


config = context.config

# sqlalchemy.url always comes from the runtime DATABASE_URL
db_url = getattr(settings, "DATABASE_URL", None) or os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set (check .env / ticketdesk.core.config.settings)")

config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    # create_engine directly: alembic.ini carries no url of its own
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
