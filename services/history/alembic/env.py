from alembic import context
from sqlalchemy import create_engine

from services.history.app.core_settings import get_settings
from services.history.app.domain.models import Base

target_metadata = Base.metadata
# Both services may share one database; each tracks its own revisions
VERSION_TABLE = "alembic_version_history"

def run_migrations_offline():
    context.configure(url=get_settings().database_url, target_metadata=target_metadata, literal_binds=True, version_table=VERSION_TABLE)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    engine = create_engine(get_settings().database_url)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, version_table=VERSION_TABLE)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
