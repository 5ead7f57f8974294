import os
import sys
from logging.config import fileConfig

from alembic import context

# Ajouter le chemin du projet pour les imports
sys.path.append(os.path.dirname(os.path.abspath(__file__)) + "/..")

# Import des modeles SQLModel (enregistrement dans la metadata)
import loadbook.domain.entities  # noqa: F401,E402
from loadbook.core.settings import get_settings  # noqa: E402
from sqlmodel import SQLModel, create_engine  # noqa: E402

# Objet Config d'Alembic (valeurs du fichier .ini)
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Utiliser les metadonnees SQLModel pour l'autogenerate
target_metadata = SQLModel.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_settings().DATABASE_URL


def run_migrations_offline() -> None:
    """Mode 'offline' : genere le SQL a partir de l'URL, sans connexion."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Mode 'online' : migre via un engine dedie (pas de create_all)."""
    url = _database_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()

    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
