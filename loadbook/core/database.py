"""
Configuration de la base de donnees avec SQLModel
Le handle Database est construit explicitement puis injecte (pas d'engine global).
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


class Database:
    """Handle de stockage avec cycle de vie explicite (open au demarrage, close a l'arret)."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Base de donnees non ouverte (appeler open() d'abord)")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Database":
        """Cree l'engine et les tables. Idempotent."""
        if self._engine is not None:
            return self
        kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # Une base en memoire doit partager une seule connexion
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.url, **kwargs)
        self.create_db_and_tables()
        logger.info(f"Base de donnees ouverte: {self._engine.url.render_as_string(hide_password=True)}")
        return self

    def close(self) -> None:
        """Libere le pool de connexions."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Base de donnees fermee")

    def create_db_and_tables(self) -> None:
        """Creer toutes les tables de la base de donnees"""
        # Enregistrer les modeles dans la metadata avant create_all
        import loadbook.domain.entities  # noqa: F401
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session SQLModel courte, fermee en sortie de bloc."""
        with Session(self.engine) as session:
            yield session

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def get_database(request: Request) -> Database:
    """Dependance FastAPI : le handle attache a l'application dans le lifespan."""
    return request.app.state.database


def get_session(request: Request) -> Iterator[Session]:
    """Generateur de session de base de donnees pour l'injection de dependance"""
    with get_database(request).session() as session:
        yield session
