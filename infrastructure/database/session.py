"""
Configuration de la session de base de données SQLAlchemy

Le handle Database est construit explicitement (au démarrage de l'API,
du worker Celery ou d'un test) puis injecté dans les repositories ;
aucun moteur n'est créé à l'import.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from infrastructure.database.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite n'applique ON DELETE CASCADE qu'avec ce pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Moteur + fabrique de sessions, avec un cycle de vie explicite"""

    def __init__(self, database_url: str, pool_size: int = 10, max_overflow: int = 20, echo: bool = False):
        self.database_url = database_url
        self.is_sqlite = database_url.startswith("sqlite")

        engine_options = {"echo": echo, "pool_pre_ping": True}
        if self.is_sqlite:
            # Les écritures concurrentes attendent le verrou au lieu d'échouer
            engine_options["connect_args"] = {"check_same_thread": False, "timeout": 30}
        else:
            engine_options["pool_size"] = pool_size
            engine_options["max_overflow"] = max_overflow

        self.engine = create_engine(database_url, **engine_options)
        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    @classmethod
    def from_config(cls, config) -> "Database":
        return cls(
            config.database_url,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow
        )

    def create_all(self) -> None:
        """Crée les tables manquantes"""
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        """Ouvre une nouvelle session (à fermer par l'appelant)"""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session fermée automatiquement en sortie de bloc"""
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        """Ferme toutes les connexions du pool"""
        self.engine.dispose()
        logger.info("Database connections closed")
