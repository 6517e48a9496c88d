"""
Configurazione Database Remoto - SQLAlchemy 2.0 Async
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Engine e session factory per il mirror remoto opzionale.
L'engine viene creato solo se è configurato un URL remoto.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from oficina.core.config import Settings

# Logger per questo modulo
logger = logging.getLogger(__name__)


class RemoteDatabase:
    """
    Connessione al database remoto.

    Args:
        url: URL async (es. postgresql+asyncpg://... o sqlite+aiosqlite://)
        pool_size: Connessioni permanenti nel pool (ignorato per SQLite)
        echo: Log delle query
    """

    def __init__(self, url: str, pool_size: int = 5, echo: bool = False) -> None:
        self.url = url
        engine_options: dict = {"echo": echo}
        if url.startswith("sqlite") and ":memory:" in url:
            # Un solo database in memoria condiviso da tutte le sessioni
            engine_options["poolclass"] = StaticPool
        elif not url.startswith("sqlite"):
            engine_options.update(
                pool_pre_ping=True,   # Verifica connessione prima di usarla
                pool_size=pool_size,
                max_overflow=pool_size * 2,
            )

        # ------------------------------------------------------------
        # Engine Async SQLAlchemy 2.0
        # ------------------------------------------------------------
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)

        # ------------------------------------------------------------
        # Session Factory
        # ------------------------------------------------------------
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def ping(self) -> None:
        """
        Test di connessione (SELECT 1).

        Raises:
            SQLAlchemyError / OSError: se il database non è raggiungibile
        """
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_tables(self) -> None:
        """Crea le tabelle del mirror se non esistono."""
        from oficina.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tabelle del mirror remoto verificate")

    async def drop_tables(self) -> None:
        from oficina.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Tabelle del mirror remoto eliminate")

    async def dispose(self) -> None:
        """
        Chiude le connessioni al database.

        Da chiamare durante lo shutdown dell'applicazione.
        """
        await self.engine.dispose()
        logger.info("Connessioni database remoto chiuse")


def create_remote_database(settings: Settings) -> Optional[RemoteDatabase]:
    """Crea la connessione remota se configurata, altrimenti None."""
    if not settings.remote_database_url:
        logger.info("Mirror remoto non configurato, sincronizzazione disabilitata")
        return None
    return RemoteDatabase(
        settings.remote_database_url,
        pool_size=settings.remote_pool_size,
        echo=settings.debug,
    )
