"""
Composizione dei servizi dell'officina
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Crea e collega stato, dispatcher, persistenza, sincronizzazione ed
esportazione. Un'istanza per processo, creata nel lifespan di FastAPI.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from oficina.core.config import Settings
from oficina.core.database import RemoteDatabase, create_remote_database
from oficina.core.state import AppState
from oficina.services.dispatcher import CommandDispatcher
from oficina.services.export_service import ExportService
from oficina.services.persistence_service import PersistenceCoordinator
from oficina.services.remote_store import SqlRemoteStore
from oficina.services.storage_service import LocalFileStorage
from oficina.services.sync_service import SyncService

# Logger per questo modulo
logger = logging.getLogger(__name__)


class Workshop:
    """
    Contenitore dei servizi applicativi.

    Args:
        settings: Configurazione
        storage: Storage locale (default: file system)
        remote: Database remoto (default: da settings.remote_database_url)
    """

    def __init__(
        self,
        settings: Settings,
        storage: Optional[LocalFileStorage] = None,
        remote: Optional[RemoteDatabase] = None,
    ) -> None:
        self.settings = settings
        self.state = AppState()
        self.dispatcher = CommandDispatcher(self.state)
        self.storage = storage or LocalFileStorage()

        self.persistence = PersistenceCoordinator(
            self.state,
            storage=self.storage,
            data_file=settings.data_file,
            backup_path=settings.backup_path,
            debounce_seconds=settings.autosave_debounce_seconds,
            grace_seconds=settings.load_grace_seconds,
        )
        self.dispatcher.subscribe(self.persistence.notify_change)

        self.remote = remote if remote is not None else create_remote_database(settings)
        store = SqlRemoteStore(self.remote, settings.sync_page_size) if self.remote else None
        self.sync = SyncService(self.dispatcher, store)
        self.exports = ExportService(self.storage, settings.export_path)

    async def start(self) -> None:
        """Carica il documento e prepara il mirror remoto (se configurato)."""
        await self.persistence.load()
        if self.remote is not None:
            try:
                await self.remote.create_tables()
            except (SQLAlchemyError, OSError) as e:
                # Il remoto è opzionale: l'applicazione parte comunque
                logger.warning("Mirror remoto non disponibile all'avvio: %s", e)

    async def stop(self) -> None:
        """Scrive le modifiche pendenti e chiude le connessioni."""
        await self.persistence.close()
        if self.remote is not None:
            await self.remote.dispose()
