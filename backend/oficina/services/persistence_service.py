"""
Coordinatore di persistenza del documento
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Unico componente che scrive il documento completo. Fasi:
- LOADING: lettura del documento e popolamento di AppState
- IDLE: nessuna scrittura in attesa
- SAVE_PENDING: scrittura programmata dopo la finestra di debounce
- SAVING: scrittura in corso

Regole:
- ogni modifica ripianifica la scrittura in attesa (uno slot "pending")
- una scrittura già iniziata non viene annullata; le modifiche arrivate
  nel frattempo sono scritte dal ciclo successivo (uno slot "in-flight")
- viene scritto lo stato presente al momento dello scatto del timer
- nessun salvataggio finché lo stato è vuoto e il primo caricamento non
  è concluso
- un errore di storage lascia intatta la memoria, aggiorna il messaggio
  di stato e pianifica un nuovo tentativo
"""

import asyncio
import datetime
import json
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from oficina.core.exceptions import StorageError
from oficina.core.state import AppState
from oficina.schemas.document import DatabaseDocument
from oficina.schemas.system import ExportResult, PersistencePhase, PersistenceStatus
from oficina.services.storage_service import LocalFileStorage

# Logger per questo modulo
logger = logging.getLogger(__name__)


def serialize_document(document: DatabaseDocument) -> str:
    """Serializza il documento (chiavi camelCase, importi interi)."""
    return json.dumps(document.to_document(), ensure_ascii=False)


def parse_document(content: str) -> DatabaseDocument:
    """
    Interpreta il testo del documento. Testo vuoto = documento vuoto.

    Raises:
        StorageError: JSON non valido o struttura non riconosciuta
    """
    if not content or not content.strip():
        return DatabaseDocument()
    try:
        raw: Any = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(
            f"Documento non valido: {e.msg} (riga {e.lineno})",
            error_code="STORAGE_CORRUPTED",
        )
    if not isinstance(raw, dict):
        raise StorageError("Documento non valido: atteso un oggetto JSON", error_code="STORAGE_CORRUPTED")
    try:
        return DatabaseDocument.model_validate(raw)
    except PydanticValidationError as e:
        raise StorageError(
            f"Documento non valido: {e.error_count()} errori di struttura",
            error_code="STORAGE_CORRUPTED",
            extra={"errors": e.errors(include_url=False, include_context=False)[:10]},
        )


class PersistenceCoordinator:
    """
    Salvataggio automatico con debounce e caricamento del documento.

    Args:
        state: Stato applicativo da persistere
        storage: Collaboratore di storage (load/save_atomic/create_backup)
        data_file: Documento in uso
        backup_path: Cartella per i backup manuali
        debounce_seconds: Finestra di debounce
        grace_seconds: Periodo dopo il caricamento senza scritture
        retry_seconds: Attesa prima di ritentare una scrittura fallita
    """

    def __init__(
        self,
        state: AppState,
        storage: Optional[LocalFileStorage] = None,
        data_file: str = "database.json",
        backup_path: str = "backups",
        debounce_seconds: float = 1.5,
        grace_seconds: float = 0.5,
        retry_seconds: float = 5.0,
    ) -> None:
        self.state = state
        self.storage = storage or LocalFileStorage()
        self.data_file = data_file
        self.backup_path = backup_path
        self.debounce_seconds = debounce_seconds
        self.grace_seconds = grace_seconds
        self.retry_seconds = retry_seconds

        self.phase = PersistencePhase.LOADING
        self.message = "Inizializzazione..."
        self.last_saved_at: Optional[datetime.datetime] = None
        self.last_error: Optional[str] = None

        self._initializing = True
        self._load_failed = False
        self._grace_until = 0.0
        self._saved_revision = state.revision
        self._pending: Optional[asyncio.Task] = None
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------
    # Caricamento
    # ------------------------------------------------------------

    async def load(self) -> bool:
        """
        Carica il documento corrente in AppState.

        Returns:
            bool: True se il caricamento è riuscito
        """
        self._cancel_pending()
        self.phase = PersistencePhase.LOADING
        self.message = "Caricamento dati..."
        logger.info("Caricamento documento %s", self.data_file)

        try:
            content = await self.storage.load(self.data_file)
            document = parse_document(content)
        except StorageError as e:
            # La memoria resta com'è; nessun salvataggio finché il documento
            # esistente non è stato letto, per non sovrascriverlo
            self._load_failed = True
            self.last_error = e.detail
            self.message = f"Errore di caricamento: {e.detail}"
            self.phase = PersistencePhase.IDLE
            logger.error("Caricamento fallito per %s: %s", self.data_file, e.detail)
            return False

        self.state.load_document(document)
        self._saved_revision = self.state.revision
        self._initializing = False
        self._load_failed = False
        self.last_error = None
        self._grace_until = asyncio.get_running_loop().time() + self.grace_seconds
        self.phase = PersistencePhase.IDLE
        self.message = "Sistema pronto." if content.strip() else "Nuovo archivio."
        logger.info(
            "Documento caricato: %s ordini, %s lanci, %s clienti",
            len(self.state.work_orders), len(self.state.ledger), len(self.state.clients),
        )
        return True

    async def change_location(self, data_file: str) -> bool:
        """
        Cambia il documento in uso.

        Le modifiche pendenti vengono prima scritte nel documento corrente,
        poi il nuovo documento viene caricato (fase LOADING).
        """
        if not self._load_failed:
            await self.flush()
        logger.info("Cambio documento: %s -> %s", self.data_file, data_file)
        self.data_file = data_file
        self._initializing = True
        return await self.load()

    # ------------------------------------------------------------
    # Notifiche e pianificazione
    # ------------------------------------------------------------

    @property
    def dirty(self) -> bool:
        return self.state.revision != self._saved_revision

    def notify_change(self, *args: Any) -> None:
        """
        Listener del CommandDispatcher: pianifica la scrittura.

        Durante il periodo di grazia dopo un caricamento la scrittura viene
        spostata alla fine del periodo più la finestra di debounce.
        """
        if self.phase == PersistencePhase.LOADING:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nessun event loop: la modifica verrà scritta dal prossimo flush
            self.message = "Modifiche non salvate."
            return

        delay = self.debounce_seconds
        remaining_grace = self._grace_until - loop.time()
        if remaining_grace > 0:
            delay += remaining_grace
        self.schedule(delay)

    def schedule(self, delay: Optional[float] = None) -> None:
        """Sostituisce la scrittura in attesa con una nuova (debounce)."""
        self._cancel_pending()
        if delay is None:
            delay = self.debounce_seconds
        self._pending = asyncio.create_task(self._debounced_write(delay))
        if self.phase != PersistencePhase.SAVING:
            self.phase = PersistencePhase.SAVE_PENDING

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced_write(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # Da qui la scrittura non è più annullabile da schedule()
        if self._pending is asyncio.current_task():
            self._pending = None
        await self._write()

    # ------------------------------------------------------------
    # Scrittura
    # ------------------------------------------------------------

    async def _write(self) -> bool:
        async with self._write_lock:
            if self._load_failed:
                logger.warning("Salvataggio saltato: documento non caricato correttamente")
                self._settle()
                return False
            if self._initializing and self.state.is_empty():
                logger.debug("Salvataggio saltato: stato vuoto durante l'inizializzazione")
                self._settle()
                return False

            revision = self.state.revision
            if revision == self._saved_revision:
                self._settle()
                return True

            # Fotografia sincrona: è lo stato al momento dello scatto
            content = serialize_document(self.state.to_document())
            self.phase = PersistencePhase.SAVING
            self.message = "Salvataggio..."
            try:
                await self.storage.save_atomic(self.data_file, content)
            except (StorageError, OSError) as e:
                detail = e.detail if isinstance(e, StorageError) else str(e)
                self.last_error = detail
                self.message = f"Errore di salvataggio: {detail}"
                logger.error("Salvataggio fallito (revisione %s): %s", revision, detail)
                self._settle()
                if self._pending is None:
                    self.schedule(self.retry_seconds)
                return False

            self._saved_revision = revision
            self.last_saved_at = datetime.datetime.now(datetime.timezone.utc)
            self.last_error = None
            self.message = "Dati salvati."
            logger.info("Documento salvato (revisione %s)", revision)
            self._settle()
            return True

    def _settle(self) -> None:
        if self._pending is not None and not self._pending.done():
            self.phase = PersistencePhase.SAVE_PENDING
        else:
            self.phase = PersistencePhase.IDLE

    async def flush(self) -> bool:
        """
        Scrive subito le modifiche pendenti (usato alla chiusura).

        Attende l'eventuale scrittura in corso.
        """
        self._cancel_pending()
        return await self._write()

    async def close(self) -> None:
        await self.flush()
        self._cancel_pending()

    # ------------------------------------------------------------
    # Backup e stato
    # ------------------------------------------------------------

    async def backup(self) -> ExportResult:
        """Copia con data e ora del documento corrente nella cartella di backup."""
        now = datetime.datetime.now()
        filename = f"backup_oficina_{now:%Y-%m-%d_%H-%M-%S}.json"
        content = json.dumps(self.state.to_document().to_document(), ensure_ascii=False, indent=2)
        try:
            path = await self.storage.create_backup(self.backup_path, filename, content)
        except StorageError as e:
            logger.error("Backup fallito: %s", e.detail)
            self.message = "Errore nel backup."
            return ExportResult(success=False, message=e.detail)
        logger.info("Backup creato: %s", path)
        self.message = "Backup creato."
        return ExportResult(success=True, message=f"Backup salvato in: {path}", path=path)

    def status(self) -> PersistenceStatus:
        return PersistenceStatus(
            phase=self.phase,
            message=self.message,
            data_file=self.data_file,
            dirty=self.dirty,
            last_saved_at=self.last_saved_at,
            last_error=self.last_error,
        )
