"""
Sincronizzazione con il mirror remoto
Progetto: Oficina OS (Gestionale Ordini di Servizio)

La direzione è sempre esplicita e scelta dall'utente:
- sync_up: la collezione locale sovrascrive quella remota
- sync_down: la collezione remota sostituisce quella locale
- full_sync: sync_down di tutte le collezioni (nessun upload automatico)
- push_all: sync_up di tutte le collezioni

Conflitti: vince l'ultimo che scrive, a livello di intera collezione.
Gli errori sono riportati per collezione; un successo parziale è
riportato come tale.
"""

import datetime
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from oficina.core.exceptions import SyncError
from oficina.schemas.document import COLLECTION_ATTRIBUTES, COLLECTIONS, SETTINGS_KEY
from oficina.schemas.sync import (
    CollectionSyncResult,
    FetchProgress,
    SyncAvailability,
    SyncDirection,
    SyncReport,
)
from oficina.services.dispatcher import CommandDispatcher, CommandName
from oficina.services.remote_store import SqlRemoteStore

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Collezioni sincronizzabili: le cinque del documento più le impostazioni
SYNC_COLLECTIONS: tuple[str, ...] = (*COLLECTIONS, SETTINGS_KEY)

ProgressCallback = Callable[[FetchProgress], None]


class SyncService:
    """
    Service di sincronizzazione.

    Args:
        dispatcher: Dispatcher usato per sostituire le collezioni locali
        store: Store remoto (None se la sincronizzazione non è configurata)
    """

    def __init__(self, dispatcher: CommandDispatcher, store: Optional[SqlRemoteStore]) -> None:
        self.dispatcher = dispatcher
        self.store = store

    @property
    def configured(self) -> bool:
        return self.store is not None

    def _require_store(self, collection: Optional[str] = None) -> SqlRemoteStore:
        if self.store is None:
            raise SyncError(
                "Sincronizzazione non configurata",
                collection=collection,
                error_code="SYNC_NOT_CONFIGURED",
            )
        return self.store

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in SYNC_COLLECTIONS:
            raise SyncError(
                f"Collezione non sincronizzabile: {collection}",
                collection=collection,
                error_code="SYNC_UNKNOWN_COLLECTION",
            )

    async def availability(self) -> SyncAvailability:
        if self.store is None:
            return SyncAvailability(configured=False, available=False, detail="Non configurato")
        available = await self.store.is_available()
        return SyncAvailability(
            configured=True,
            available=available,
            detail="Connesso" if available else "Database remoto non raggiungibile",
        )

    # ------------------------------------------------------------
    # Singola collezione
    # ------------------------------------------------------------

    def local_records(self, collection: str) -> list[dict[str, Any]]:
        """Record locali serializzati per la scrittura remota."""
        state = self.dispatcher.state
        if collection == SETTINGS_KEY:
            return [state.settings.to_document()]
        return [record.to_document() for record in getattr(state, COLLECTION_ATTRIBUTES[collection])]

    async def sync_up(self, collection: str) -> CollectionSyncResult:
        """
        Sovrascrive la collezione remota con quella locale.

        Raises:
            SyncError: Collezione sconosciuta, remoto non configurato o errore remoto
        """
        self._check_collection(collection)
        store = self._require_store(collection)
        records = self.local_records(collection)
        written = await store.replace_collection(collection, records)
        logger.info("sync_up %s: %s record", collection, written)
        return CollectionSyncResult(
            collection=collection, direction=SyncDirection.UP, success=True, records=written,
        )

    async def fetch_all(
        self,
        collection: str,
        order_by: str = "position",
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[dict[str, Any]]:
        """
        Legge tutte le pagine di una collezione remota.

        Il totale stimato riportato a ogni pagina è il doppio dei record
        letti finché esistono altre pagine.
        """
        store = self._require_store(collection)
        records: list[dict[str, Any]] = []
        cursor = None
        while True:
            page = await store.fetch_page(collection, order_by=order_by, cursor=cursor)
            records.extend(page.records)
            if on_progress is not None:
                fetched = len(records)
                on_progress(
                    FetchProgress(
                        collection=collection,
                        fetched=fetched,
                        estimated_total=fetched * 2 if page.has_more else fetched,
                    )
                )
            if not page.has_more:
                break
            cursor = page.next_cursor
        return records

    async def sync_down(
        self,
        collection: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CollectionSyncResult:
        """
        Sostituisce la collezione locale con quella remota.

        Raises:
            SyncError: Remoto non raggiungibile o dati remoti non validi;
                la collezione locale resta invariata
        """
        self._check_collection(collection)
        records = await self.fetch_all(collection, on_progress=on_progress)
        try:
            count = self.dispatcher.dispatch(
                CommandName.REPLACE_COLLECTION, collection=collection, records=records,
            )
        except PydanticValidationError as e:
            logger.error("Dati remoti non validi per %s: %s", collection, e)
            raise SyncError(
                f"Dati remoti non validi ({e.error_count()} errori)",
                collection=collection,
                error_code="SYNC_INVALID_DATA",
            )
        logger.info("sync_down %s: %s record", collection, count)
        return CollectionSyncResult(
            collection=collection, direction=SyncDirection.DOWN, success=True, records=count,
        )

    # ------------------------------------------------------------
    # Tutte le collezioni
    # ------------------------------------------------------------

    async def full_sync(self, on_progress: Optional[ProgressCallback] = None) -> SyncReport:
        """Scarica tutte le collezioni (solo sync_down)."""
        self._require_store()
        results = []
        for collection in SYNC_COLLECTIONS:
            try:
                results.append(await self.sync_down(collection, on_progress=on_progress))
            except SyncError as e:
                results.append(self._failure(collection, SyncDirection.DOWN, e))
        return self._report(SyncDirection.DOWN, results)

    async def push_all(self) -> SyncReport:
        """Carica tutte le collezioni sul remoto."""
        self._require_store()
        results = []
        for collection in SYNC_COLLECTIONS:
            try:
                results.append(await self.sync_up(collection))
            except SyncError as e:
                results.append(self._failure(collection, SyncDirection.UP, e))
        return self._report(SyncDirection.UP, results)

    @staticmethod
    def _failure(collection: str, direction: SyncDirection, error: SyncError) -> CollectionSyncResult:
        logger.warning("Sincronizzazione %s fallita per %s: %s", direction.value, collection, error.detail)
        return CollectionSyncResult(
            collection=collection, direction=direction, success=False, error=error.detail,
        )

    @staticmethod
    def _report(direction: SyncDirection, results: list[CollectionSyncResult]) -> SyncReport:
        report = SyncReport(
            direction=direction,
            results=results,
            finished_at=datetime.datetime.now(datetime.timezone.utc),
        )
        logger.info(
            "Sincronizzazione %s completata: %s (%s errori)",
            direction.value, report.outcome.value, len(report.errors),
        )
        return report
