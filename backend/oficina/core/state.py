"""
Stato applicativo in memoria
Progetto: Oficina OS (Gestionale Ordini di Servizio)

AppState contiene tutte le collezioni del documento più gli indici
derivati (cliente per nome, catalogo per descrizione, lancio per id).
Gli indici sono ricostruiti a ogni sostituzione di una collezione.
Solo il CommandDispatcher modifica lo stato.
"""

import logging
from typing import Optional

from oficina.core.exceptions import NotFoundError
from oficina.schemas.catalog import CatalogItem, CatalogKind
from oficina.schemas.client import Client
from oficina.schemas.document import DatabaseDocument, WorkshopSettings
from oficina.schemas.ledger import LedgerEntry
from oficina.schemas.work_order import WorkOrder

logger = logging.getLogger(__name__)


def unlink_missing_entries(
    work_orders: list[WorkOrder],
    ledger: list[LedgerEntry],
) -> list[WorkOrder]:
    """Azzera financial_id sugli ordini il cui lancio non esiste più."""
    ids = {entry.id for entry in ledger}
    result = []
    for order in work_orders:
        if order.financial_id is not None and order.financial_id not in ids:
            logger.info(
                "OS #%s: lancio %s rimosso, financial_id azzerato",
                order.os_number, order.financial_id,
            )
            order = order.revise(financial_id=None)
        result.append(order)
    return result


class AppState:
    """
    Collezioni dell'officina e relativi indici.

    Attributes:
        revision: Contatore incrementato a ogni modifica; il coordinatore
            di persistenza lo usa per sapere cosa è già stato scritto.
    """

    def __init__(self, document: Optional[DatabaseDocument] = None) -> None:
        self.ledger: list[LedgerEntry] = []
        self.work_orders: list[WorkOrder] = []
        self.clients: list[Client] = []
        self.catalog_parts: list[CatalogItem] = []
        self.catalog_services: list[CatalogItem] = []
        self.settings: WorkshopSettings = WorkshopSettings()

        self.client_index: dict[str, Client] = {}
        self.catalog_index: dict[CatalogKind, dict[str, CatalogItem]] = {
            CatalogKind.PARTS: {},
            CatalogKind.SERVICES: {},
        }
        self.ledger_index: dict[str, LedgerEntry] = {}
        self.order_index: dict[str, WorkOrder] = {}

        self.revision = 0
        if document is not None:
            self.load_document(document)

    # ------------------------------------------------------------
    # Documento
    # ------------------------------------------------------------

    def load_document(self, document: DatabaseDocument) -> None:
        """Sostituisce tutte le collezioni (non conta come modifica)."""
        self.ledger = list(document.ledger)
        self.work_orders = unlink_missing_entries(document.work_orders, self.ledger)
        self.clients = list(document.clients)
        self.catalog_parts = list(document.catalog_parts)
        self.catalog_services = list(document.catalog_services)
        self.settings = document.settings
        self.reindex()

    def to_document(self) -> DatabaseDocument:
        return DatabaseDocument(
            ledger=self.ledger,
            work_orders=self.work_orders,
            clients=self.clients,
            catalog_parts=self.catalog_parts,
            catalog_services=self.catalog_services,
            settings=self.settings,
        )

    def is_empty(self) -> bool:
        return not (
            self.ledger
            or self.work_orders
            or self.clients
            or self.catalog_parts
            or self.catalog_services
        )

    def reindex(self) -> None:
        """Ricostruisce tutti gli indici dalle collezioni."""
        # In caso di nomi ripetuti vince il primo, come nelle ricerche lineari
        self.client_index = {}
        for client in self.clients:
            self.client_index.setdefault(client.key, client)

        for kind in CatalogKind:
            index: dict[str, CatalogItem] = {}
            for item in self.catalog(kind):
                index.setdefault(item.key, item)
            self.catalog_index[kind] = index

        self.ledger_index = {entry.id: entry for entry in self.ledger}
        self.order_index = {order.id: order for order in self.work_orders}

    def touch(self) -> int:
        """Registra una modifica e restituisce la nuova revisione."""
        self.revision += 1
        return self.revision

    # ------------------------------------------------------------
    # Accesso
    # ------------------------------------------------------------

    def catalog(self, kind: CatalogKind) -> list[CatalogItem]:
        if kind == CatalogKind.PARTS:
            return self.catalog_parts
        return self.catalog_services

    def get_order(self, order_id: str) -> WorkOrder:
        order = self.order_index.get(order_id)
        if order is None:
            raise NotFoundError(
                f"Ordine di servizio con ID {order_id} non trovato",
                error_code="WORK_ORDER_NOT_FOUND",
            )
        return order

    def get_entry(self, entry_id: str) -> LedgerEntry:
        entry = self.ledger_index.get(entry_id)
        if entry is None:
            raise NotFoundError(
                f"Lancio con ID {entry_id} non trovato",
                error_code="LEDGER_ENTRY_NOT_FOUND",
            )
        return entry

    def get_client(self, client_id: str) -> Client:
        for client in self.clients:
            if client.id == client_id:
                return client
        raise NotFoundError(
            f"Cliente con ID {client_id} non trovato",
            error_code="CLIENT_NOT_FOUND",
        )

    def find_client(self, name: str) -> Optional[Client]:
        """Cerca un cliente per nome (case-insensitive)."""
        return self.client_index.get(name.strip().lower())
