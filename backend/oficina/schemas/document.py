"""
Schema del documento persistito
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Il documento JSON contiene tutte le collezioni dell'officina:
{ledger, workOrders, clients, catalogParts, catalogServices, settings}
"""

from pydantic import Field

from oficina.schemas.base import CamelModel
from oficina.schemas.catalog import CatalogItem
from oficina.schemas.client import Client
from oficina.schemas.ledger import LedgerEntry
from oficina.schemas.work_order import WorkOrder


# Nomi delle collezioni nel documento (chiavi JSON), in ordine di serializzazione
COLLECTIONS: tuple[str, ...] = (
    "ledger",
    "workOrders",
    "clients",
    "catalogParts",
    "catalogServices",
)

SETTINGS_KEY = "settings"

# Chiave JSON della collezione → attributo di AppState
COLLECTION_ATTRIBUTES: dict[str, str] = {
    "ledger": "ledger",
    "workOrders": "work_orders",
    "clients": "clients",
    "catalogParts": "catalog_parts",
    "catalogServices": "catalog_services",
}


class WorkshopSettings(CamelModel):
    """
    Dati dell'officina (intestazione documenti, percorsi).

    google_drive_token è opaco: conservato ma mai usato per I/O.
    """
    name: str = "OFICINA PREMIUM"
    cnpj: str = ""
    address: str = ""
    technician: str = ""
    export_path: str = ""
    google_drive_token: str = ""


class DatabaseDocument(CamelModel):
    """Documento completo, salvato e caricato come unità."""
    ledger: list[LedgerEntry] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)
    clients: list[Client] = Field(default_factory=list)
    catalog_parts: list[CatalogItem] = Field(default_factory=list)
    catalog_services: list[CatalogItem] = Field(default_factory=list)
    settings: WorkshopSettings = Field(default_factory=WorkshopSettings)

    def is_empty(self) -> bool:
        """Vero se nessuna collezione contiene record."""
        return not (
            self.ledger
            or self.work_orders
            or self.clients
            or self.catalog_parts
            or self.catalog_services
        )
