"""
Schemas Pydantic per il progetto Oficina OS

Questo modulo contiene i record del documento persistito e gli schemi
di validazione delle richieste API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from oficina.schemas import WorkOrder, LedgerEntry, etc.

from oficina.schemas.base import CamelInput, CamelModel, new_id
from oficina.schemas.catalog import CatalogItem, CatalogItemUpsert, CatalogKind
from oficina.schemas.client import Client, ClientUpdate, ClientVehicle, ClientVehicleInput
from oficina.schemas.document import (
    COLLECTIONS,
    SETTINGS_KEY,
    DatabaseDocument,
    WorkshopSettings,
)
from oficina.schemas.ledger import (
    HistoryLine,
    LedgerAmountAmend,
    LedgerEntry,
    LedgerEntryCreate,
    LedgerEntryUpdate,
    LedgerSummary,
    RecurrenceMode,
    TransactionType,
)
from oficina.schemas.sync import (
    CollectionSyncResult,
    FetchProgress,
    SyncAvailability,
    SyncDirection,
    SyncOutcome,
    SyncReport,
)
from oficina.schemas.system import (
    ExportResult,
    LocationChange,
    PersistencePhase,
    PersistenceStatus,
)
from oficina.schemas.work_order import (
    Checklist,
    OrderItem,
    OrderItemInput,
    TireCheck,
    WorkOrder,
    WorkOrderCreate,
    WorkOrderDeleted,
    WorkOrderList,
    WorkOrderStatus,
    WorkOrderStatusUpdate,
    WorkOrderTransition,
    WorkOrderUpdate,
)

__all__ = [
    # Base
    "CamelInput",
    "CamelModel",
    "new_id",
    # Catalog schemas
    "CatalogItem",
    "CatalogItemUpsert",
    "CatalogKind",
    # Client schemas
    "Client",
    "ClientUpdate",
    "ClientVehicle",
    "ClientVehicleInput",
    # Document
    "COLLECTIONS",
    "SETTINGS_KEY",
    "DatabaseDocument",
    "WorkshopSettings",
    # Ledger schemas
    "HistoryLine",
    "LedgerAmountAmend",
    "LedgerEntry",
    "LedgerEntryCreate",
    "LedgerEntryUpdate",
    "LedgerSummary",
    "RecurrenceMode",
    "TransactionType",
    # Sync schemas
    "CollectionSyncResult",
    "FetchProgress",
    "SyncAvailability",
    "SyncDirection",
    "SyncOutcome",
    "SyncReport",
    # System schemas
    "ExportResult",
    "LocationChange",
    "PersistencePhase",
    "PersistenceStatus",
    # WorkOrder schemas
    "Checklist",
    "OrderItem",
    "OrderItemInput",
    "TireCheck",
    "WorkOrder",
    "WorkOrderCreate",
    "WorkOrderDeleted",
    "WorkOrderList",
    "WorkOrderStatus",
    "WorkOrderStatusUpdate",
    "WorkOrderTransition",
    "WorkOrderUpdate",
]
