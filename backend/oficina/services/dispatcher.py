"""
Dispatcher dei comandi
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Unico punto di modifica di AppState. Ogni mutazione è un comando con
nome e un solo handler. Gli handler calcolano le nuove collezioni con i
service (trasformazioni pure) e le applicano solo a operazione riuscita:
un'eccezione lascia lo stato invariato.

Dopo ogni comando che modifica lo stato:
- gli indici vengono ricostruiti
- la revisione viene incrementata
- i listener (es. PersistenceCoordinator) vengono notificati
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from oficina.core.decision import (
    DecisionKind,
    DecisionPort,
    DecisionRequest,
    NeverProceed,
)
from oficina.core.exceptions import BusinessValidationError, DuplicateError, NotFoundError
from oficina.core.state import AppState, unlink_missing_entries
from oficina.schemas.base import new_id
from oficina.schemas.catalog import CatalogItem, CatalogItemUpsert, CatalogKind
from oficina.schemas.client import Client, ClientUpdate, ClientVehicle
from oficina.schemas.document import COLLECTION_ATTRIBUTES, COLLECTIONS, WorkshopSettings
from oficina.schemas.ledger import (
    LedgerAmountAmend,
    LedgerEntry,
    LedgerEntryCreate,
    LedgerEntryUpdate,
)
from oficina.schemas.work_order import (
    Checklist,
    WorkOrder,
    WorkOrderCreate,
    WorkOrderStatus,
    WorkOrderUpdate,
)
from oficina.services.cascade_service import cascade_catalog_change, cascade_client_change
from oficina.services.catalog_learning_service import learn_catalog_items, learn_client
from oficina.services.ledger_service import LedgerService
from oficina.services.status_engine import StatusTransitionEngine, TransitionResult
from oficina.services.work_order_service import WorkOrderService

# Logger per questo modulo
logger = logging.getLogger(__name__)

Listener = Callable[["CommandName", int], None]


class CommandName(str, Enum):
    """Comandi che modificano lo stato applicativo."""
    CREATE_WORK_ORDER = "CREATE_WORK_ORDER"
    UPDATE_WORK_ORDER = "UPDATE_WORK_ORDER"
    DELETE_WORK_ORDER = "DELETE_WORK_ORDER"
    SET_STATUS = "SET_STATUS"
    ADVANCE_STATUS = "ADVANCE_STATUS"
    REGRESS_STATUS = "REGRESS_STATUS"
    ARCHIVE_WORK_ORDER = "ARCHIVE_WORK_ORDER"
    RESTORE_WORK_ORDER = "RESTORE_WORK_ORDER"
    UPDATE_CHECKLIST = "UPDATE_CHECKLIST"
    CREATE_LEDGER_ENTRIES = "CREATE_LEDGER_ENTRIES"
    AMEND_AMOUNT = "AMEND_AMOUNT"
    UPDATE_LEDGER_ENTRY = "UPDATE_LEDGER_ENTRY"
    DELETE_LEDGER_ENTRY = "DELETE_LEDGER_ENTRY"
    DELETE_LEDGER_GROUP = "DELETE_LEDGER_GROUP"
    UPDATE_CLIENT = "UPDATE_CLIENT"
    DELETE_CLIENT = "DELETE_CLIENT"
    CREATE_CATALOG_ITEM = "CREATE_CATALOG_ITEM"
    UPDATE_CATALOG_ITEM = "UPDATE_CATALOG_ITEM"
    DELETE_CATALOG_ITEM = "DELETE_CATALOG_ITEM"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    REPLACE_COLLECTION = "REPLACE_COLLECTION"


_RECORD_MODELS: dict[str, type] = {
    "ledger": LedgerEntry,
    "workOrders": WorkOrder,
    "clients": Client,
    "catalogParts": CatalogItem,
    "catalogServices": CatalogItem,
}


class CommandDispatcher:
    """
    Esegue i comandi sullo stato applicativo.

    Usage:
        dispatcher = CommandDispatcher(state)
        dispatcher.subscribe(coordinator.notify_change)
        order = dispatcher.dispatch(CommandName.CREATE_WORK_ORDER, data=payload)
    """

    def __init__(
        self,
        state: AppState,
        ledger_service: Optional[LedgerService] = None,
        engine: Optional[StatusTransitionEngine] = None,
        work_order_service: Optional[WorkOrderService] = None,
    ) -> None:
        self.state = state
        self.ledger_service = ledger_service or LedgerService()
        self.engine = engine or StatusTransitionEngine(self.ledger_service)
        self.work_order_service = work_order_service or WorkOrderService()
        self._listeners: list[Listener] = []
        self._staged: dict[str, Any] = {}
        self._handlers: dict[CommandName, Callable[..., Any]] = {
            CommandName.CREATE_WORK_ORDER: self._create_work_order,
            CommandName.UPDATE_WORK_ORDER: self._update_work_order,
            CommandName.DELETE_WORK_ORDER: self._delete_work_order,
            CommandName.SET_STATUS: self._set_status,
            CommandName.ADVANCE_STATUS: self._advance_status,
            CommandName.REGRESS_STATUS: self._regress_status,
            CommandName.ARCHIVE_WORK_ORDER: self._archive_work_order,
            CommandName.RESTORE_WORK_ORDER: self._restore_work_order,
            CommandName.UPDATE_CHECKLIST: self._update_checklist,
            CommandName.CREATE_LEDGER_ENTRIES: self._create_ledger_entries,
            CommandName.AMEND_AMOUNT: self._amend_amount,
            CommandName.UPDATE_LEDGER_ENTRY: self._update_ledger_entry,
            CommandName.DELETE_LEDGER_ENTRY: self._delete_ledger_entry,
            CommandName.DELETE_LEDGER_GROUP: self._delete_ledger_group,
            CommandName.UPDATE_CLIENT: self._update_client,
            CommandName.DELETE_CLIENT: self._delete_client,
            CommandName.CREATE_CATALOG_ITEM: self._create_catalog_item,
            CommandName.UPDATE_CATALOG_ITEM: self._update_catalog_item,
            CommandName.DELETE_CATALOG_ITEM: self._delete_catalog_item,
            CommandName.UPDATE_SETTINGS: self._update_settings,
            CommandName.REPLACE_COLLECTION: self._replace_collection,
        }

    def subscribe(self, listener: Listener) -> None:
        """Registra un listener chiamato dopo ogni comando che modifica lo stato."""
        self._listeners.append(listener)

    def dispatch(
        self,
        name: CommandName,
        decisions: Optional[DecisionPort] = None,
        **payload: Any,
    ) -> Any:
        """
        Esegue un comando.

        Args:
            name: Nome del comando
            decisions: Porta per le conferme (default: rifiuta tutto)
            **payload: Argomenti dell'handler

        Returns:
            Il valore restituito dall'handler

        Raises:
            AppException: Errori di business; lo stato resta invariato
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise BusinessValidationError(f"Comando sconosciuto: {name}")

        self._staged = {}
        try:
            result = handler(decisions or NeverProceed(), **payload)
            staged = self._staged
        finally:
            self._staged = {}

        if not staged:
            logger.debug("Comando %s senza modifiche", name.value)
            return result

        self._apply(staged)
        revision = self.state.touch()
        logger.debug("Comando %s applicato (revisione %s)", name.value, revision)
        for listener in self._listeners:
            listener(name, revision)
        return result

    # ------------------------------------------------------------
    # Applicazione allo stato
    # ------------------------------------------------------------

    def _stage(self, **collections: Any) -> None:
        self._staged.update(collections)

    def _apply(self, staged: dict[str, Any]) -> None:
        if "ledger" in staged or "work_orders" in staged:
            orders = staged.get("work_orders", self.state.work_orders)
            ledger = staged.get("ledger", self.state.ledger)
            staged["work_orders"] = unlink_missing_entries(orders, ledger)
        for attribute, value in staged.items():
            setattr(self.state, attribute, value)
        self.state.reindex()

    def _replace_order(self, order: WorkOrder) -> list[WorkOrder]:
        return [order if o.id == order.id else o for o in self.state.work_orders]

    def _replace_entry(self, entry: LedgerEntry) -> list[LedgerEntry]:
        return [entry if e.id == entry.id else e for e in self.state.ledger]

    # ------------------------------------------------------------
    # Ordini di servizio
    # ------------------------------------------------------------

    def _learn_from_order(self, data, order: WorkOrder) -> None:
        clients = learn_client(
            self.state.clients,
            data.client_name,
            data.vehicle_model,
            data.vehicle_plate,
            data.client_phone,
            data.client_notes,
            index=self.state.client_index,
        )
        parts = learn_catalog_items(self.state.catalog_parts, order.parts)
        services = learn_catalog_items(self.state.catalog_services, order.services)
        self._stage(clients=clients, catalog_parts=parts, catalog_services=services)

    def _create_work_order(self, decisions: DecisionPort, data: WorkOrderCreate) -> WorkOrder:
        orders = self.state.work_orders
        if data.os_number is None:
            number = self.work_order_service.next_number(orders)
        else:
            number = data.os_number
            self.work_order_service.check_number(orders, number, decisions)

        order = self.work_order_service.build(data, number)
        self._learn_from_order(data, order)
        self._stage(work_orders=[*orders, order])
        return order

    def _update_work_order(
        self,
        decisions: DecisionPort,
        order_id: str,
        data: WorkOrderUpdate,
    ) -> WorkOrder:
        current = self.state.get_order(order_id)
        if data.os_number != current.os_number:
            self.work_order_service.check_number(
                self.state.work_orders, data.os_number, decisions, exclude_id=order_id,
            )
        order = self.work_order_service.apply_update(current, data)
        self._learn_from_order(data, order)
        self._stage(work_orders=self._replace_order(order))
        return order

    def _delete_work_order(self, decisions: DecisionPort, order_id: str) -> Optional[str]:
        """Restituisce l'id del lancio rimosso insieme all'ordine (se confermato)."""
        order = self.state.get_order(order_id)
        orders = [o for o in self.state.work_orders if o.id != order_id]
        removed_entry = None

        if order.financial_id is not None and order.financial_id in self.state.ledger_index:
            decision = decisions.decide(
                DecisionRequest(
                    kind=DecisionKind.REMOVE_LINKED_ENTRY,
                    message=(
                        f"La OS #{order.os_number} ha un ricavo registrato. "
                        "Eliminare anche il lancio finanziario?"
                    ),
                    context={"order_id": order.id, "entry_id": order.financial_id},
                )
            )
            if decision.proceed:
                removed_entry = order.financial_id
                self._stage(
                    ledger=self.ledger_service.delete_entry(self.state.ledger, removed_entry)
                )

        self._stage(work_orders=orders)
        logger.info("Eliminato ordine OS #%s", order.os_number)
        return removed_entry

    def _apply_transition(self, result: TransitionResult) -> TransitionResult:
        if result.changed:
            self._stage(work_orders=self._replace_order(result.order))
            if result.posted_entry_id or result.removed_entry_id:
                self._stage(ledger=result.ledger)
        return result

    def _set_status(
        self,
        decisions: DecisionPort,
        order_id: str,
        status: WorkOrderStatus,
    ) -> TransitionResult:
        order = self.state.get_order(order_id)
        return self._apply_transition(
            self.engine.set_status(order, status, self.state.ledger, decisions)
        )

    def _advance_status(self, decisions: DecisionPort, order_id: str) -> TransitionResult:
        order = self.state.get_order(order_id)
        return self._apply_transition(self.engine.advance(order, self.state.ledger, decisions))

    def _regress_status(self, decisions: DecisionPort, order_id: str) -> TransitionResult:
        order = self.state.get_order(order_id)
        return self._apply_transition(self.engine.regress(order, self.state.ledger, decisions))

    def _archive_work_order(self, decisions: DecisionPort, order_id: str) -> TransitionResult:
        order = self.state.get_order(order_id)
        return self._apply_transition(self.engine.archive(order, self.state.ledger, decisions))

    def _restore_work_order(self, decisions: DecisionPort, order_id: str) -> TransitionResult:
        order = self.state.get_order(order_id)
        return self._apply_transition(self.engine.restore(order, self.state.ledger, decisions))

    def _update_checklist(
        self,
        decisions: DecisionPort,
        order_id: str,
        checklist: Checklist,
    ) -> WorkOrder:
        order = self.work_order_service.set_checklist(self.state.get_order(order_id), checklist)
        self._stage(work_orders=self._replace_order(order))
        return order

    # ------------------------------------------------------------
    # Registro finanziario
    # ------------------------------------------------------------

    def _create_ledger_entries(
        self,
        decisions: DecisionPort,
        data: LedgerEntryCreate,
    ) -> list[LedgerEntry]:
        entries = self.ledger_service.create_with_recurrence(
            data.description,
            data.amount,
            data.type,
            data.effective_date,
            mode=data.recurrence,
            count=data.count,
        )
        self._stage(ledger=[*self.state.ledger, *entries])
        return entries

    def _amend_amount(
        self,
        decisions: DecisionPort,
        entry_id: str,
        data: LedgerAmountAmend,
    ) -> LedgerEntry:
        current = self.state.get_entry(entry_id)
        entry = self.ledger_service.amend_amount(current, data.new_amount, data.actor, data.reason)
        if entry is not current:
            self._stage(ledger=self._replace_entry(entry))
        return entry

    def _update_ledger_entry(
        self,
        decisions: DecisionPort,
        entry_id: str,
        data: LedgerEntryUpdate,
    ) -> LedgerEntry:
        current = self.state.get_entry(entry_id)
        entry = self.ledger_service.update_entry(
            current,
            description=data.description,
            type=data.type,
            effective_date=data.effective_date,
            actor=data.actor,
        )
        if entry is not current:
            self._stage(ledger=self._replace_entry(entry))
        return entry

    def _delete_ledger_entry(self, decisions: DecisionPort, entry_id: str) -> None:
        self._stage(ledger=self.ledger_service.delete_entry(self.state.ledger, entry_id))

    def _delete_ledger_group(self, decisions: DecisionPort, group_id: str) -> int:
        ledger = self.ledger_service.delete_group(self.state.ledger, group_id)
        self._stage(ledger=ledger)
        return len(self.state.ledger) - len(ledger)

    # ------------------------------------------------------------
    # Clienti
    # ------------------------------------------------------------

    def _update_client(
        self,
        decisions: DecisionPort,
        client_id: str,
        data: ClientUpdate,
    ) -> Client:
        old = self.state.get_client(client_id)
        other = self.state.find_client(data.name)
        if other is not None and other.id != client_id:
            raise DuplicateError(
                f"Esiste già un cliente con nome '{data.name}'",
                error_code="DUPLICATE_CLIENT_NAME",
                extra={"client_id": other.id},
            )

        new = old.revise(
            name=data.name,
            phone=data.phone.strip(),
            notes=data.notes.strip(),
            vehicles=[ClientVehicle(model=v.model, plate=v.plate) for v in data.vehicles],
        )
        if new == old:
            return old

        cascade = cascade_client_change(old, new, self.state.work_orders, self.state.ledger)
        clients = [new if c.id == client_id else c for c in self.state.clients]
        self._stage(clients=clients)
        if cascade.changed:
            self._stage(work_orders=cascade.work_orders, ledger=cascade.ledger)
        return new

    def _delete_client(self, decisions: DecisionPort, client_id: str) -> None:
        client = self.state.get_client(client_id)
        self._stage(clients=[c for c in self.state.clients if c.id != client_id])
        logger.info("Eliminato cliente %s", client.name)

    # ------------------------------------------------------------
    # Cataloghi
    # ------------------------------------------------------------

    def _find_catalog_item(self, kind: CatalogKind, description: str) -> CatalogItem:
        item = self.state.catalog_index[kind].get(description.strip().lower())
        if item is None:
            raise NotFoundError(
                f"Voce di catalogo '{description}' non trovata",
                error_code="CATALOG_ITEM_NOT_FOUND",
            )
        return item

    def _check_catalog_free(
        self,
        kind: CatalogKind,
        description: str,
        exclude: Optional[CatalogItem] = None,
    ) -> None:
        clash = self.state.catalog_index[kind].get(description.lower())
        if clash is not None and clash is not exclude:
            raise DuplicateError(
                f"La voce '{description}' esiste già nel catalogo",
                error_code="DUPLICATE_CATALOG_ITEM",
            )

    def _create_catalog_item(
        self,
        decisions: DecisionPort,
        kind: CatalogKind,
        data: CatalogItemUpsert,
    ) -> CatalogItem:
        self._check_catalog_free(kind, data.description)
        item = CatalogItem(id=new_id(), description=data.description, price=data.price, cost=data.cost)
        self._stage(**{self._catalog_attribute(kind): [*self.state.catalog(kind), item]})
        return item

    def _update_catalog_item(
        self,
        decisions: DecisionPort,
        kind: CatalogKind,
        description: str,
        data: CatalogItemUpsert,
    ) -> CatalogItem:
        old = self._find_catalog_item(kind, description)
        self._check_catalog_free(kind, data.description, exclude=old)
        new = old.revise(description=data.description, price=data.price, cost=data.cost)
        if new == old:
            return old

        items = [new if i is old else i for i in self.state.catalog(kind)]
        self._stage(**{self._catalog_attribute(kind): items})
        cascade = cascade_catalog_change(old, new, self.state.work_orders, self.state.ledger)
        if cascade.changed:
            self._stage(work_orders=cascade.work_orders)
        return new

    def _delete_catalog_item(
        self,
        decisions: DecisionPort,
        kind: CatalogKind,
        description: str,
    ) -> None:
        old = self._find_catalog_item(kind, description)
        items = [i for i in self.state.catalog(kind) if i is not old]
        self._stage(**{self._catalog_attribute(kind): items})

    @staticmethod
    def _catalog_attribute(kind: CatalogKind) -> str:
        return "catalog_parts" if kind == CatalogKind.PARTS else "catalog_services"

    # ------------------------------------------------------------
    # Impostazioni e sincronizzazione
    # ------------------------------------------------------------

    def _update_settings(
        self,
        decisions: DecisionPort,
        settings: WorkshopSettings,
    ) -> WorkshopSettings:
        if settings != self.state.settings:
            self._stage(settings=settings)
        return settings

    def _replace_collection(
        self,
        decisions: DecisionPort,
        collection: str,
        records: list[dict],
    ) -> int:
        """
        Sostituisce un'intera collezione (usato dalla sincronizzazione).

        Per "settings" records contiene al più un elemento.
        """
        if collection == "settings":
            settings = WorkshopSettings.model_validate(records[0]) if records else WorkshopSettings()
            self._stage(settings=settings)
            return len(records)

        if collection not in COLLECTIONS:
            raise BusinessValidationError(f"Collezione sconosciuta: {collection}")

        model = _RECORD_MODELS[collection]
        values = [model.model_validate(record) for record in records]
        self._stage(**{COLLECTION_ATTRIBUTES[collection]: values})
        return len(values)
