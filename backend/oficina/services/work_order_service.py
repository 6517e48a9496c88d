"""
Service Layer per gli Ordini di Servizio
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Costruzione, modifica, numerazione e ricerca degli ordini.
Le funzioni restituiscono nuovi record: l'applicazione allo stato
avviene nel CommandDispatcher.
"""

import datetime
import logging
from typing import Optional

from oficina.core.decision import DecisionKind, DecisionPort, DecisionRequest
from oficina.core.exceptions import DuplicateError
from oficina.schemas.base import new_id
from oficina.schemas.work_order import (
    Checklist,
    OrderItemInput,
    OrderItem,
    WorkOrder,
    WorkOrderBase,
    WorkOrderCreate,
    WorkOrderStatus,
    WorkOrderUpdate,
    compose_vehicle,
)
from oficina.services.ledger_service import utcnow

# Logger per questo modulo
logger = logging.getLogger(__name__)


def vehicle_label(model: str, plate: str) -> str:
    """Stringa veicolo dai campi del form (vuota se entrambi assenti)."""
    model = (model or "").strip()
    plate = (plate or "").strip().upper()
    if not model and not plate:
        return ""
    return compose_vehicle(model, plate)


class WorkOrderService:
    """
    Service per le operazioni sugli ordini di servizio.

    Non conserva stato; riceve le collezioni correnti da AppState.
    """

    def next_number(self, orders: list[WorkOrder]) -> int:
        """Prossimo numero OS: massimo esistente + 1 (1 se non ci sono ordini)."""
        if not orders:
            return 1
        return max(order.os_number for order in orders) + 1

    def check_number(
        self,
        orders: list[WorkOrder],
        os_number: int,
        decisions: DecisionPort,
        exclude_id: Optional[str] = None,
    ) -> None:
        """
        Verifica l'unicità del numero OS.

        Un duplicato è ammesso solo con conferma esplicita.

        Raises:
            DuplicateError: Se il numero è già usato e l'utente non conferma
        """
        clash = next(
            (o for o in orders if o.os_number == os_number and o.id != exclude_id),
            None,
        )
        if clash is None:
            return

        decision = decisions.decide(
            DecisionRequest(
                kind=DecisionKind.DUPLICATE_NUMBER,
                message=f"Il numero OS #{os_number} è già in uso. Continuare comunque?",
                context={"os_number": os_number, "existing_id": clash.id},
            )
        )
        if not decision.proceed:
            logger.warning("Numero OS duplicato rifiutato: %s", os_number)
            raise DuplicateError(
                f"Il numero OS #{os_number} è già in uso",
                error_code="DUPLICATE_OS_NUMBER",
                extra={"os_number": os_number, "existing_id": clash.id},
            )
        logger.info("Numero OS duplicato accettato dall'utente: %s", os_number)

    def build(
        self,
        data: WorkOrderCreate,
        os_number: int,
        now: Optional[datetime.datetime] = None,
    ) -> WorkOrder:
        """Crea un nuovo ordine in ORCAMENTO dai dati del form."""
        order = WorkOrder(
            id=new_id(),
            os_number=os_number,
            status=WorkOrderStatus.ORCAMENTO,
            created_at=data.created_at or now or utcnow(),
            **self._form_fields(data),
        )
        logger.info("Creato ordine OS #%s per %s", order.os_number, order.client_name)
        return order

    def apply_update(self, order: WorkOrder, data: WorkOrderUpdate) -> WorkOrder:
        """
        Aggiorna i dati di un ordine mantenendo stato, financial_id e checklist.

        Il totale viene ricalcolato dalle voci.
        """
        changes = self._form_fields(data)
        changes["os_number"] = data.os_number
        if data.created_at is not None:
            changes["created_at"] = data.created_at
        updated = order.revise(**changes)
        if updated.financial_id and updated.total != order.total:
            logger.warning(
                "OS #%s: totale modificato (%s -> %s) con ricavo già registrato %s",
                order.os_number, order.total, updated.total, order.financial_id,
            )
        logger.info("Aggiornato ordine OS #%s", updated.os_number)
        return updated

    def set_checklist(self, order: WorkOrder, checklist: Checklist) -> WorkOrder:
        return order.revise(checklist=checklist)

    def filter(
        self,
        orders: list[WorkOrder],
        status_filter: Optional[WorkOrderStatus] = None,
        search: Optional[str] = None,
        include_archived: bool = True,
    ) -> list[WorkOrder]:
        """
        Filtra gli ordini per stato e testo (numero, cliente, veicolo).

        Ordinamento per numero OS decrescente.
        """
        result = orders
        if status_filter is not None:
            result = [o for o in result if o.status == status_filter]
        elif not include_archived:
            result = [o for o in result if o.status != WorkOrderStatus.ARQUIVADO]
        if search:
            term = search.strip().lower()
            result = [
                o for o in result
                if term in str(o.os_number)
                or term in o.client_name.lower()
                or term in o.vehicle.lower()
            ]
        return sorted(result, key=lambda o: o.os_number, reverse=True)

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    @staticmethod
    def _items(items: list[OrderItemInput]) -> list[OrderItem]:
        return [
            OrderItem(
                id=item.id or new_id(),
                description=item.description,
                price=item.price,
                cost=item.cost,
            )
            for item in items
        ]

    def _form_fields(self, data: WorkOrderBase) -> dict:
        return {
            "client_name": data.client_name,
            "client_phone": data.client_phone.strip(),
            "client_notes": data.client_notes.strip() or None,
            "vehicle": vehicle_label(data.vehicle_model, data.vehicle_plate),
            "mileage": data.mileage,
            "parts": self._items(data.parts),
            "services": self._items(data.services),
            "public_notes": data.public_notes,
        }
