"""
Propagazione delle modifiche anagrafiche
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Ordini e lanci copiano per valore nome/telefono del cliente, la stringa
veicolo e le descrizioni di catalogo. Quando il record canonico cambia,
queste funzioni restituiscono le collezioni aggiornate. Nessun I/O.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from oficina.schemas.catalog import CatalogItem
from oficina.schemas.client import Client
from oficina.schemas.ledger import LedgerEntry
from oficina.schemas.work_order import OrderItem, WorkOrder

# Logger per questo modulo
logger = logging.getLogger(__name__)


class CascadeResult(BaseModel):
    """Collezioni dopo la propagazione."""
    work_orders: list[WorkOrder]
    ledger: list[LedgerEntry]
    changed: bool = False
    orders_updated: int = 0
    entries_updated: int = 0


def vehicle_relabels(old: Client, new: Client) -> dict[str, str]:
    """
    Mappa "modello - targa" vecchio → nuovo.

    I veicoli sono confrontati per posizione: l'i-esimo veicolo nuovo
    sostituisce l'i-esimo vecchio. Veicoli aggiunti o rimossi non
    generano rinomine.
    """
    relabels: dict[str, str] = {}
    for old_vehicle, new_vehicle in zip(old.vehicles, new.vehicles):
        if old_vehicle.label != new_vehicle.label:
            relabels[old_vehicle.label] = new_vehicle.label
    return relabels


def cascade_client_change(
    old: Optional[Client],
    new: Client,
    work_orders: list[WorkOrder],
    ledger: list[LedgerEntry],
) -> CascadeResult:
    """
    Propaga la modifica di un cliente.

    - ordini con client_name == vecchio nome: nome e telefono aggiornati
    - ordini con vehicle == vecchia stringa veicolo: veicolo rinominato
    - lanci la cui descrizione contiene il vecchio nome: nome sostituito

    Args:
        old: Cliente prima della modifica (None: nessuna propagazione)
        new: Cliente dopo la modifica
        work_orders: Tutti gli ordini
        ledger: Tutti i lanci
    """
    if old is None:
        return CascadeResult(work_orders=work_orders, ledger=ledger)

    name_changed = old.name != new.name
    phone_changed = old.phone != new.phone
    relabels = vehicle_relabels(old, new)

    if not (name_changed or phone_changed or relabels):
        return CascadeResult(work_orders=work_orders, ledger=ledger)

    orders_updated = 0
    new_orders: list[WorkOrder] = []
    for order in work_orders:
        changes: dict = {}
        if order.client_name == old.name:
            if name_changed:
                changes["client_name"] = new.name
            if phone_changed:
                changes["client_phone"] = new.phone
        if order.vehicle in relabels:
            changes["vehicle"] = relabels[order.vehicle]
        if changes:
            orders_updated += 1
            new_orders.append(order.revise(**changes))
        else:
            new_orders.append(order)

    entries_updated = 0
    new_ledger = ledger
    if name_changed and old.name:
        new_ledger = []
        for entry in ledger:
            if old.name in entry.description:
                entries_updated += 1
                new_ledger.append(
                    entry.revise(description=entry.description.replace(old.name, new.name, 1))
                )
            else:
                new_ledger.append(entry)

    logger.info(
        "Modifica cliente '%s' propagata: %s ordini, %s lanci",
        new.name, orders_updated, entries_updated,
    )
    return CascadeResult(
        work_orders=new_orders,
        ledger=new_ledger,
        changed=bool(orders_updated or entries_updated),
        orders_updated=orders_updated,
        entries_updated=entries_updated,
    )


def _relabel_items(items: list[OrderItem], old: str, new: str) -> tuple[list[OrderItem], bool]:
    changed = False
    result = []
    for item in items:
        if item.description == old:
            changed = True
            result.append(item.revise(description=new))
        else:
            result.append(item)
    return result, changed


def cascade_catalog_change(
    old: Optional[CatalogItem],
    new: CatalogItem,
    work_orders: list[WorkOrder],
    ledger: list[LedgerEntry],
) -> CascadeResult:
    """
    Propaga il cambio di descrizione di una voce di catalogo.

    Le voci d'ordine con descrizione identica vengono rinominate; i prezzi
    degli ordini esistenti non cambiano.
    """
    if old is None or old.description == new.description:
        return CascadeResult(work_orders=work_orders, ledger=ledger)

    orders_updated = 0
    new_orders: list[WorkOrder] = []
    for order in work_orders:
        parts, parts_changed = _relabel_items(order.parts, old.description, new.description)
        services, services_changed = _relabel_items(order.services, old.description, new.description)
        if parts_changed or services_changed:
            orders_updated += 1
            new_orders.append(order.revise(parts=parts, services=services))
        else:
            new_orders.append(order)

    logger.info(
        "Voce di catalogo '%s' -> '%s': %s ordini aggiornati",
        old.description, new.description, orders_updated,
    )
    return CascadeResult(
        work_orders=new_orders,
        ledger=ledger,
        changed=orders_updated > 0,
        orders_updated=orders_updated,
    )
