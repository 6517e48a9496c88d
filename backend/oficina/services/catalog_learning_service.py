"""
Apprendimento di anagrafica clienti e cataloghi dagli ordini
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Ogni salvataggio di un ordine arricchisce l'anagrafica clienti e i
cataloghi ricambi/servizi senza mai sovrascrivere dati esistenti con
valori vuoti.
"""

import datetime
import logging
from typing import Iterable, Optional, Union

from oficina.schemas.base import new_id
from oficina.schemas.catalog import CatalogItem
from oficina.schemas.client import Client, ClientVehicle
from oficina.schemas.work_order import OrderItem
from oficina.services.ledger_service import utcnow

# Logger per questo modulo
logger = logging.getLogger(__name__)


def learn_client(
    clients: list[Client],
    name: str,
    vehicle_model: str = "",
    vehicle_plate: str = "",
    phone: str = "",
    notes: str = "",
    index: Optional[dict[str, Client]] = None,
    now: Optional[datetime.datetime] = None,
) -> list[Client]:
    """
    Crea o aggiorna il cliente che corrisponde al nome (case-insensitive).

    - telefono e note sovrascritti solo se il nuovo valore non è vuoto
    - veicolo aggiunto solo se la coppia (modello, targa) non esiste
    - last_visit aggiornato a ogni creazione o aggiornamento
    - nome vuoto: nessuna modifica

    Args:
        clients: Anagrafica corrente
        name: Nome del cliente
        vehicle_model: Modello del veicolo
        vehicle_plate: Targa (normalizzata in maiuscolo)
        phone: Telefono
        notes: Note
        index: Indice nome.lower() → Client (se assente si cerca nella lista)
        now: Istante della visita (default: adesso, UTC)

    Returns:
        list[Client]: Nuova anagrafica
    """
    name = (name or "").strip()
    if not name:
        return clients

    model = (vehicle_model or "").strip()
    plate = (vehicle_plate or "").strip().upper()
    phone = (phone or "").strip()
    notes = (notes or "").strip()
    has_vehicle_data = bool(model or plate)
    visit = now or utcnow()

    key = name.lower()
    if index is not None:
        existing = index.get(key)
    else:
        existing = next((c for c in clients if c.key == key), None)

    if existing is None:
        vehicles = [ClientVehicle(model=model, plate=plate)] if has_vehicle_data else []
        client = Client(
            id=new_id(), name=name, phone=phone, notes=notes,
            vehicles=vehicles, last_visit=visit,
        )
        logger.info("Nuovo cliente appreso: %s", name)
        return [*clients, client]

    known = any(v.model == model and v.plate == plate for v in existing.vehicles)
    vehicles = list(existing.vehicles)
    if has_vehicle_data and not known:
        vehicles.append(ClientVehicle(model=model, plate=plate))

    merged = existing.revise(
        phone=phone or existing.phone,
        notes=notes or existing.notes,
        vehicles=vehicles,
        last_visit=visit,
    )
    if merged == existing:
        return clients

    logger.info("Cliente %s aggiornato dai dati dell'ordine", existing.name)
    return [merged if c.id == existing.id else c for c in clients]


def learn_catalog_items(
    catalog: list[CatalogItem],
    new_items: Iterable[Union[OrderItem, CatalogItem]],
) -> list[CatalogItem]:
    """
    Aggiunge al catalogo le voci con descrizione non ancora presente.

    Il confronto è case-insensitive; le voci esistenti non vengono mai
    modificate da questo percorso (i prezzi si correggono solo dalla
    gestione esplicita del catalogo).
    """
    known = {item.key for item in catalog}
    added: list[CatalogItem] = []
    for item in new_items:
        description = item.description.strip()
        if not description or description.lower() in known:
            continue
        known.add(description.lower())
        added.append(
            CatalogItem(
                id=new_id(),
                description=description,
                price=item.price,
                cost=item.cost,
            )
        )

    if not added:
        return catalog
    logger.info("Catalogo: %s nuove voci apprese", len(added))
    return [*catalog, *added]
