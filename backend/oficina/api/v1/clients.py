"""
Router FastAPI per l'anagrafica Clienti
Progetto: Oficina OS (Gestionale Ordini di Servizio)

I clienti vengono creati dagli ordini; qui si consultano, si modificano
(con propagazione a ordini e lanci) e si eliminano.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from oficina.core.deps import get_dispatcher, get_state
from oficina.core.state import AppState
from oficina.schemas.client import Client, ClientUpdate
from oficina.services.dispatcher import CommandDispatcher, CommandName

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clients",
    tags=["Clienti"],
)


@router.get(
    "/",
    name="clienti_lista",
    summary="Lista clienti",
    description="Clienti in ordine alfabetico, con ricerca su nome, telefono e targhe.",
    response_model=list[Client],
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    search: Optional[str] = Query(None, description="Termine di ricerca"),
    state: AppState = Depends(get_state),
) -> list[Client]:
    """
    Recupera l'anagrafica clienti.

    Args:
        search: Filtro case-insensitive su nome, telefono, modello e targa
        state: Stato applicativo

    Returns:
        list[Client]: Clienti ordinati per nome
    """
    clients = state.clients
    if search:
        term = search.strip().lower()
        clients = [
            c for c in clients
            if term in c.name.lower()
            or term in c.phone.lower()
            or any(term in v.label.lower() for v in c.vehicles)
        ]
    return sorted(clients, key=lambda c: c.name.lower())


@router.get(
    "/{client_id}",
    name="cliente_dettaglio",
    summary="Dettaglio cliente",
    response_model=Client,
    status_code=status.HTTP_200_OK,
)
async def get_client(
    client_id: str = Path(..., description="ID del cliente"),
    state: AppState = Depends(get_state),
) -> Client:
    return state.get_client(client_id)


@router.put(
    "/{client_id}",
    name="cliente_aggiorna",
    summary="Aggiorna cliente",
    description=(
        "Aggiorna l'anagrafica. Un cambio di nome, telefono o veicolo viene propagato "
        "agli ordini del cliente e alle descrizioni dei lanci."
    ),
    response_model=Client,
    status_code=status.HTTP_200_OK,
)
async def update_client(
    data: ClientUpdate,
    client_id: str = Path(..., description="ID del cliente"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> Client:
    """
    Aggiorna un cliente con propagazione.

    Raises:
        NotFoundError: Se il cliente non esiste
        DuplicateError: Se il nuovo nome appartiene a un altro cliente
    """
    return dispatcher.dispatch(CommandName.UPDATE_CLIENT, client_id=client_id, data=data)


@router.delete(
    "/{client_id}",
    name="cliente_elimina",
    summary="Elimina cliente",
    description="Elimina il cliente dall'anagrafica; gli ordini esistenti restano invariati.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: str = Path(..., description="ID del cliente"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> None:
    dispatcher.dispatch(CommandName.DELETE_CLIENT, client_id=client_id)
