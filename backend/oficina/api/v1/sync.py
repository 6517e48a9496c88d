"""
Router FastAPI per la sincronizzazione con il mirror remoto
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Ogni operazione ha una direzione esplicita: push (locale → remoto)
o pull (remoto → locale).
"""

import logging

from fastapi import APIRouter, Depends, Path, status

from oficina.core.deps import get_sync_service
from oficina.schemas.sync import CollectionSyncResult, SyncAvailability, SyncReport
from oficina.services.sync_service import SyncService

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sync",
    tags=["Sincronizzazione"],
)


@router.get(
    "/status",
    name="sync_stato",
    summary="Disponibilità del remoto",
    response_model=SyncAvailability,
    status_code=status.HTTP_200_OK,
)
async def get_availability(sync: SyncService = Depends(get_sync_service)) -> SyncAvailability:
    return await sync.availability()


@router.post(
    "/push/{collection}",
    name="sync_push_collezione",
    summary="Carica una collezione",
    description="Sovrascrive la collezione remota con quella locale.",
    response_model=CollectionSyncResult,
    status_code=status.HTTP_200_OK,
)
async def push_collection(
    collection: str = Path(..., description="ledger, workOrders, clients, catalogParts, catalogServices o settings"),
    sync: SyncService = Depends(get_sync_service),
) -> CollectionSyncResult:
    """
    Carica una collezione sul remoto.

    Raises:
        SyncError: Remoto non configurato o non raggiungibile
    """
    return await sync.sync_up(collection)


@router.post(
    "/pull/{collection}",
    name="sync_pull_collezione",
    summary="Scarica una collezione",
    description="Sostituisce la collezione locale con quella remota (lettura paginata).",
    response_model=CollectionSyncResult,
    status_code=status.HTTP_200_OK,
)
async def pull_collection(
    collection: str = Path(..., description="ledger, workOrders, clients, catalogParts, catalogServices o settings"),
    sync: SyncService = Depends(get_sync_service),
) -> CollectionSyncResult:
    """
    Scarica una collezione dal remoto.

    Raises:
        SyncError: Remoto non raggiungibile o dati non validi; la collezione
            locale resta invariata
    """
    return await sync.sync_down(collection)


@router.post(
    "/pull",
    name="sync_pull_completo",
    summary="Scarica tutte le collezioni",
    description="Esegue il pull di ogni collezione; gli errori sono riportati per collezione.",
    response_model=SyncReport,
    status_code=status.HTTP_200_OK,
)
async def pull_all(sync: SyncService = Depends(get_sync_service)) -> SyncReport:
    return await sync.full_sync()


@router.post(
    "/push",
    name="sync_push_completo",
    summary="Carica tutte le collezioni",
    description="Esegue il push di ogni collezione; gli errori sono riportati per collezione.",
    response_model=SyncReport,
    status_code=status.HTTP_200_OK,
)
async def push_all(sync: SyncService = Depends(get_sync_service)) -> SyncReport:
    return await sync.push_all()
