"""
Router FastAPI per documento dati, backup e impostazioni dell'officina
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

import logging

from fastapi import APIRouter, Depends, status

from oficina.core.deps import get_dispatcher, get_persistence, get_state
from oficina.core.exceptions import StorageError
from oficina.core.state import AppState
from oficina.schemas.document import WorkshopSettings
from oficina.schemas.system import ExportResult, LocationChange, PersistenceStatus
from oficina.services.dispatcher import CommandDispatcher, CommandName
from oficina.services.persistence_service import PersistenceCoordinator

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/system",
    tags=["Sistema"],
)


@router.get(
    "/status",
    name="sistema_stato",
    summary="Stato di persistenza",
    description="Fase del salvataggio automatico, documento in uso e ultimo errore.",
    response_model=PersistenceStatus,
    status_code=status.HTTP_200_OK,
)
async def get_status(
    persistence: PersistenceCoordinator = Depends(get_persistence),
) -> PersistenceStatus:
    return persistence.status()


@router.post(
    "/flush",
    name="sistema_salva",
    summary="Salva subito",
    description="Scrive immediatamente le modifiche pendenti senza attendere il debounce.",
    response_model=PersistenceStatus,
    status_code=status.HTTP_200_OK,
)
async def flush(
    persistence: PersistenceCoordinator = Depends(get_persistence),
) -> PersistenceStatus:
    await persistence.flush()
    return persistence.status()


@router.put(
    "/location",
    name="sistema_cambia_documento",
    summary="Cambia documento dati",
    description="Salva il documento corrente e carica quello indicato.",
    response_model=PersistenceStatus,
    status_code=status.HTTP_200_OK,
)
async def change_location(
    data: LocationChange,
    persistence: PersistenceCoordinator = Depends(get_persistence),
) -> PersistenceStatus:
    """
    Cambia il documento in uso.

    Raises:
        StorageError: Se il nuovo documento non è leggibile
    """
    if not await persistence.change_location(data.data_file):
        raise StorageError(
            persistence.last_error or "Documento non leggibile",
            error_code="STORAGE_LOAD_ERROR",
            extra={"data_file": data.data_file},
        )
    return persistence.status()


@router.post(
    "/backup",
    name="sistema_backup",
    summary="Crea backup",
    description="Scrive una copia con data e ora del documento nella cartella di backup.",
    response_model=ExportResult,
    status_code=status.HTTP_200_OK,
)
async def create_backup(
    persistence: PersistenceCoordinator = Depends(get_persistence),
) -> ExportResult:
    return await persistence.backup()


@router.get(
    "/settings",
    name="impostazioni_dettaglio",
    summary="Impostazioni officina",
    response_model=WorkshopSettings,
    status_code=status.HTTP_200_OK,
)
async def get_workshop_settings(state: AppState = Depends(get_state)) -> WorkshopSettings:
    return state.settings


@router.put(
    "/settings",
    name="impostazioni_aggiorna",
    summary="Aggiorna impostazioni officina",
    response_model=WorkshopSettings,
    status_code=status.HTTP_200_OK,
)
async def update_workshop_settings(
    data: WorkshopSettings,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkshopSettings:
    return dispatcher.dispatch(CommandName.UPDATE_SETTINGS, settings=data)
