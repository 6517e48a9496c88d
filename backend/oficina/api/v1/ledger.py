"""
Router FastAPI per il Registro Finanziario
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Endpoint per lanci singoli, rateizzati e ricorrenti, modifica
dell'importo con audit e riepiloghi per periodo di competenza.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from oficina.core.deps import get_dispatcher, get_state
from oficina.core.state import AppState
from oficina.schemas.ledger import (
    LedgerAmountAmend,
    LedgerEntry,
    LedgerEntryCreate,
    LedgerEntryUpdate,
    LedgerSummary,
    TransactionType,
)
from oficina.services.dispatcher import CommandDispatcher, CommandName
from oficina.services.ledger_service import LedgerService

# Logger per questo modulo
logger = logging.getLogger(__name__)

ledger_service = LedgerService()

router = APIRouter(
    prefix="/ledger",
    tags=["Registro Finanziario"],
)


@router.get(
    "/",
    name="lanci_lista",
    summary="Lista lanci",
    description="Lanci filtrati per periodo di competenza (YYYY-MM o YYYY) e tipo.",
    response_model=list[LedgerEntry],
    status_code=status.HTTP_200_OK,
)
async def get_entries(
    period: Optional[str] = Query(None, description="Periodo di competenza YYYY-MM o YYYY"),
    type: Optional[TransactionType] = Query(None, description="CREDIT o DEBIT"),
    state: AppState = Depends(get_state),
) -> list[LedgerEntry]:
    """
    Recupera i lanci ordinati per competenza decrescente.

    Raises:
        BusinessValidationError: Periodo in formato non valido
    """
    return ledger_service.filter_entries(state.ledger, period=period, type=type)


@router.get(
    "/summary",
    name="lanci_riepilogo",
    summary="Riepilogo periodo",
    description="Entrate, uscite e saldo di un mese o di un anno di competenza.",
    response_model=LedgerSummary,
    status_code=status.HTTP_200_OK,
)
async def get_summary(
    period: str = Query(..., description="Periodo di competenza YYYY-MM o YYYY"),
    state: AppState = Depends(get_state),
) -> LedgerSummary:
    return ledger_service.summarize(state.ledger, period)


@router.get(
    "/months",
    name="lanci_mesi",
    summary="Mesi disponibili",
    description="Mesi di competenza presenti nel registro, dal più recente.",
    response_model=list[str],
    status_code=status.HTTP_200_OK,
)
async def get_months(state: AppState = Depends(get_state)) -> list[str]:
    return ledger_service.available_months(state.ledger)


@router.get(
    "/{entry_id}",
    name="lancio_dettaglio",
    summary="Dettaglio lancio",
    response_model=LedgerEntry,
    status_code=status.HTTP_200_OK,
)
async def get_entry(
    entry_id: str = Path(..., description="ID del lancio"),
    state: AppState = Depends(get_state),
) -> LedgerEntry:
    return state.get_entry(entry_id)


@router.post(
    "/",
    name="lanci_crea",
    summary="Crea lanci",
    description=(
        "Crea un lancio singolo, una serie rateizzata (importo diviso in N rate mensili, "
        "resto sull'ultima) o una serie ricorrente (importo ripetuto per N mesi)."
    ),
    response_model=list[LedgerEntry],
    status_code=status.HTTP_201_CREATED,
)
async def create_entries(
    data: LedgerEntryCreate,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> list[LedgerEntry]:
    """
    Crea uno o più lanci da una sola richiesta.

    Args:
        data: Descrizione, importo totale, tipo, data iniziale e ricorrenza
        dispatcher: Dispatcher dei comandi

    Returns:
        list[LedgerEntry]: Lanci creati (più di uno per le serie)

    Raises:
        BusinessValidationError: Importo troppo basso per il numero di rate
    """
    return dispatcher.dispatch(CommandName.CREATE_LEDGER_ENTRIES, data=data)


@router.patch(
    "/{entry_id}/amount",
    name="lancio_modifica_importo",
    summary="Modifica importo",
    description="Cambia l'importo registrando autore, valori e motivo nello storico.",
    response_model=LedgerEntry,
    status_code=status.HTTP_200_OK,
)
async def amend_amount(
    data: LedgerAmountAmend,
    entry_id: str = Path(..., description="ID del lancio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> LedgerEntry:
    """
    Modifica l'importo di un lancio con traccia di audit.

    Raises:
        NotFoundError: Se il lancio non esiste
    """
    return dispatcher.dispatch(CommandName.AMEND_AMOUNT, entry_id=entry_id, data=data)


@router.patch(
    "/{entry_id}",
    name="lancio_aggiorna",
    summary="Aggiorna lancio",
    description="Aggiorna descrizione, tipo o data di competenza (l'importo ha un endpoint dedicato).",
    response_model=LedgerEntry,
    status_code=status.HTTP_200_OK,
)
async def update_entry(
    data: LedgerEntryUpdate,
    entry_id: str = Path(..., description="ID del lancio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> LedgerEntry:
    return dispatcher.dispatch(CommandName.UPDATE_LEDGER_ENTRY, entry_id=entry_id, data=data)


@router.delete(
    "/{entry_id}",
    name="lancio_elimina",
    summary="Elimina lancio",
    description="Elimina un solo lancio; gli ordini collegati perdono il riferimento.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_entry(
    entry_id: str = Path(..., description="ID del lancio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> None:
    dispatcher.dispatch(CommandName.DELETE_LEDGER_ENTRY, entry_id=entry_id)


@router.delete(
    "/groups/{group_id}",
    name="lanci_elimina_gruppo",
    summary="Elimina serie",
    description="Elimina tutti i lanci di una serie rateizzata o ricorrente.",
    status_code=status.HTTP_200_OK,
)
async def delete_group(
    group_id: str = Path(..., description="ID del gruppo"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> dict[str, int]:
    removed = dispatcher.dispatch(CommandName.DELETE_LEDGER_GROUP, group_id=group_id)
    return {"removed": removed}
