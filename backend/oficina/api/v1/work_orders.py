"""
Router FastAPI per gli Ordini di Servizio
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Definisce gli endpoint API per gli ordini: CRUD, cambi di stato,
archiviazione e checklist di ingresso.

Le conferme richieste dalla macchina a stati (registrazione o rimozione
del ricavo, eliminazione del lancio collegato) arrivano come parametro
`confirm`; in sua assenza la risposta è "no".
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from oficina.core.deps import decisions_for, get_dispatcher, get_state
from oficina.core.state import AppState
from oficina.schemas.work_order import (
    Checklist,
    WorkOrder,
    WorkOrderCreate,
    WorkOrderDeleted,
    WorkOrderList,
    WorkOrderStatus,
    WorkOrderStatusUpdate,
    WorkOrderTransition,
    WorkOrderUpdate,
)
from oficina.services.dispatcher import CommandDispatcher, CommandName
from oficina.services.status_engine import TransitionResult
from oficina.services.work_order_service import WorkOrderService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Istanza del service
work_order_service = WorkOrderService()

# Router con prefix e tag
router = APIRouter(
    prefix="/work-orders",
    tags=["Ordini di Servizio"],
)


def _transition(result: TransitionResult) -> WorkOrderTransition:
    return WorkOrderTransition(
        order=result.order,
        changed=result.changed,
        posted_entry_id=result.posted_entry_id,
        removed_entry_id=result.removed_entry_id,
    )


# -------------------------------------------------------------------
# Endpoints per Ordini di Servizio
# -------------------------------------------------------------------

@router.get(
    "/",
    name="ordini_lista",
    summary="Lista ordini di servizio",
    description="Recupera la lista paginata degli ordini con filtro per stato e ricerca testuale.",
    response_model=WorkOrderList,
    status_code=status.HTTP_200_OK,
)
async def get_work_orders(
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    status_filter: Optional[WorkOrderStatus] = Query(
        None,
        description="Filtro per stato dell'ordine",
    ),
    search: Optional[str] = Query(None, description="Ricerca su numero OS, cliente e veicolo"),
    include_archived: bool = Query(True, description="Includi gli ordini archiviati"),
    state: AppState = Depends(get_state),
) -> WorkOrderList:
    """
    Recupera la lista paginata degli ordini di servizio.

    Args:
        page: Numero pagina (default 1)
        per_page: Elementi per pagina (default 20, max 100)
        status_filter: Filtro opzionale per stato
        search: Termine di ricerca
        include_archived: Se False esclude ARQUIVADO (ignorato con status_filter)
        state: Stato applicativo

    Returns:
        WorkOrderList: Lista paginata con metadati
    """
    orders = work_order_service.filter(
        state.work_orders,
        status_filter=status_filter,
        search=search,
        include_archived=include_archived,
    )
    start = (page - 1) * per_page

    return WorkOrderList(
        items=orders[start:start + per_page],
        total=len(orders),
        page=page,
        per_page=per_page,
    )


@router.get(
    "/next-number",
    name="ordine_prossimo_numero",
    summary="Prossimo numero OS",
    description="Restituisce il numero OS che verrebbe assegnato al prossimo ordine.",
    status_code=status.HTTP_200_OK,
)
async def get_next_number(state: AppState = Depends(get_state)) -> dict[str, int]:
    return {"osNumber": work_order_service.next_number(state.work_orders)}


@router.get(
    "/{order_id}",
    name="ordine_dettaglio",
    summary="Dettaglio ordine di servizio",
    description="Recupera i dettagli di un ordine di servizio specifico.",
    response_model=WorkOrder,
    status_code=status.HTTP_200_OK,
)
async def get_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    state: AppState = Depends(get_state),
) -> WorkOrder:
    """
    Recupera i dettagli di un ordine di servizio.

    Raises:
        NotFoundError: Se l'ordine non esiste
    """
    return state.get_order(order_id)


@router.post(
    "/",
    name="ordine_crea",
    summary="Crea ordine di servizio",
    description=(
        "Crea un nuovo ordine in ORCAMENTO. Cliente, veicolo e voci vengono "
        "appresi nell'anagrafica e nei cataloghi."
    ),
    response_model=WorkOrder,
    status_code=status.HTTP_201_CREATED,
)
async def create_work_order(
    data: WorkOrderCreate,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrder:
    """
    Crea un nuovo ordine di servizio.

    Args:
        data: Dati dell'ordine
        dispatcher: Dispatcher dei comandi

    Returns:
        WorkOrder: Ordine creato

    Raises:
        DuplicateError: Numero OS già usato senza allow_duplicate
    """
    return dispatcher.dispatch(
        CommandName.CREATE_WORK_ORDER,
        decisions=decisions_for(allow_duplicate=data.allow_duplicate),
        data=data,
    )


@router.put(
    "/{order_id}",
    name="ordine_aggiorna",
    summary="Aggiorna ordine di servizio",
    description="Aggiorna i dati dell'ordine. Lo stato non cambia; il totale viene ricalcolato.",
    response_model=WorkOrder,
    status_code=status.HTTP_200_OK,
)
async def update_work_order(
    data: WorkOrderUpdate,
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrder:
    """
    Aggiorna un ordine di servizio.

    Raises:
        NotFoundError: Se l'ordine non esiste
        DuplicateError: Nuovo numero OS già usato senza allow_duplicate
    """
    return dispatcher.dispatch(
        CommandName.UPDATE_WORK_ORDER,
        decisions=decisions_for(allow_duplicate=data.allow_duplicate),
        order_id=order_id,
        data=data,
    )


@router.delete(
    "/{order_id}",
    name="ordine_elimina",
    summary="Elimina ordine di servizio",
    description=(
        "Elimina l'ordine. Con confirm=true elimina anche il ricavo collegato, "
        "altrimenti il lancio resta nel registro."
    ),
    response_model=WorkOrderDeleted,
    status_code=status.HTTP_200_OK,
)
async def delete_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    confirm: Optional[bool] = Query(None, description="Elimina anche il lancio collegato"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderDeleted:
    removed = dispatcher.dispatch(
        CommandName.DELETE_WORK_ORDER,
        decisions=decisions_for(confirm),
        order_id=order_id,
    )
    return WorkOrderDeleted(id=order_id, removed_entry_id=removed)


# -------------------------------------------------------------------
# Cambi di stato
# -------------------------------------------------------------------

@router.patch(
    "/{order_id}/status",
    name="ordine_cambia_stato",
    summary="Cambia stato ordine",
    description=(
        "Porta l'ordine allo stato richiesto. Entrando in FINALIZADO con confirm=true "
        "registra il ricavo; uscendone senza conferma la transizione viene annullata (409)."
    ),
    response_model=WorkOrderTransition,
    status_code=status.HTTP_200_OK,
)
async def update_work_order_status(
    data: WorkOrderStatusUpdate,
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderTransition:
    """
    Cambia lo stato di un ordine.

    Args:
        data: Stato desiderato e risposta alla conferma
        order_id: ID dell'ordine
        dispatcher: Dispatcher dei comandi

    Returns:
        WorkOrderTransition: Ordine aggiornato e lanci coinvolti

    Raises:
        NotFoundError: Se l'ordine non esiste
        CascadeConfirmationDeclined: Uscita da FINALIZADO senza conferma
    """
    result = dispatcher.dispatch(
        CommandName.SET_STATUS,
        decisions=decisions_for(data.confirm),
        order_id=order_id,
        status=data.status,
    )
    return _transition(result)


@router.post(
    "/{order_id}/advance",
    name="ordine_avanza",
    summary="Avanza di uno stato",
    description="Porta l'ordine allo stato successivo del flusso lineare (FINALIZADO resta tale).",
    response_model=WorkOrderTransition,
    status_code=status.HTTP_200_OK,
)
async def advance_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    confirm: Optional[bool] = Query(None, description="Registra il ricavo entrando in FINALIZADO"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderTransition:
    result = dispatcher.dispatch(
        CommandName.ADVANCE_STATUS,
        decisions=decisions_for(confirm),
        order_id=order_id,
    )
    return _transition(result)


@router.post(
    "/{order_id}/regress",
    name="ordine_regredisce",
    summary="Torna allo stato precedente",
    description="Porta l'ordine allo stato precedente del flusso lineare (ORCAMENTO resta tale).",
    response_model=WorkOrderTransition,
    status_code=status.HTTP_200_OK,
)
async def regress_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    confirm: Optional[bool] = Query(None, description="Rimuovi il ricavo uscendo da FINALIZADO"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderTransition:
    result = dispatcher.dispatch(
        CommandName.REGRESS_STATUS,
        decisions=decisions_for(confirm),
        order_id=order_id,
    )
    return _transition(result)


@router.post(
    "/{order_id}/archive",
    name="ordine_archivia",
    summary="Archivia ordine",
    description=(
        "Porta l'ordine in ARQUIVADO ricordando lo stato di provenienza. "
        "Il ricavo eventualmente registrato resta nel registro."
    ),
    response_model=WorkOrderTransition,
    status_code=status.HTTP_200_OK,
)
async def archive_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderTransition:
    result = dispatcher.dispatch(
        CommandName.ARCHIVE_WORK_ORDER,
        order_id=order_id,
    )
    return _transition(result)


@router.post(
    "/{order_id}/restore",
    name="ordine_ripristina",
    summary="Ripristina ordine archiviato",
    description="Riporta l'ordine allo stato precedente l'archiviazione (default ORCAMENTO).",
    response_model=WorkOrderTransition,
    status_code=status.HTTP_200_OK,
)
async def restore_work_order(
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrderTransition:
    result = dispatcher.dispatch(
        CommandName.RESTORE_WORK_ORDER,
        order_id=order_id,
    )
    return _transition(result)


# -------------------------------------------------------------------
# Checklist
# -------------------------------------------------------------------

@router.put(
    "/{order_id}/checklist",
    name="ordine_checklist",
    summary="Aggiorna checklist di ingresso",
    description="Sostituisce la checklist (carburante, pneumatici, note) dell'ordine.",
    response_model=WorkOrder,
    status_code=status.HTTP_200_OK,
)
async def update_checklist(
    checklist: Checklist,
    order_id: str = Path(..., description="ID dell'ordine di servizio"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> WorkOrder:
    return dispatcher.dispatch(
        CommandName.UPDATE_CHECKLIST,
        order_id=order_id,
        checklist=checklist,
    )
