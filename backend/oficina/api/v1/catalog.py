"""
Router FastAPI per i cataloghi di Ricambi e Servizi
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Le voci sono identificate dalla descrizione (case-insensitive).
"""

import logging

from fastapi import APIRouter, Depends, Path, status

from oficina.core.deps import get_dispatcher, get_state
from oficina.core.state import AppState
from oficina.schemas.catalog import CatalogItem, CatalogItemUpsert, CatalogKind
from oficina.services.dispatcher import CommandDispatcher, CommandName

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/catalog",
    tags=["Cataloghi"],
)


@router.get(
    "/{kind}",
    name="catalogo_lista",
    summary="Lista voci di catalogo",
    description="Voci del catalogo ricambi (parts) o servizi (services), in ordine alfabetico.",
    response_model=list[CatalogItem],
    status_code=status.HTTP_200_OK,
)
async def get_catalog(
    kind: CatalogKind = Path(..., description="parts o services"),
    state: AppState = Depends(get_state),
) -> list[CatalogItem]:
    return sorted(state.catalog(kind), key=lambda item: item.key)


@router.post(
    "/{kind}",
    name="catalogo_crea",
    summary="Crea voce di catalogo",
    response_model=CatalogItem,
    status_code=status.HTTP_201_CREATED,
)
async def create_catalog_item(
    data: CatalogItemUpsert,
    kind: CatalogKind = Path(..., description="parts o services"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> CatalogItem:
    """
    Aggiunge una voce al catalogo.

    Raises:
        DuplicateError: Se esiste già una voce con la stessa descrizione
    """
    return dispatcher.dispatch(CommandName.CREATE_CATALOG_ITEM, kind=kind, data=data)


@router.put(
    "/{kind}/{description}",
    name="catalogo_aggiorna",
    summary="Aggiorna voce di catalogo",
    description=(
        "Aggiorna descrizione, prezzo e costo. Le voci con la vecchia descrizione "
        "negli ordini vengono aggiornate e i totali ricalcolati."
    ),
    response_model=CatalogItem,
    status_code=status.HTTP_200_OK,
)
async def update_catalog_item(
    data: CatalogItemUpsert,
    kind: CatalogKind = Path(..., description="parts o services"),
    description: str = Path(..., description="Descrizione attuale della voce"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> CatalogItem:
    """
    Aggiorna una voce di catalogo con propagazione agli ordini.

    Raises:
        NotFoundError: Se la voce non esiste
        DuplicateError: Se la nuova descrizione è già usata da un'altra voce
    """
    return dispatcher.dispatch(
        CommandName.UPDATE_CATALOG_ITEM,
        kind=kind,
        description=description,
        data=data,
    )


@router.delete(
    "/{kind}/{description}",
    name="catalogo_elimina",
    summary="Elimina voce di catalogo",
    description="Rimuove la voce dal catalogo; gli ordini esistenti restano invariati.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_catalog_item(
    kind: CatalogKind = Path(..., description="parts o services"),
    description: str = Path(..., description="Descrizione della voce"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> None:
    dispatcher.dispatch(CommandName.DELETE_CATALOG_ITEM, kind=kind, description=description)
