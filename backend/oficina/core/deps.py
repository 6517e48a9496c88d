"""
Dependency Injection per FastAPI
Progetto: Oficina OS (Gestionale Ordini di Servizio)

I servizi vivono in app.state.workshop, creato nel lifespan.
"""

from typing import Optional

from fastapi import Depends, Request

from oficina.core.decision import DecisionKind, PresetDecisions
from oficina.core.state import AppState
from oficina.services.dispatcher import CommandDispatcher
from oficina.services.export_service import ExportService
from oficina.services.persistence_service import PersistenceCoordinator
from oficina.services.sync_service import SyncService
from oficina.services.workshop import Workshop


def get_workshop(request: Request) -> Workshop:
    """Contenitore dei servizi dell'applicazione."""
    return request.app.state.workshop


def get_state(workshop: Workshop = Depends(get_workshop)) -> AppState:
    return workshop.state


def get_dispatcher(workshop: Workshop = Depends(get_workshop)) -> CommandDispatcher:
    return workshop.dispatcher


def get_persistence(workshop: Workshop = Depends(get_workshop)) -> PersistenceCoordinator:
    return workshop.persistence


def get_sync_service(workshop: Workshop = Depends(get_workshop)) -> SyncService:
    return workshop.sync


def get_export_service(workshop: Workshop = Depends(get_workshop)) -> ExportService:
    return workshop.exports


def decisions_for(
    confirm: Optional[bool] = None,
    allow_duplicate: bool = False,
) -> PresetDecisions:
    """
    Converte i flag della richiesta in risposte per il DecisionPort.

    Args:
        confirm: Risposta alle conferme su ricavi e lanci collegati
        allow_duplicate: Accetta un numero OS già in uso
    """
    answer = bool(confirm)
    return PresetDecisions(
        {
            DecisionKind.POST_REVENUE: answer,
            DecisionKind.REMOVE_REVENUE: answer,
            DecisionKind.REMOVE_LINKED_ENTRY: answer,
            DecisionKind.DUPLICATE_NUMBER: allow_duplicate,
        }
    )
