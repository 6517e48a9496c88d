"""
Schemas Pydantic per la sincronizzazione con il mirror remoto
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from oficina.schemas.base import CamelModel


class SyncDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class SyncOutcome(str, Enum):
    """Esito complessivo di un'operazione multi-collezione."""
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


class CollectionSyncResult(CamelModel):
    """
    Esito della sincronizzazione di una singola collezione.

    Attributes:
        collection: Nome della collezione (chiave del documento)
        direction: up (locale → remoto) o down (remoto → locale)
        success: True se completata
        records: Numero di record trasferiti
        error: Messaggio di errore (se fallita)
    """
    collection: str
    direction: SyncDirection
    success: bool
    records: int = 0
    error: Optional[str] = None


class SyncReport(CamelModel):
    """
    Rapporto di una sincronizzazione multi-collezione.

    Un successo parziale viene riportato come tale, mai come
    tutto-o-niente.
    """
    direction: SyncDirection
    results: list[CollectionSyncResult] = Field(default_factory=list)
    outcome: SyncOutcome = SyncOutcome.SUCCESS
    finished_at: Optional[datetime.datetime] = None

    @model_validator(mode="after")
    def compute_outcome(self) -> "SyncReport":
        """Deriva l'esito complessivo dai risultati per collezione."""
        failed = [r for r in self.results if not r.success]
        if not failed:
            self.outcome = SyncOutcome.SUCCESS
        elif len(failed) == len(self.results):
            self.outcome = SyncOutcome.ERROR
        else:
            self.outcome = SyncOutcome.PARTIAL
        return self

    @property
    def errors(self) -> list[str]:
        return [f"{r.collection}: {r.error}" for r in self.results if not r.success]


class FetchProgress(CamelModel):
    """Avanzamento di una lettura paginata."""
    collection: str
    fetched: int
    estimated_total: int


class SyncAvailability(CamelModel):
    """Stato del backend remoto."""
    configured: bool
    available: bool
    detail: str = ""
