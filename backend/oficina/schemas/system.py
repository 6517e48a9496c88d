"""
Schemas Pydantic per lo stato del sistema e le operazioni sui file
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from oficina.schemas.base import CamelInput, CamelModel


class PersistencePhase(str, Enum):
    """Fasi del coordinatore di persistenza."""
    LOADING = "LOADING"
    IDLE = "IDLE"
    SAVE_PENDING = "SAVE_PENDING"
    SAVING = "SAVING"


class PersistenceStatus(CamelModel):
    """
    Fotografia dello stato di persistenza.

    Attributes:
        phase: Fase corrente
        message: Messaggio di stato per l'utente
        data_file: Documento in uso
        dirty: True se esistono modifiche non ancora scritte
        last_saved_at: Ultimo salvataggio riuscito
        last_error: Ultimo errore di storage
    """
    phase: PersistencePhase
    message: str
    data_file: str
    dirty: bool
    last_saved_at: Optional[datetime.datetime] = None
    last_error: Optional[str] = None


class ExportResult(CamelModel):
    """Esito di una esportazione o di un backup su file."""
    success: bool
    message: str
    path: Optional[str] = None


class LocationChange(CamelInput):
    """Cambio del documento dati in uso."""
    data_file: str = Field(..., min_length=1)

    @field_validator("data_file")
    @classmethod
    def strip_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il percorso del documento è obbligatorio")
        return v
