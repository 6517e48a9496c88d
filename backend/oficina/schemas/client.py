"""
Schemas Pydantic per l'anagrafica Clienti
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

import datetime
from typing import Optional

from pydantic import Field, field_validator

from oficina.schemas.base import CamelInput, CamelModel, new_id


class ClientVehicle(CamelModel):
    """Veicolo associato a un cliente (coppia modello/targa)."""
    model: str = ""
    plate: str = ""

    @property
    def label(self) -> str:
        return f"{self.model} - {self.plate}"


class Client(CamelModel):
    """
    Cliente dell'officina.

    Il nome è la chiave di corrispondenza (case-insensitive) con gli ordini.
    """
    id: str = Field(default_factory=new_id)
    name: str
    phone: str = ""
    notes: str = ""
    vehicles: list[ClientVehicle] = Field(default_factory=list)
    last_visit: Optional[datetime.datetime] = None

    @property
    def key(self) -> str:
        return self.name.lower()


class ClientVehicleInput(CamelInput):
    model: str = Field(default="", max_length=200)
    plate: str = Field(default="", max_length=20)

    @field_validator("model")
    @classmethod
    def strip_model(cls, v: str) -> str:
        return v.strip()

    @field_validator("plate")
    @classmethod
    def normalize_plate(cls, v: str) -> str:
        return v.strip().upper()


class ClientUpdate(CamelInput):
    """
    Modifica completa dell'anagrafica cliente.

    I veicoli sono posizionali: l'i-esimo veicolo sostituisce l'i-esimo
    veicolo esistente (usato per propagare i cambi di modello/targa).
    """
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(default="", max_length=50)
    notes: str = Field(default="", max_length=5000)
    vehicles: list[ClientVehicleInput] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il nome del cliente è obbligatorio")
        return v
