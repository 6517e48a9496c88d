"""
Schemas Pydantic per i cataloghi di Ricambi e Servizi
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from oficina.schemas.base import CamelInput, CamelModel, coerce_cents


class CatalogKind(str, Enum):
    """Catalogo di destinazione."""
    PARTS = "parts"
    SERVICES = "services"


class CatalogItem(CamelModel):
    """
    Voce di catalogo, deduplicata per descrizione (case-insensitive).

    Attributes:
        id: Identificativo opzionale (assente nei documenti più vecchi)
        description: Descrizione
        price: Prezzo suggerito in centavos
        cost: Costo d'acquisto in centavos
    """
    id: Optional[str] = None
    description: str
    price: int = Field(default=0, ge=0)
    cost: Optional[int] = Field(default=None, ge=0)

    @property
    def key(self) -> str:
        return self.description.lower()


class CatalogItemUpsert(CamelInput):
    """Schema per creazione/modifica esplicita di una voce di catalogo."""
    description: str = Field(..., min_length=1, max_length=500)
    price: int = Field(default=0, ge=0)
    cost: Optional[int] = Field(default=None, ge=0)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("La descrizione è obbligatoria")
        return v

    @field_validator("price", "cost", mode="before")
    @classmethod
    def parse_money(cls, v):
        return coerce_cents(v)
