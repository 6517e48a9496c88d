"""
Schemas Pydantic per gli Ordini di Servizio (OS)
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Definisce i record persistiti e gli schemi di validazione per l'API.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from oficina.schemas.base import CamelInput, CamelModel, coerce_cents, new_id


# -------------------------------------------------------------------
# Enum per gli stati dell'ordine di servizio
# -------------------------------------------------------------------

class WorkOrderStatus(str, Enum):
    """Enum che definisce i possibili stati di un ordine di servizio."""
    ORCAMENTO = "ORCAMENTO"
    APROVADO = "APROVADO"
    EM_SERVICO = "EM_SERVICO"
    FINALIZADO = "FINALIZADO"
    ARQUIVADO = "ARQUIVADO"


# Flusso lineare; ARQUIVADO è ortogonale e non ne fa parte.
LINEAR_FLOW: list[WorkOrderStatus] = [
    WorkOrderStatus.ORCAMENTO,
    WorkOrderStatus.APROVADO,
    WorkOrderStatus.EM_SERVICO,
    WorkOrderStatus.FINALIZADO,
]


def compose_vehicle(model: str, plate: str) -> str:
    """Stringa veicolo denormalizzata: "modello - targa"."""
    return f"{model} - {plate}"


# -------------------------------------------------------------------
# Record persistiti
# -------------------------------------------------------------------

class OrderItem(CamelModel):
    """
    Voce (ricambio o servizio) di un ordine.

    Attributes:
        id: Identificativo della voce
        description: Descrizione (coincide per testo con il catalogo)
        price: Prezzo di vendita in centavos
        cost: Costo d'acquisto in centavos (opzionale)
    """
    id: str = Field(default_factory=new_id)
    description: str
    price: int = Field(default=0, ge=0)
    cost: Optional[int] = Field(default=None, ge=0)


class TireCheck(CamelModel):
    fl: bool = True
    fr: bool = True
    bl: bool = True
    br: bool = True


class Checklist(CamelModel):
    """Checklist di ingresso del veicolo."""
    fuel_level: int = Field(default=0, ge=0, le=100)
    tires: TireCheck = Field(default_factory=TireCheck)
    notes: str = ""


class WorkOrder(CamelModel):
    """
    Ordine di servizio.

    Il totale è sempre derivato da parts + services e viene ricalcolato
    a ogni validazione: un valore di `total` in ingresso è ignorato.

    Attributes:
        id: Identificativo
        os_number: Numero progressivo visibile all'utente
        status: Stato corrente
        client_name: Copia denormalizzata del nome cliente
        client_phone: Copia denormalizzata del telefono
        vehicle: Stringa "modello - targa"
        mileage: Chilometraggio
        parts: Ricambi
        services: Servizi
        total: Totale derivato in centavos
        created_at: Data di competenza
        financial_id: Riferimento debole al lancio nel registro finanziario
        checklist: Checklist di ingresso
        archived_from: Stato da ripristinare uscendo da ARQUIVADO
    """
    id: str = Field(default_factory=new_id)
    os_number: int = Field(..., ge=0)
    status: WorkOrderStatus = WorkOrderStatus.ORCAMENTO
    client_name: str = ""
    client_phone: str = ""
    client_notes: Optional[str] = None
    vehicle: str = ""
    mileage: int = Field(default=0, ge=0)
    parts: list[OrderItem] = Field(default_factory=list)
    services: list[OrderItem] = Field(default_factory=list)
    total: int = 0
    created_at: datetime.datetime
    financial_id: Optional[str] = None
    checklist: Optional[Checklist] = None
    archived_from: Optional[WorkOrderStatus] = None
    public_notes: Optional[str] = None

    @model_validator(mode="after")
    def compute_total(self) -> "WorkOrder":
        """Ricalcola il totale dalle voci."""
        self.total = compute_total(self.parts, self.services)
        return self


def compute_total(parts: list[OrderItem], services: list[OrderItem]) -> int:
    """Somma dei prezzi di ricambi e servizi (centavos)."""
    return sum(item.price for item in parts) + sum(item.price for item in services)


# -------------------------------------------------------------------
# Schemas di input
# -------------------------------------------------------------------

class OrderItemInput(CamelInput):
    """Voce inserita dal form dell'ordine (prezzi in centavos o "150,00")."""
    id: Optional[str] = None
    description: str = Field(..., min_length=1, max_length=500)
    price: int = Field(default=0, ge=0)
    cost: Optional[int] = Field(default=None, ge=0)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("La descrizione della voce è obbligatoria")
        return v

    @field_validator("price", "cost", mode="before")
    @classmethod
    def parse_money(cls, v):
        return coerce_cents(v)


class WorkOrderBase(CamelInput):
    """
    Campi comuni a creazione e aggiornamento.

    Attributes:
        client_name: Nome del cliente
        client_phone: Telefono
        client_notes: Note sul cliente (apprese nell'anagrafica)
        vehicle_model: Modello del veicolo
        vehicle_plate: Targa
        mileage: Chilometraggio
        created_at: Data di competenza (default: adesso)
    """
    client_name: str = Field(..., min_length=1, max_length=200)
    client_phone: str = Field(default="", max_length=50)
    client_notes: str = Field(default="", max_length=5000)
    vehicle_model: str = Field(default="", max_length=200)
    vehicle_plate: str = Field(default="", max_length=20)
    mileage: int = Field(default=0, ge=0)
    parts: list[OrderItemInput] = Field(default_factory=list)
    services: list[OrderItemInput] = Field(default_factory=list)
    created_at: Optional[datetime.datetime] = None
    public_notes: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("client_name")
    @classmethod
    def validate_client_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il nome del cliente è obbligatorio")
        return v

    @field_validator("vehicle_plate")
    @classmethod
    def normalize_plate(cls, v: str) -> str:
        return v.strip().upper()


class WorkOrderCreate(WorkOrderBase):
    """
    Schema per la creazione di un ordine di servizio.

    Se os_number è assente viene assegnato il successivo disponibile.
    Un numero già usato richiede allow_duplicate=True.
    """
    os_number: Optional[int] = Field(default=None, ge=0)
    allow_duplicate: bool = False


class WorkOrderUpdate(WorkOrderBase):
    """
    Schema per l'aggiornamento dei dati di un ordine.

    Lo status NON può essere cambiato tramite questo schema.
    """
    os_number: int = Field(..., ge=0)
    allow_duplicate: bool = False


class WorkOrderStatusUpdate(CamelInput):
    """
    Schema per il cambio di stato.

    Attributes:
        status: Nuovo stato desiderato
        confirm: Risposta alla richiesta di conferma (registrazione o
            rimozione del ricavo). None equivale a "non confermato".
    """
    status: WorkOrderStatus
    confirm: Optional[bool] = None


class WorkOrderList(CamelModel):
    """Risposta paginata degli ordini."""
    items: list[WorkOrder]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "WorkOrderList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self


class WorkOrderTransition(CamelModel):
    """
    Esito di un cambio di stato restituito dall'API.

    Attributes:
        order: Ordine dopo la transizione
        changed: False se lo stato era già quello richiesto
        posted_entry_id: Ricavo registrato entrando in FINALIZADO
        removed_entry_id: Ricavo rimosso uscendo da FINALIZADO
    """
    order: WorkOrder
    changed: bool
    posted_entry_id: Optional[str] = None
    removed_entry_id: Optional[str] = None


class WorkOrderDeleted(CamelModel):
    """Esito dell'eliminazione di un ordine."""
    id: str
    removed_entry_id: Optional[str] = None
