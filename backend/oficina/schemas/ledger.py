"""
Schemas Pydantic per il Registro Finanziario (Livro Caixa)
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Un lancio ha sempre importo positivo: il segno è dato dal tipo.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from oficina.schemas.base import CamelInput, CamelModel, coerce_cents, new_id


class TransactionType(str, Enum):
    """Tipo di movimento."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class RecurrenceMode(str, Enum):
    """
    Modalità di generazione dei lanci.

    - SINGLE: un solo lancio per l'intero importo
    - INSTALLMENT: importo diviso in N rate mensili
    - RECURRING: importo intero ripetuto per N mesi
    """
    SINGLE = "SINGLE"
    INSTALLMENT = "INSTALLMENT"
    RECURRING = "RECURRING"


class HistoryLine(CamelModel):
    """Riga del log di audit (solo append)."""
    timestamp: datetime.datetime
    note: str


class LedgerEntry(CamelModel):
    """
    Movimento finanziario.

    Attributes:
        id: Identificativo
        description: Descrizione
        amount: Importo in centavos, sempre > 0
        type: CREDIT o DEBIT
        effective_date: Data di competenza
        created_at: Data di registrazione
        history: Log di audit
        group_id: Collega rate/ricorrenze generate da una stessa azione
    """
    id: str = Field(default_factory=new_id)
    description: str
    amount: int = Field(..., gt=0)
    type: TransactionType
    effective_date: datetime.datetime
    created_at: Optional[datetime.datetime] = None
    history: list[HistoryLine] = Field(default_factory=list)
    group_id: Optional[str] = None

    @property
    def signed_amount(self) -> int:
        """Importo con segno (negativo per DEBIT)."""
        return self.amount if self.type == TransactionType.CREDIT else -self.amount

    @property
    def audited(self) -> bool:
        """True se l'importo è stato modificato dopo la creazione."""
        return len(self.history) > 1


# -------------------------------------------------------------------
# Schemas di input
# -------------------------------------------------------------------

class _AmountInput(CamelInput):
    @field_validator("amount", "new_amount", mode="before", check_fields=False)
    @classmethod
    def parse_money(cls, v):
        return coerce_cents(v)


class LedgerEntryCreate(_AmountInput):
    """
    Schema per la creazione di lanci (singolo, rateizzato o ricorrente).

    Attributes:
        amount: Importo totale in centavos (o stringa in reais)
        recurrence: Modalità di generazione
        count: Numero di rate/ripetizioni (ignorato per SINGLE)
    """
    description: str = Field(..., min_length=1, max_length=500)
    amount: int = Field(..., gt=0)
    type: TransactionType
    effective_date: datetime.datetime
    recurrence: RecurrenceMode = RecurrenceMode.SINGLE
    count: int = Field(default=1, ge=1, le=120)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("La descrizione è obbligatoria")
        return v


class LedgerAmountAmend(_AmountInput):
    """Schema per la modifica dell'importo con traccia di audit."""
    new_amount: int = Field(..., gt=0)
    actor: str = Field(default="Admin", min_length=1, max_length=100)
    reason: str = Field(..., min_length=1, max_length=500)


class LedgerEntryUpdate(CamelInput):
    """Modifica dei campi non monetari. Solo i campi presenti vengono aggiornati."""
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    type: Optional[TransactionType] = None
    effective_date: Optional[datetime.datetime] = None
    actor: str = Field(default="Admin", min_length=1, max_length=100)


class LedgerSummary(CamelModel):
    """
    Riepilogo di un periodo di competenza.

    Attributes:
        period: "YYYY-MM" o "YYYY"
        revenue: Somma dei CREDIT
        expenses: Somma dei DEBIT
        balance: revenue - expenses
        entries: Numero di lanci considerati
    """
    period: str
    revenue: int
    expenses: int
    balance: int
    entries: int
