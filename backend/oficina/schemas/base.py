"""
Schema base per i record del documento
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Il documento JSON persistito usa chiavi camelCase; i modelli Python
usano snake_case. Gli importi monetari sono sempre interi (centavos).
"""

import uuid
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from oficina.core.money import MoneyCodec


def new_id() -> str:
    """Genera un identificativo stringa (UUID4)."""
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    """
    Base per tutti i record persistiti nel documento.

    - alias camelCase in (de)serializzazione
    - campi sconosciuti conservati (documenti di versioni precedenti)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def revise(self, **changes: Any):
        """
        Restituisce una copia validata con i campi modificati.

        A differenza di model_copy(update=...) riesegue i validatori,
        quindi i campi derivati (es. total) vengono ricalcolati.
        """
        return type(self).model_validate({**self.model_dump(), **changes})

    def to_document(self) -> dict[str, Any]:
        """Serializzazione JSON con alias camelCase e senza campi nulli."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class CamelInput(BaseModel):
    """Base per gli schemi di input dell'API (non persistiti)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def coerce_cents(value: Any) -> Any:
    """
    Normalizza un importo in ingresso verso i centavos.

    - int: già in centavos
    - str/Decimal: valore in reais digitato dall'utente ("150,00")
    - float: rifiutato, un importo in float è ambiguo
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValueError("Gli importi devono essere interi in centavos o stringhe in reais")
    if isinstance(value, (str, Decimal)):
        return MoneyCodec.from_decimal(value)
    return value
