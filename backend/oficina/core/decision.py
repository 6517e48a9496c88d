"""
Porta delle decisioni utente
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Le regole di business che richiedono una conferma (registrare un ricavo,
rimuoverlo, accettare un numero OS duplicato) chiedono a un DecisionPort
invece di aprire dialoghi. Via API le risposte arrivano come flag
espliciti della richiesta (confirm, allowDuplicate).
"""

import logging
from enum import Enum
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class DecisionKind(str, Enum):
    """Tipi di conferma richiesti dai motori."""
    POST_REVENUE = "POST_REVENUE"
    REMOVE_REVENUE = "REMOVE_REVENUE"
    DUPLICATE_NUMBER = "DUPLICATE_NUMBER"
    REMOVE_LINKED_ENTRY = "REMOVE_LINKED_ENTRY"


class DecisionRequest(BaseModel):
    """Domanda posta all'utente."""
    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class Decision(BaseModel):
    """Risposta dell'utente."""
    model_config = ConfigDict(frozen=True)

    proceed: bool


class DecisionPort(Protocol):
    def decide(self, request: DecisionRequest) -> Decision:
        ...


class NeverProceed:
    """Rifiuta sempre."""

    def decide(self, request: DecisionRequest) -> Decision:
        return Decision(proceed=False)


class PresetDecisions:
    """
    Risposte predeterminate per tipo di domanda.

    Usata dagli endpoint: il client HTTP invia la risposta insieme alla
    richiesta. Le domande senza risposta usano `default`.
    Le domande poste sono registrate in `asked`.

    Args:
        answers: Risposta per tipo di domanda
        default: Risposta per i tipi non presenti in answers
    """

    def __init__(
        self,
        answers: Optional[dict[DecisionKind, bool]] = None,
        default: bool = False,
    ) -> None:
        self.answers = dict(answers or {})
        self.default = default
        self.asked: list[DecisionRequest] = []

    def decide(self, request: DecisionRequest) -> Decision:
        self.asked.append(request)
        proceed = self.answers.get(request.kind, self.default)
        logger.debug("Decisione %s: %s", request.kind.value, "procedi" if proceed else "annulla")
        return Decision(proceed=proceed)

    @classmethod
    def from_flag(cls, confirm: Optional[bool]) -> "PresetDecisions":
        """Una sola risposta per tutte le domande della richiesta."""
        return cls(default=bool(confirm))
