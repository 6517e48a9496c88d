"""
Macchina a stati degli Ordini di Servizio
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Flusso lineare ORCAMENTO → APROVADO → EM_SERVICO → FINALIZADO più lo
stato ortogonale ARQUIVADO, raggiungibile da qualsiasi stato e
reversibile verso lo stato precedente.

Effetti collaterali solo entrando o uscendo da FINALIZADO:
- entrata senza financial_id: con consenso si registra un ricavo (CREDIT)
  pari al totale; senza consenso lo stato cambia comunque
- uscita con financial_id: con consenso il ricavo viene rimosso; senza
  consenso l'intera transizione viene annullata
"""

import logging
from typing import Optional

from pydantic import BaseModel

from oficina.core.decision import DecisionKind, DecisionPort, DecisionRequest
from oficina.core.exceptions import CascadeConfirmationDeclined
from oficina.core.money import MoneyCodec
from oficina.schemas.ledger import LedgerEntry, TransactionType
from oficina.schemas.work_order import LINEAR_FLOW, WorkOrder, WorkOrderStatus
from oficina.services.ledger_service import LedgerService

# Logger per questo modulo
logger = logging.getLogger(__name__)


class TransitionResult(BaseModel):
    """
    Esito di una transizione.

    Attributes:
        order: Ordine dopo la transizione (invariato se changed=False)
        ledger: Registro dopo la transizione
        changed: True se lo stato è cambiato
        posted_entry_id: Lancio creato entrando in FINALIZADO
        removed_entry_id: Lancio rimosso uscendo da FINALIZADO
    """
    order: WorkOrder
    ledger: list[LedgerEntry]
    changed: bool = False
    posted_entry_id: Optional[str] = None
    removed_entry_id: Optional[str] = None


def revenue_description(order: WorkOrder) -> str:
    """Descrizione del ricavo generato da un ordine."""
    if order.client_name:
        return f"OS #{order.os_number} - {order.client_name}"
    return f"OS #{order.os_number}"


class StatusTransitionEngine:
    """
    Motore delle transizioni di stato.

    Trasformazione pura: riceve ordine e registro, restituisce i nuovi
    valori. Le conferme passano dal DecisionPort fornito a ogni chiamata.
    """

    def __init__(self, ledger_service: Optional[LedgerService] = None) -> None:
        self.ledger_service = ledger_service or LedgerService()

    def advance(
        self,
        order: WorkOrder,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        """Un passo avanti nel flusso lineare (no-op su FINALIZADO e ARQUIVADO)."""
        if order.status not in LINEAR_FLOW:
            return TransitionResult(order=order, ledger=ledger)
        idx = LINEAR_FLOW.index(order.status)
        if idx == len(LINEAR_FLOW) - 1:
            return TransitionResult(order=order, ledger=ledger)
        return self.set_status(order, LINEAR_FLOW[idx + 1], ledger, decisions)

    def regress(
        self,
        order: WorkOrder,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        """Un passo indietro nel flusso lineare (no-op su ORCAMENTO e ARQUIVADO)."""
        if order.status not in LINEAR_FLOW:
            return TransitionResult(order=order, ledger=ledger)
        idx = LINEAR_FLOW.index(order.status)
        if idx == 0:
            return TransitionResult(order=order, ledger=ledger)
        return self.set_status(order, LINEAR_FLOW[idx - 1], ledger, decisions)

    def archive(
        self,
        order: WorkOrder,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        """Archivia l'ordine ricordando lo stato di provenienza."""
        return self.set_status(order, WorkOrderStatus.ARQUIVADO, ledger, decisions)

    def restore(
        self,
        order: WorkOrder,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        """
        Riporta un ordine archiviato allo stato precedente.

        Documenti senza archived_from tornano in ORCAMENTO.
        """
        if order.status != WorkOrderStatus.ARQUIVADO:
            return TransitionResult(order=order, ledger=ledger)
        target = order.archived_from or WorkOrderStatus.ORCAMENTO
        return self.set_status(order, target, ledger, decisions)

    def set_status(
        self,
        order: WorkOrder,
        target: WorkOrderStatus,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        """
        Punto di ingresso generale per il cambio di stato.

        Args:
            order: Ordine corrente
            target: Stato desiderato
            ledger: Registro corrente
            decisions: Porta per le conferme dell'utente

        Returns:
            TransitionResult: Nuovo ordine e nuovo registro

        Raises:
            CascadeConfirmationDeclined: Uscita da FINALIZADO rifiutata;
                nessuna modifica applicata
        """
        current = order.status
        if target == current:
            return TransitionResult(order=order, ledger=ledger)

        # Archiviazione e ripristino: solo stato
        if WorkOrderStatus.ARQUIVADO in (current, target):
            archived_from = current if target == WorkOrderStatus.ARQUIVADO else None
            new_order = order.revise(status=target, archived_from=archived_from)
            logger.info("OS #%s: %s -> %s", order.os_number, current.value, target.value)
            return TransitionResult(order=new_order, ledger=ledger, changed=True)

        entering_final = target == WorkOrderStatus.FINALIZADO
        leaving_final = current == WorkOrderStatus.FINALIZADO

        if entering_final:
            return self._finalize(order, ledger, decisions)
        if leaving_final:
            return self._unfinalize(order, target, ledger, decisions)

        new_order = order.revise(status=target)
        logger.info("OS #%s: %s -> %s", order.os_number, current.value, target.value)
        return TransitionResult(order=new_order, ledger=ledger, changed=True)

    # ------------------------------------------------------------
    # Effetti su FINALIZADO
    # ------------------------------------------------------------

    def _finalize(
        self,
        order: WorkOrder,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        finalized = order.revise(status=WorkOrderStatus.FINALIZADO)

        if order.financial_id is not None:
            # Ricavo già presente da una finalizzazione precedente
            logger.info(
                "OS #%s finalizzata, ricavo %s già collegato",
                order.os_number, order.financial_id,
            )
            return TransitionResult(order=finalized, ledger=ledger, changed=True)

        if order.total <= 0:
            logger.info("OS #%s finalizzata con totale zero, nessun ricavo", order.os_number)
            return TransitionResult(order=finalized, ledger=ledger, changed=True)

        decision = decisions.decide(
            DecisionRequest(
                kind=DecisionKind.POST_REVENUE,
                message=(
                    f"Registrare il ricavo di {MoneyCodec.format(order.total)} "
                    f"per la OS #{order.os_number}?"
                ),
                context={"order_id": order.id, "amount": order.total},
            )
        )
        if not decision.proceed:
            logger.info("OS #%s finalizzata senza registrare il ricavo", order.os_number)
            return TransitionResult(order=finalized, ledger=ledger, changed=True)

        entry = self.ledger_service.create_entry(
            revenue_description(order),
            order.total,
            TransactionType.CREDIT,
            order.created_at,
        )
        finalized = finalized.revise(financial_id=entry.id)
        logger.info("OS #%s finalizzata, ricavo %s registrato", order.os_number, entry.id)
        return TransitionResult(
            order=finalized,
            ledger=[*ledger, entry],
            changed=True,
            posted_entry_id=entry.id,
        )

    def _unfinalize(
        self,
        order: WorkOrder,
        target: WorkOrderStatus,
        ledger: list[LedgerEntry],
        decisions: DecisionPort,
    ) -> TransitionResult:
        if order.financial_id is None:
            new_order = order.revise(status=target)
            logger.info("OS #%s: FINALIZADO -> %s", order.os_number, target.value)
            return TransitionResult(order=new_order, ledger=ledger, changed=True)

        decision = decisions.decide(
            DecisionRequest(
                kind=DecisionKind.REMOVE_REVENUE,
                message=(
                    f"La OS #{order.os_number} ha un ricavo registrato. "
                    "Rimuoverlo dal registro finanziario?"
                ),
                context={"order_id": order.id, "entry_id": order.financial_id},
            )
        )
        if not decision.proceed:
            raise CascadeConfirmationDeclined(
                f"Cambio di stato annullato: la OS #{order.os_number} resta finalizzata",
                extra={"order_id": order.id, "status": order.status.value},
            )

        entry_id = order.financial_id
        remaining = [entry for entry in ledger if entry.id != entry_id]
        if len(remaining) == len(ledger):
            logger.warning(
                "OS #%s: lancio collegato %s già assente dal registro",
                order.os_number, entry_id,
            )
        new_order = order.revise(status=target, financial_id=None)
        logger.info(
            "OS #%s: FINALIZADO -> %s, ricavo %s rimosso",
            order.os_number, target.value, entry_id,
        )
        return TransitionResult(
            order=new_order,
            ledger=remaining,
            changed=True,
            removed_entry_id=entry_id,
        )
