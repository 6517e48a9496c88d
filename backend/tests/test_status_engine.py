"""
Unit tests per StatusTransitionEngine.

Il motore è una trasformazione pura: riceve ordine e registro e
restituisce i nuovi valori; le conferme arrivano da PresetDecisions.
"""

import pytest

from oficina.core.decision import DecisionKind, PresetDecisions
from oficina.core.exceptions import CascadeConfirmationDeclined
from oficina.schemas.ledger import TransactionType
from oficina.schemas.work_order import WorkOrderStatus


# ============================================================
# Flusso lineare
# ============================================================


class TestLinearFlow:
    """Tests per advance/regress e idempotenza."""

    def test_advance_one_step(self, engine, sample_order, decline_all):
        result = engine.advance(sample_order, [], decline_all)
        assert result.changed is True
        assert result.order.status == WorkOrderStatus.APROVADO

    def test_advance_at_end_is_noop(self, engine, make_order, decline_all):
        order = make_order(status=WorkOrderStatus.FINALIZADO)
        result = engine.advance(order, [], decline_all)
        assert result.changed is False
        assert result.order == order

    def test_regress_at_start_is_noop(self, engine, sample_order, decline_all):
        result = engine.regress(sample_order, [], decline_all)
        assert result.changed is False

    def test_same_status_is_idempotent(self, engine, make_order, make_entry, accept_all):
        """Test setStatus con lo stato corrente non produce effetti."""
        entry = make_entry()
        order = make_order(status=WorkOrderStatus.FINALIZADO, financial_id=entry.id)
        ledger = [entry]

        result = engine.set_status(order, WorkOrderStatus.FINALIZADO, ledger, accept_all)

        assert result.changed is False
        assert result.order == order
        assert result.ledger == ledger
        assert accept_all.asked == []

    def test_non_final_transition_asks_nothing(self, engine, sample_order, accept_all):
        result = engine.set_status(sample_order, WorkOrderStatus.EM_SERVICO, [], accept_all)
        assert result.order.status == WorkOrderStatus.EM_SERVICO
        assert result.ledger == []
        assert accept_all.asked == []


# ============================================================
# Entrata e uscita da FINALIZADO
# ============================================================


class TestFinalize:
    """Tests per la registrazione e rimozione del ricavo."""

    def test_full_cycle_scenario(self, engine, sample_order, accept_all):
        """Test ordine da 150,00 fino a FINALIZADO e ritorno a EM_SERVICO."""
        order, ledger = sample_order, []
        assert order.total == 15000

        for _ in range(3):
            result = engine.advance(order, ledger, accept_all)
            order, ledger = result.order, result.ledger

        assert order.status == WorkOrderStatus.FINALIZADO
        assert len(ledger) == 1
        entry = ledger[0]
        assert entry.type == TransactionType.CREDIT
        assert entry.amount == 15000
        assert entry.effective_date == sample_order.created_at
        assert entry.description == "OS #1 - João Silva"
        assert order.financial_id == entry.id

        result = engine.regress(order, ledger, accept_all)

        assert result.order.status == WorkOrderStatus.EM_SERVICO
        assert result.ledger == []
        assert result.order.financial_id is None
        assert result.removed_entry_id == entry.id

    def test_finalize_declined_still_changes_status(self, engine, sample_order, decline_all):
        order = sample_order.revise(status=WorkOrderStatus.EM_SERVICO)
        result = engine.advance(order, [], decline_all)
        assert result.order.status == WorkOrderStatus.FINALIZADO
        assert result.ledger == []
        assert result.order.financial_id is None
        assert [q.kind for q in decline_all.asked] == [DecisionKind.POST_REVENUE]

    def test_refinalize_trusts_existing_entry(self, engine, make_order, make_entry, accept_all):
        entry = make_entry(type=TransactionType.CREDIT)
        order = make_order(status=WorkOrderStatus.EM_SERVICO, financial_id=entry.id)
        result = engine.set_status(order, WorkOrderStatus.FINALIZADO, [entry], accept_all)
        assert result.ledger == [entry]
        assert result.posted_entry_id is None
        assert accept_all.asked == []

    def test_zero_total_posts_nothing(self, engine, make_order, accept_all):
        order = make_order(status=WorkOrderStatus.EM_SERVICO)
        assert order.total == 0
        result = engine.advance(order, [], accept_all)
        assert result.order.status == WorkOrderStatus.FINALIZADO
        assert result.ledger == []

    def test_unfinalize_declined_aborts(self, engine, make_order, make_entry):
        entry = make_entry(type=TransactionType.CREDIT)
        order = make_order(status=WorkOrderStatus.FINALIZADO, financial_id=entry.id)
        decisions = PresetDecisions({DecisionKind.REMOVE_REVENUE: False})
        with pytest.raises(CascadeConfirmationDeclined):
            engine.regress(order, [entry], decisions)

    def test_unfinalize_without_entry_asks_nothing(self, engine, make_order, decline_all):
        order = make_order(status=WorkOrderStatus.FINALIZADO)
        result = engine.regress(order, [], decline_all)
        assert result.order.status == WorkOrderStatus.EM_SERVICO
        assert decline_all.asked == []


# ============================================================
# Archiviazione
# ============================================================


class TestArchive:
    """Tests per archive/restore."""

    def test_archive_keeps_revenue(self, engine, make_order, make_entry, accept_all):
        entry = make_entry(type=TransactionType.CREDIT)
        order = make_order(status=WorkOrderStatus.FINALIZADO, financial_id=entry.id)

        result = engine.archive(order, [entry], accept_all)

        assert result.order.status == WorkOrderStatus.ARQUIVADO
        assert result.order.archived_from == WorkOrderStatus.FINALIZADO
        assert result.order.financial_id == entry.id
        assert result.ledger == [entry]
        assert accept_all.asked == []

    def test_restore_to_previous_status(self, engine, make_order, decline_all):
        order = make_order(status=WorkOrderStatus.APROVADO)
        archived = engine.archive(order, [], decline_all).order
        restored = engine.restore(archived, [], decline_all).order
        assert restored.status == WorkOrderStatus.APROVADO
        assert restored.archived_from is None

    def test_restore_legacy_defaults_to_orcamento(self, engine, make_order, decline_all):
        order = make_order(status=WorkOrderStatus.ARQUIVADO)
        assert engine.restore(order, [], decline_all).order.status == WorkOrderStatus.ORCAMENTO

    def test_advance_archived_is_noop(self, engine, make_order, decline_all):
        order = make_order(status=WorkOrderStatus.ARQUIVADO)
        assert engine.advance(order, [], decline_all).changed is False
