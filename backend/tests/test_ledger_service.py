"""
Unit tests per LedgerService: creazione, rate, ricorrenze, audit e riepiloghi.
"""

import datetime

import pytest

from oficina.core.exceptions import BusinessValidationError, NotFoundError
from oficina.schemas.ledger import RecurrenceMode, TransactionType
from oficina.services.ledger_service import (
    INITIAL_NOTE,
    LedgerService,
    add_months,
    competency_month,
)


@pytest.fixture
def service():
    return LedgerService()


def _date(year, month, day):
    return datetime.datetime(year, month, day, tzinfo=datetime.timezone.utc)


# ============================================================
# Date di competenza
# ============================================================


class TestAddMonths:
    """Tests per l'aritmetica sui mesi."""

    def test_simple(self):
        assert add_months(_date(2025, 1, 10), 2) == _date(2025, 3, 10)

    def test_year_rollover(self):
        assert add_months(_date(2025, 11, 5), 3) == _date(2026, 2, 5)

    def test_day_clamped_to_month_end(self):
        """Test 31 gennaio + 1 mese = 28 febbraio."""
        assert add_months(_date(2025, 1, 31), 1) == _date(2025, 2, 28)

    def test_competency_month(self):
        assert competency_month(_date(2025, 3, 15)) == "2025-03"


# ============================================================
# Creazione
# ============================================================


class TestCreateEntry:
    """Tests per la creazione di un singolo lancio."""

    def test_initial_history(self, service):
        entry = service.create_entry("Aluguel", 150000, TransactionType.DEBIT, _date(2025, 3, 1))
        assert entry.amount == 150000
        assert len(entry.history) == 1
        assert entry.history[0].note == INITIAL_NOTE
        assert entry.audited is False

    def test_signed_amount(self, service):
        debit = service.create_entry("Aluguel", 1000, TransactionType.DEBIT, _date(2025, 3, 1))
        credit = service.create_entry("OS #1", 1000, TransactionType.CREDIT, _date(2025, 3, 1))
        assert debit.signed_amount == -1000
        assert credit.signed_amount == 1000

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount(self, service, amount):
        with pytest.raises(BusinessValidationError):
            service.create_entry("Aluguel", amount, TransactionType.DEBIT, _date(2025, 3, 1))

    def test_float_amount_rejected(self, service):
        with pytest.raises(BusinessValidationError):
            service.create_entry("Aluguel", 10.5, TransactionType.DEBIT, _date(2025, 3, 1))

    def test_blank_description(self, service):
        with pytest.raises(BusinessValidationError):
            service.create_entry("   ", 1000, TransactionType.DEBIT, _date(2025, 3, 1))


class TestRecurrence:
    """Tests per rate e ricorrenze."""

    def test_installments_sum_to_total(self, service):
        """Test 100,00 in 3 rate: 33,33 + 33,33 + 33,34."""
        entries = service.create_with_recurrence(
            "Compressor", 10000, TransactionType.DEBIT, _date(2025, 1, 31),
            mode=RecurrenceMode.INSTALLMENT, count=3,
        )
        assert [e.amount for e in entries] == [3333, 3333, 3334]
        assert sum(e.amount for e in entries) == 10000

    def test_installment_descriptions_and_dates(self, service):
        entries = service.create_with_recurrence(
            "Compressor", 10000, TransactionType.DEBIT, _date(2025, 1, 31),
            mode=RecurrenceMode.INSTALLMENT, count=3,
        )
        assert [e.description for e in entries] == [
            "Compressor (1/3)", "Compressor (2/3)", "Compressor (3/3)",
        ]
        assert [competency_month(e.effective_date) for e in entries] == [
            "2025-01", "2025-02", "2025-03",
        ]
        assert entries[1].effective_date.day == 28

    def test_series_share_group(self, service):
        entries = service.create_with_recurrence(
            "Internet", 9990, TransactionType.DEBIT, _date(2025, 1, 10),
            mode=RecurrenceMode.RECURRING, count=4,
        )
        assert len({e.group_id for e in entries}) == 1
        assert entries[0].group_id is not None
        assert all(e.amount == 9990 for e in entries)

    def test_single_has_no_group(self, service):
        entries = service.create_with_recurrence(
            "Peças", 5000, TransactionType.DEBIT, _date(2025, 1, 10),
        )
        assert len(entries) == 1
        assert entries[0].group_id is None

    def test_single_installment_keeps_label_without_group(self, service):
        entries = service.create_with_recurrence(
            "Pneus", 48000, TransactionType.DEBIT, _date(2025, 1, 10),
            mode=RecurrenceMode.INSTALLMENT, count=1,
        )
        assert [e.description for e in entries] == ["Pneus (1/1)"]
        assert entries[0].amount == 48000
        assert entries[0].group_id is None

    def test_installment_too_small(self, service):
        """Test 0,02 in 3 rate produrrebbe rate nulle."""
        with pytest.raises(BusinessValidationError):
            service.create_with_recurrence(
                "Troco", 2, TransactionType.DEBIT, _date(2025, 1, 10),
                mode=RecurrenceMode.INSTALLMENT, count=3,
            )


# ============================================================
# Audit
# ============================================================


class TestAmendAmount:
    """Tests per la modifica dell'importo con audit."""

    def test_history_appended(self, service, make_entry):
        entry = make_entry(amount=10000)
        amended = service.amend_amount(entry, 12000, "Carlos", "Nota corrigida")
        assert amended.amount == 12000
        assert len(amended.history) == 2
        assert amended.history[0] == entry.history[0]
        assert amended.history[1].note == (
            "Carlos: importo modificato da R$ 100,00 a R$ 120,00 (Nota corrigida)"
        )
        assert amended.audited is True

    def test_same_amount_is_noop(self, service, make_entry):
        entry = make_entry(amount=10000)
        assert service.amend_amount(entry, 10000, "Carlos", "Nenhuma") is entry

    def test_reason_required(self, service, make_entry):
        with pytest.raises(BusinessValidationError):
            service.amend_amount(make_entry(), 500, "Carlos", "  ")

    def test_update_type_annotated(self, service, make_entry):
        entry = make_entry(type=TransactionType.DEBIT)
        updated = service.update_entry(entry, type=TransactionType.CREDIT, actor="Ana")
        assert updated.type == TransactionType.CREDIT
        assert updated.history[-1].note == "Ana: tipo modificato da DEBIT a CREDIT"

    def test_update_without_changes(self, service, make_entry):
        entry = make_entry()
        assert service.update_entry(entry, description=entry.description) is entry


# ============================================================
# Eliminazione e consultazione
# ============================================================


class TestQueries:
    """Tests per eliminazione, filtri e riepiloghi."""

    def test_delete_entry(self, service, make_entry):
        a, b = make_entry(), make_entry()
        assert service.delete_entry([a, b], a.id) == [b]

    def test_delete_missing_entry(self, service, make_entry):
        with pytest.raises(NotFoundError):
            service.delete_entry([make_entry()], "missing")

    def test_delete_group(self, service, make_entry):
        series = service.create_with_recurrence(
            "Internet", 9990, TransactionType.DEBIT, _date(2025, 1, 10),
            mode=RecurrenceMode.RECURRING, count=3,
        )
        other = make_entry()
        assert service.delete_group([*series, other], series[0].group_id) == [other]

    def test_delete_unknown_group(self, service, make_entry):
        with pytest.raises(NotFoundError):
            service.delete_group([make_entry()], "missing")

    def test_summary_by_month(self, service, make_entry):
        ledger = [
            make_entry(amount=30000, type=TransactionType.CREDIT, effective_date=_date(2025, 3, 2)),
            make_entry(amount=10000, type=TransactionType.DEBIT, effective_date=_date(2025, 3, 20)),
            make_entry(amount=99900, type=TransactionType.CREDIT, effective_date=_date(2025, 4, 1)),
        ]
        summary = service.summarize(ledger, "2025-03")
        assert summary.revenue == 30000
        assert summary.expenses == 10000
        assert summary.balance == 20000
        assert summary.entries == 2

    def test_summary_by_year(self, service, make_entry):
        ledger = [
            make_entry(amount=30000, type=TransactionType.CREDIT, effective_date=_date(2025, 3, 2)),
            make_entry(amount=5000, type=TransactionType.CREDIT, effective_date=_date(2024, 12, 2)),
        ]
        assert service.summarize(ledger, "2025").revenue == 30000

    def test_invalid_period(self, service):
        with pytest.raises(BusinessValidationError):
            service.summarize([], "2025-13")

    def test_filter_sorted_descending(self, service, make_entry):
        early = make_entry(effective_date=_date(2025, 3, 1))
        late = make_entry(effective_date=_date(2025, 3, 28))
        assert service.filter_entries([early, late], period="2025-03") == [late, early]

    def test_available_months(self, service, make_entry):
        ledger = [
            make_entry(effective_date=_date(2025, 1, 5)),
            make_entry(effective_date=_date(2025, 3, 5)),
            make_entry(effective_date=_date(2025, 3, 9)),
        ]
        assert service.available_months(ledger) == ["2025-03", "2025-01"]
