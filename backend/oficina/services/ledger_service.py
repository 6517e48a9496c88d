"""
Service Layer per il Registro Finanziario
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Creazione, modifica con audit e raggruppamento (rate/ricorrenze) dei
lanci finanziari. Tutte le operazioni sono trasformazioni pure: ricevono
record o liste e restituiscono nuovi record o nuove liste.

Regole:
- l'importo è sempre > 0, il segno è dato dal tipo
- la modifica dell'importo aggiunge una riga allo storico, mai la sostituisce
- nelle rate il resto della divisione va nell'ultima rata
"""

import calendar
import datetime
import logging
from typing import Optional

from oficina.core.exceptions import BusinessValidationError, NotFoundError
from oficina.core.money import MoneyCodec
from oficina.schemas.base import new_id
from oficina.schemas.ledger import (
    HistoryLine,
    LedgerEntry,
    LedgerSummary,
    RecurrenceMode,
    TransactionType,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

INITIAL_NOTE = "Creazione iniziale"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def add_months(value: datetime.datetime, months: int) -> datetime.datetime:
    """
    Sposta una data di N mesi di calendario.

    Il giorno viene limitato all'ultimo giorno del mese di arrivo
    (31/01 + 1 mese = 28/02 o 29/02).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def competency_month(value: datetime.datetime) -> str:
    """Mese di competenza in formato YYYY-MM."""
    return f"{value.year:04d}-{value.month:02d}"


class LedgerService:
    """
    Service per le operazioni sui lanci finanziari.

    Non conserva stato: lo stato vive in AppState e viene modificato
    dal CommandDispatcher con i valori restituiti da questi metodi.
    """

    def create_entry(
        self,
        description: str,
        amount: int,
        type: TransactionType,
        effective_date: datetime.datetime,
        group_id: Optional[str] = None,
        now: Optional[datetime.datetime] = None,
    ) -> LedgerEntry:
        """
        Crea un nuovo lancio con la riga iniziale dello storico.

        Args:
            description: Descrizione
            amount: Importo in centavos
            type: CREDIT o DEBIT
            effective_date: Data di competenza
            group_id: Gruppo di rate/ricorrenze (opzionale)
            now: Istante di registrazione (default: adesso)

        Returns:
            LedgerEntry: Il lancio creato

        Raises:
            BusinessValidationError: Se l'importo non è positivo o la descrizione è vuota
        """
        self._check_amount(amount)
        description = (description or "").strip()
        if not description:
            raise BusinessValidationError("La descrizione del lancio è obbligatoria")

        now = now or utcnow()
        entry = LedgerEntry(
            id=new_id(),
            description=description,
            amount=amount,
            type=type,
            effective_date=effective_date,
            created_at=now,
            history=[HistoryLine(timestamp=now, note=INITIAL_NOTE)],
            group_id=group_id,
        )
        logger.info(
            "Lancio creato: %s %s '%s' (competenza %s)",
            type.value, amount, description, competency_month(effective_date),
        )
        return entry

    def amend_amount(
        self,
        entry: LedgerEntry,
        new_amount: int,
        actor: str,
        reason: str,
        now: Optional[datetime.datetime] = None,
    ) -> LedgerEntry:
        """
        Modifica l'importo aggiungendo una riga di audit.

        Se l'importo non cambia il lancio viene restituito invariato.

        Raises:
            BusinessValidationError: Se il nuovo importo non è positivo o manca il motivo
        """
        self._check_amount(new_amount)
        reason = (reason or "").strip()
        if not reason:
            raise BusinessValidationError("Il motivo della modifica è obbligatorio")
        if new_amount == entry.amount:
            return entry

        note = "%s: importo modificato da %s a %s (%s)" % (
            actor,
            MoneyCodec.format(entry.amount),
            MoneyCodec.format(new_amount),
            reason,
        )
        history = [*entry.history, HistoryLine(timestamp=now or utcnow(), note=note)]
        logger.info("Importo del lancio %s modificato: %s -> %s", entry.id, entry.amount, new_amount)
        return entry.revise(amount=new_amount, history=history)

    def update_entry(
        self,
        entry: LedgerEntry,
        description: Optional[str] = None,
        type: Optional[TransactionType] = None,
        effective_date: Optional[datetime.datetime] = None,
        actor: str = "Admin",
        now: Optional[datetime.datetime] = None,
    ) -> LedgerEntry:
        """
        Modifica descrizione, tipo o competenza. Ogni campo cambiato è
        annotato nello storico.
        """
        changes: dict = {}
        notes: list[str] = []

        if description is not None:
            description = description.strip()
            if not description:
                raise BusinessValidationError("La descrizione del lancio è obbligatoria")
            if description != entry.description:
                changes["description"] = description
                notes.append(f"{actor}: descrizione modificata")

        if type is not None and type != entry.type:
            changes["type"] = type
            notes.append(f"{actor}: tipo modificato da {entry.type.value} a {type.value}")

        if effective_date is not None and effective_date != entry.effective_date:
            changes["effective_date"] = effective_date
            notes.append(
                f"{actor}: competenza modificata da {entry.effective_date:%d/%m/%Y} "
                f"a {effective_date:%d/%m/%Y}"
            )

        if not changes:
            return entry

        timestamp = now or utcnow()
        changes["history"] = [
            *entry.history,
            *(HistoryLine(timestamp=timestamp, note=note) for note in notes),
        ]
        return entry.revise(**changes)

    def create_with_recurrence(
        self,
        description: str,
        total_amount: int,
        type: TransactionType,
        start_date: datetime.datetime,
        mode: RecurrenceMode = RecurrenceMode.SINGLE,
        count: int = 1,
        now: Optional[datetime.datetime] = None,
    ) -> list[LedgerEntry]:
        """
        Genera uno o più lanci da una sola azione dell'utente.

        - SINGLE: un lancio per l'importo totale, senza gruppo
        - INSTALLMENT: totale diviso in `count` rate mensili "desc (i/count)",
          quota troncata ai centavos e resto nell'ultima rata
        - RECURRING: importo totale ripetuto `count` volte, una al mese

        Le serie con più di un lancio condividono lo stesso group_id; con
        count == 1 il lancio resta senza gruppo (la rata è comunque "(1/1)").

        Raises:
            BusinessValidationError: Importo non positivo, count < 1, o rata nulla
        """
        self._check_amount(total_amount)
        if count < 1:
            raise BusinessValidationError("Il numero di rate deve essere almeno 1")

        if mode == RecurrenceMode.SINGLE:
            return [self.create_entry(description, total_amount, type, start_date, now=now)]

        group_id = new_id() if count > 1 else None
        entries: list[LedgerEntry] = []

        if mode == RecurrenceMode.INSTALLMENT:
            quota = MoneyCodec.split_truncated(total_amount, count)
            if quota <= 0:
                raise BusinessValidationError(
                    f"Importo troppo basso per {count} rate",
                    extra={"total_amount": total_amount, "count": count},
                )
            last = total_amount - quota * (count - 1)
            for i in range(count):
                amount = last if i == count - 1 else quota
                entries.append(
                    self.create_entry(
                        f"{description.strip()} ({i + 1}/{count})",
                        amount,
                        type,
                        add_months(start_date, i),
                        group_id=group_id,
                        now=now,
                    )
                )
        else:
            for i in range(count):
                entries.append(
                    self.create_entry(
                        description,
                        total_amount,
                        type,
                        add_months(start_date, i),
                        group_id=group_id,
                        now=now,
                    )
                )

        logger.info(
            "Serie %s creata: %s lanci, gruppo %s", mode.value, len(entries), group_id,
        )
        return entries

    def delete_entry(self, ledger: list[LedgerEntry], entry_id: str) -> list[LedgerEntry]:
        """
        Rimuove esattamente un lancio.

        Raises:
            NotFoundError: Se il lancio non esiste
        """
        remaining = [entry for entry in ledger if entry.id != entry_id]
        if len(remaining) == len(ledger):
            raise NotFoundError(
                f"Lancio con ID {entry_id} non trovato",
                error_code="LEDGER_ENTRY_NOT_FOUND",
            )
        logger.info("Lancio %s eliminato", entry_id)
        return remaining

    def delete_group(self, ledger: list[LedgerEntry], group_id: str) -> list[LedgerEntry]:
        """
        Rimuove tutti i lanci di una serie.

        Raises:
            NotFoundError: Se nessun lancio appartiene al gruppo
        """
        remaining = [entry for entry in ledger if entry.group_id != group_id]
        removed = len(ledger) - len(remaining)
        if removed == 0:
            raise NotFoundError(
                f"Nessun lancio nel gruppo {group_id}",
                error_code="LEDGER_GROUP_NOT_FOUND",
            )
        logger.info("Gruppo %s eliminato (%s lanci)", group_id, removed)
        return remaining

    # ------------------------------------------------------------
    # Consultazione
    # ------------------------------------------------------------

    def filter_entries(
        self,
        ledger: list[LedgerEntry],
        period: Optional[str] = None,
        type: Optional[TransactionType] = None,
    ) -> list[LedgerEntry]:
        """
        Filtra per periodo di competenza ("YYYY-MM" o "YYYY") e tipo,
        ordinando per competenza decrescente.
        """
        entries = ledger
        if period:
            self._check_period(period)
            entries = [e for e in entries if self._in_period(e, period)]
        if type is not None:
            entries = [e for e in entries if e.type == type]
        return sorted(entries, key=lambda e: e.effective_date, reverse=True)

    def summarize(self, ledger: list[LedgerEntry], period: str) -> LedgerSummary:
        """
        Totali di un periodo di competenza.

        Args:
            ledger: Tutti i lanci
            period: "YYYY-MM" (mese) o "YYYY" (anno)
        """
        self._check_period(period)
        entries = [e for e in ledger if self._in_period(e, period)]
        revenue = sum(e.amount for e in entries if e.type == TransactionType.CREDIT)
        expenses = sum(e.amount for e in entries if e.type == TransactionType.DEBIT)
        return LedgerSummary(
            period=period,
            revenue=revenue,
            expenses=expenses,
            balance=revenue - expenses,
            entries=len(entries),
        )

    def available_months(self, ledger: list[LedgerEntry]) -> list[str]:
        """Mesi di competenza presenti (YYYY-MM), dal più recente."""
        return sorted({competency_month(e.effective_date) for e in ledger}, reverse=True)

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise BusinessValidationError(
                f"Importo non valido: {amount!r} (atteso intero in centavos)"
            )
        if amount <= 0:
            raise BusinessValidationError("L'importo deve essere maggiore di zero")

    @staticmethod
    def _check_period(period: str) -> None:
        parts = period.split("-")
        valid = (
            len(parts) in (1, 2)
            and len(parts[0]) == 4
            and all(p.isdigit() for p in parts)
            and (len(parts) == 1 or (len(parts[1]) == 2 and 1 <= int(parts[1]) <= 12))
        )
        if not valid:
            raise BusinessValidationError(
                f"Periodo non valido: '{period}' (atteso YYYY-MM o YYYY)"
            )

    def _in_period(self, entry: LedgerEntry, period: str) -> bool:
        month = competency_month(entry.effective_date)
        return month == period or month.startswith(f"{period}-")
