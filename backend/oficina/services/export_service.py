"""
Esportazione CSV del registro finanziario
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Una riga per lancio del mese di competenza selezionato, separatore ";":
ID;Competencia;Registro;OS;Cliente;Descricao;Valor;Tipo;Auditado
"""

import csv
import io
import logging
from typing import Optional

from oficina.core.money import MoneyCodec
from oficina.schemas.ledger import LedgerEntry, TransactionType
from oficina.schemas.system import ExportResult
from oficina.schemas.work_order import WorkOrder
from oficina.services.ledger_service import LedgerService
from oficina.services.storage_service import LocalFileStorage

# Logger per questo modulo
logger = logging.getLogger(__name__)

CSV_HEADER = [
    "ID",
    "Competencia",
    "Registro",
    "OS",
    "Cliente",
    "Descricao",
    "Valor",
    "Tipo",
    "Auditado",
]

TYPE_LABELS = {
    TransactionType.CREDIT: "Receita",
    TransactionType.DEBIT: "Despesa",
}


def _date(value) -> str:
    return value.strftime("%d/%m/%Y") if value is not None else ""


def ledger_rows(
    ledger: list[LedgerEntry],
    work_orders: list[WorkOrder],
    month: str,
) -> list[list[str]]:
    """
    Righe CSV dei lanci con competenza nel mese indicato (YYYY-MM).

    L'ordine collegato è quello il cui financial_id coincide con il lancio.
    """
    entries = LedgerService().filter_entries(ledger, period=month)
    orders_by_entry = {o.financial_id: o for o in work_orders if o.financial_id}

    rows = []
    for entry in sorted(entries, key=lambda e: e.effective_date):
        order: Optional[WorkOrder] = orders_by_entry.get(entry.id)
        rows.append([
            entry.id[:8],
            _date(entry.effective_date),
            _date(entry.created_at),
            str(order.os_number) if order else "",
            order.client_name if order else "",
            entry.description,
            MoneyCodec.format_plain(entry.amount),
            TYPE_LABELS[entry.type],
            "SIM" if entry.audited else "NAO",
        ])
    return rows


def build_ledger_csv(
    ledger: list[LedgerEntry],
    work_orders: list[WorkOrder],
    month: str,
) -> str:
    """Contenuto CSV completo (intestazione + righe)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(ledger_rows(ledger, work_orders, month))
    return buffer.getvalue()


class ExportService:
    """
    Service per l'esportazione dei report.

    Args:
        storage: Storage su cui scrivere il report
        default_folder: Cartella usata se non ne viene indicata una
    """

    def __init__(self, storage: LocalFileStorage, default_folder: str) -> None:
        self.storage = storage
        self.default_folder = default_folder

    async def export_ledger_month(
        self,
        ledger: list[LedgerEntry],
        work_orders: list[WorkOrder],
        month: str,
        folder: Optional[str] = None,
    ) -> ExportResult:
        """
        Esporta i lanci di un mese di competenza.

        Returns:
            ExportResult: Esito con percorso del file
        """
        content = build_ledger_csv(ledger, work_orders, month)
        filename = f"livro_caixa_{month}.csv"
        result = await self.storage.export_report(folder or self.default_folder, filename, content)
        if result.success:
            logger.info("Esportazione %s completata", month)
        else:
            logger.warning("Esportazione %s fallita: %s", month, result.message)
        return result
