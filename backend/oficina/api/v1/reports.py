"""
Router FastAPI per le esportazioni
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from oficina.core.deps import get_export_service, get_state
from oficina.core.state import AppState
from oficina.schemas.system import ExportResult
from oficina.services.export_service import ExportService

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Report"],
)


@router.post(
    "/ledger-csv",
    name="report_registro_csv",
    summary="Esporta registro in CSV",
    description=(
        "Scrive livro_caixa_YYYY-MM.csv con i lanci del mese di competenza. "
        "Senza cartella si usa quella configurata nelle impostazioni dell'officina."
    ),
    response_model=ExportResult,
    status_code=status.HTTP_200_OK,
)
async def export_ledger_csv(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="Mese di competenza YYYY-MM"),
    folder: Optional[str] = Query(None, description="Cartella di destinazione"),
    state: AppState = Depends(get_state),
    exports: ExportService = Depends(get_export_service),
) -> ExportResult:
    """
    Esporta il registro di un mese.

    Un errore di scrittura è riportato nell'esito (success=False), non
    come eccezione.

    Args:
        month: Mese di competenza
        folder: Cartella (default: impostazioni officina, poi configurazione)
        state: Stato applicativo
        exports: Service di esportazione

    Returns:
        ExportResult: Esito e percorso del file
    """
    target = folder or state.settings.export_path or None
    return await exports.export_ledger_month(state.ledger, state.work_orders, month, folder=target)
