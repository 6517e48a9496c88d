"""
API v1 Routes
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from oficina.api.v1 import catalog, clients, ledger, reports, sync, system, work_orders

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(work_orders.router)
api_v1_router.include_router(ledger.router)
api_v1_router.include_router(clients.router)
api_v1_router.include_router(catalog.router)
api_v1_router.include_router(reports.router)
api_v1_router.include_router(sync.router)
api_v1_router.include_router(system.router)

# Esportazione
__all__ = ["api_v1_router"]
