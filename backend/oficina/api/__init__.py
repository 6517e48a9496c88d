"""
API Routes
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Modulo per l'aggregazione dei router versionati.
"""

from oficina.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
