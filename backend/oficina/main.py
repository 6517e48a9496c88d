"""
Main Entry Point - FastAPI Application
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Configura l'applicazione FastAPI con middleware, router e lifecycle.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oficina.api.v1 import api_v1_router
from oficina.core.config import Settings, get_settings
from oficina.core.exceptions import AppException
from oficina.core.logging import configure_logging
from oficina.services.workshop import Workshop

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Gestore per tutte le eccezioni applicative.

    Lo status HTTP è quello della classe di eccezione
    (404, 409, 422, 502, 503).
    """
    content = {"detail": exc.detail, "error_code": exc.error_code}
    if exc.extra:
        content["extra"] = exc.extra
    return JSONResponse(status_code=exc.status_code, content=content)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Gestore generico per tutte le eccezioni non catturate.

    Converte l'eccezione in risposta HTTP 500 e logga l'errore.
    """
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Errore interno del server"},
    )


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    workshop: Optional[Workshop] = None,
) -> FastAPI:
    """
    Crea l'applicazione.

    Args:
        settings: Configurazione (default: variabili d'ambiente)
        workshop: Servizi già costruiti (usato nei test)

    Returns:
        FastAPI: Applicazione configurata
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Gestisce il ciclo di vita dell'applicazione.

        - Startup: carica il documento dati
        - Shutdown: salva le modifiche pendenti e chiude il remoto
        """
        logger.info("Avvio %s v%s", settings.app_name, settings.app_version)
        app.state.workshop = workshop or Workshop(settings)
        await app.state.workshop.start()
        logger.info("Applicazione avviata con successo")

        yield

        logger.info("Arresto applicazione in corso...")
        await app.state.workshop.stop()
        logger.info("Applicazione arrestata")

    app = FastAPI(
        title=settings.app_name,
        description="Gestionale ordini di servizio per officina - Backend API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ------------------------------------------------------------
    # Middleware CORS
    # ------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(
        "/health",
        name="Health Check",
        summary="Controlla lo stato dell'applicazione",
        tags=["System"],
    )
    async def health_check() -> dict[str, str]:
        """
        Endpoint per il controllo dello stato di salute.

        Returns:
            dict: Stato dell'applicazione
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
        }

    app.include_router(api_v1_router)
    return app


app = create_app()
