"""
Configurazione - Settings
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Impostazioni di processo lette da variabili d'ambiente con prefisso
OFICINA_ (o da un file .env). I dati dell'officina (nome, CNPJ, cartella
di esportazione preferita) stanno invece nel documento, in WorkshopSettings.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_ORIGINS = ("localhost", "127.0.0.1")


class Settings(BaseSettings):
    """
    Configurazione del backend.

    I default vanno bene per l'uso locale su una sola postazione. Le
    istanze sono immutabili: i test ne costruiscono una propria e la
    passano a create_app().

    Usage:
        settings = get_settings()
        app = create_app(settings)
    """

    model_config = SettingsConfigDict(
        env_prefix="OFICINA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------
    # Applicazione
    # ------------------------------------------------------------
    app_name: str = Field(default="Oficina OS", description="Nome mostrato in /health e in OpenAPI")
    app_version: str = Field(default="1.0.0", description="Versione del backend")
    app_env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="development | production | testing",
    )
    debug: bool = Field(default=False, description="Abilita /docs, /redoc e l'echo SQL del mirror")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:1420", "http://127.0.0.1:1420"],
        description="Origini del frontend desktop ammesse",
    )

    # ------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="text: una riga leggibile; json: un oggetto per riga",
    )

    # ------------------------------------------------------------
    # Documento locale
    # ------------------------------------------------------------
    data_file: str = Field(
        default="/var/lib/oficina/database.json",
        description="Documento JSON con tutte le collezioni",
    )
    backup_path: str = Field(
        default="/var/lib/oficina/backups",
        description="Cartella delle copie di backup manuali",
    )
    export_path: str = Field(
        default="/var/lib/oficina/exports",
        description="Cartella dei CSV se l'officina non ne ha scelta una",
    )
    autosave_debounce_seconds: float = Field(
        default=1.5,
        gt=0,
        description="Attesa dopo l'ultima modifica prima di scrivere il documento",
    )
    load_grace_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Dopo un caricamento, nessuna scrittura prima di questo intervallo",
    )

    # ------------------------------------------------------------
    # Mirror remoto (opzionale)
    # ------------------------------------------------------------
    remote_database_url: Optional[str] = Field(
        default=None,
        description="URL async del mirror (es. postgresql+asyncpg://...); assente = niente sync",
    )
    remote_pool_size: int = Field(default=5, ge=1)
    sync_page_size: int = Field(default=50, ge=1, le=100)

    # ------------------------------------------------------------
    # Validatori
    # ------------------------------------------------------------

    @field_validator("data_file", "backup_path", "export_path")
    @classmethod
    def warn_relative_path(cls, v: str) -> str:
        """I percorsi relativi dipendono dalla cartella di avvio: solo un avviso."""
        if v and not v.startswith("/") and ":" not in v[:3]:
            logging.getLogger(__name__).warning("Percorso relativo in configurazione: %s", v)
        return v

    @field_validator("remote_database_url")
    @classmethod
    def blank_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @model_validator(mode="after")
    def check_production(self) -> "Settings":
        """In produzione niente debug, niente origini locali, niente password di esempio."""
        if self.app_env != "production":
            return self

        problems = []
        if self.debug:
            problems.append("debug attivo")
        if self.remote_database_url and "changeme" in self.remote_database_url.lower():
            problems.append("remote_database_url con password di esempio")
        problems.extend(
            f"origine CORS locale {origin}"
            for origin in self.cors_origins
            if any(host in origin for host in LOCAL_ORIGINS)
        )

        if problems:
            raise ValueError("Configurazione non valida per la produzione: " + "; ".join(problems))
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Settings letti dall'ambiente, una volta per processo.

    Nei test si costruisce direttamente Settings(...) oppure si chiama
    get_settings.cache_clear().
    """
    return Settings()
