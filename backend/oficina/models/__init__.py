"""
Modelli Database SQLAlchemy
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Modelli del mirror remoto opzionale. Il documento locale resta la fonte
primaria; il database remoto conserva una copia per collezione.

Modelli:
- RemoteRecord: un record di una collezione del documento (payload JSON)
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


# Import modelli implementati
from oficina.models.remote_record import RemoteRecord  # noqa: E402

__all__ = [
    "Base",
    "RemoteRecord",
]
