"""
Mixin SQLAlchemy per i modelli del mirror
Progetto: Oficina OS (Gestionale Ordini di Servizio)

UUIDMixin fornisce la chiave primaria, TimestampMixin le date di
creazione e aggiornamento. updated_at è anche un campo di ordinamento
della lettura paginata, quindi viene valorizzato lato applicazione a ogni
flush (stesso orologio UTC per tutte le righe di una sostituzione).
"""

import datetime
import uuid

from sqlalchemy import DateTime, Uuid, event
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.sql import func


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UUIDMixin:
    """Chiave primaria UUID generata in Python."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """
    Date di creazione e ultimo aggiornamento della riga.

    Usage:
        class RemoteRecord(Base, UUIDMixin, TimestampMixin):
            __tablename__ = "remote_records"
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Scrittura della riga sul mirror",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Ultima modifica della riga",
    )


@event.listens_for(Session, "before_flush")
def stamp_updated_at(session: Session, flush_context, instances) -> None:
    """Imposta updated_at sulle righe nuove e su quelle effettivamente modificate."""
    now = utc_now()
    touched = list(session.new) + [
        obj for obj in session.dirty
        if session.is_modified(obj, include_collections=False)
    ]
    for obj in touched:
        if isinstance(obj, TimestampMixin):
            obj.updated_at = now
