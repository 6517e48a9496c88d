"""
Modello SQLAlchemy per i record del mirror remoto
Progetto: Oficina OS (Gestionale Ordini di Servizio)
"""

from typing import Any

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from oficina.models import Base
from oficina.models.mixins import TimestampMixin, UUIDMixin


class RemoteRecord(Base, UUIDMixin, TimestampMixin):
    """
    Un record di una collezione del documento.

    Attributes:
        id: UUID primary key
        collection: Nome della collezione (ledger, workOrders, clients, ...)
        record_id: Identificativo del record nel documento
        position: Posizione del record nella collezione locale
        payload: Record serializzato (chiavi camelCase)
        created_at: Data/ora di creazione
        updated_at: Data/ora ultimo aggiornamento
    """

    __tablename__ = "remote_records"

    collection: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Nome della collezione",
    )

    record_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Identificativo del record nel documento",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Posizione nella collezione locale",
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        doc="Record serializzato",
    )

    __table_args__ = (
        UniqueConstraint("collection", "record_id", name="uq_remote_records_collection_record"),
        Index("ix_remote_records_collection_position", "collection", "position"),
        Index("ix_remote_records_collection_updated", "collection", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<RemoteRecord(collection={self.collection}, record_id={self.record_id})>"
