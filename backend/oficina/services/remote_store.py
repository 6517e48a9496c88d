"""
Store remoto delle collezioni (SQLAlchemy async)
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Ogni collezione del documento è salvata come insieme di righe
remote_records. La scrittura sostituisce l'intera collezione in una sola
transazione; la lettura è paginata a cursore (keyset) su un campo scelto
dal chiamante, con record_id come criterio di spareggio.
"""

import datetime
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, Field
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from oficina.core.database import RemoteDatabase
from oficina.core.exceptions import BusinessValidationError, SyncError
from oficina.models import RemoteRecord

# Logger per questo modulo
logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Campi ammessi per l'ordinamento della lettura paginata
ORDER_FIELDS = {
    "position": RemoteRecord.position,
    "record_id": RemoteRecord.record_id,
    "updated_at": RemoteRecord.updated_at,
}


class PageCursor(BaseModel):
    """Posizione dopo l'ultimo record letto."""
    value: Union[int, str, datetime.datetime]
    record_id: str


class RemotePage(BaseModel):
    """Una pagina di record remoti."""
    records: list[dict[str, Any]] = Field(default_factory=list)
    next_cursor: Optional[PageCursor] = None
    has_more: bool = False


def record_key(record: dict[str, Any], position: int, seen: set[str]) -> str:
    """
    Chiave remota di un record: il suo id, oppure la posizione per i
    record senza id (voci di catalogo dei documenti più vecchi).
    """
    key = str(record.get("id") or f"#{position}")
    if key in seen:
        key = f"{key}#{position}"
    seen.add(key)
    return key


class SqlRemoteStore:
    """
    Accesso alle collezioni remote.

    Args:
        database: Connessione al database remoto
        page_size: Dimensione pagina di default (max 100)
    """

    def __init__(self, database: RemoteDatabase, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.database = database
        self.page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

    async def is_available(self) -> bool:
        """Verifica la raggiungibilità del database (SELECT 1)."""
        try:
            await self.database.ping()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database remoto non raggiungibile: %s", e)
            return False
        return True

    async def replace_collection(self, collection: str, records: list[dict[str, Any]]) -> int:
        """
        Sostituisce l'intera collezione remota (sovrascrittura, nessun merge).

        Returns:
            int: Numero di record scritti

        Raises:
            SyncError: Errore del database; la collezione remota resta invariata
        """
        seen: set[str] = set()
        rows = [
            RemoteRecord(
                collection=collection,
                record_id=record_key(record, position, seen),
                position=position,
                payload=record,
            )
            for position, record in enumerate(records)
        ]
        try:
            async with self.database.session() as session:
                async with session.begin():
                    await session.execute(
                        delete(RemoteRecord).where(RemoteRecord.collection == collection)
                    )
                    session.add_all(rows)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Scrittura remota fallita per %s: %s", collection, e)
            raise SyncError(f"Scrittura remota fallita: {e}", collection=collection)

        logger.info("Collezione remota %s sostituita (%s record)", collection, len(rows))
        return len(rows)

    async def fetch_page(
        self,
        collection: str,
        order_by: str = "position",
        cursor: Optional[PageCursor] = None,
        page_size: Optional[int] = None,
    ) -> RemotePage:
        """
        Legge una pagina di record dopo il cursore.

        Args:
            collection: Nome della collezione
            order_by: position | record_id | updated_at
            cursor: Cursore restituito dalla pagina precedente
            page_size: Dimensione pagina (default: quella dello store)

        Raises:
            BusinessValidationError: Campo di ordinamento non ammesso
            SyncError: Errore del database
        """
        column = ORDER_FIELDS.get(order_by)
        if column is None:
            raise BusinessValidationError(
                f"Campo di ordinamento non ammesso: {order_by}",
                extra={"allowed": sorted(ORDER_FIELDS)},
            )
        size = min(max(page_size or self.page_size, 1), MAX_PAGE_SIZE)

        stmt = select(RemoteRecord).where(RemoteRecord.collection == collection)
        if cursor is not None:
            stmt = stmt.where(
                or_(
                    column > cursor.value,
                    and_(column == cursor.value, RemoteRecord.record_id > cursor.record_id),
                )
            )
        stmt = stmt.order_by(column.asc(), RemoteRecord.record_id.asc()).limit(size + 1)

        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error("Lettura remota fallita per %s: %s", collection, e)
            raise SyncError(f"Lettura remota fallita: {e}", collection=collection)

        has_more = len(rows) > size
        rows = rows[:size]
        next_cursor = None
        if rows:
            last = rows[-1]
            next_cursor = PageCursor(value=getattr(last, column.key), record_id=last.record_id)

        return RemotePage(
            records=[row.payload for row in rows],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def count(self, collection: str) -> int:
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(func.count()).select_from(RemoteRecord).where(
                        RemoteRecord.collection == collection
                    )
                )
                return result.scalar() or 0
        except (SQLAlchemyError, OSError) as e:
            raise SyncError(f"Lettura remota fallita: {e}", collection=collection)
