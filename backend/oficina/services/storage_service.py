"""
Storage locale del documento
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Contratto usato dal PersistenceCoordinator:
- load(locator) -> str: testo del documento, "" se non esiste ancora
- save_atomic(locator, content): mai un file parziale visibile a load
- export_report(folder, filename, content) -> ExportResult

Le operazioni su file sono sincrone e vengono eseguite fuori dall'event
loop con asyncio.to_thread.
"""

import asyncio
import logging
import os
import shutil
from pathlib import Path

from oficina.core.exceptions import StorageError
from oficina.schemas.system import ExportResult

# Logger per questo modulo
logger = logging.getLogger(__name__)


class LocalFileStorage:
    """
    Storage su file system locale.

    La scrittura atomica:
    1. copia il documento esistente in <nome>.bak
    2. scrive <nome>.tmp e forza il flush su disco
    3. rinomina .tmp sul documento (operazione atomica del sistema operativo)
    """

    encoding = "utf-8"

    # ------------------------------------------------------------
    # Operazioni sincrone
    # ------------------------------------------------------------

    def read(self, locator: str) -> str:
        path = Path(locator)
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            logger.info("Documento %s non presente, nuovo archivio", locator)
            return ""
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Errore lettura documento %s: %s", locator, e)
            raise StorageError(
                f"Errore di lettura del documento: {e}",
                error_code="STORAGE_READ_ERROR",
                extra={"path": locator},
            )

    def write_atomic(self, locator: str, content: str) -> None:
        path = Path(locator)
        tmp_path = path.with_suffix(".tmp")
        backup_path = path.with_suffix(".bak")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Errore nella creazione della cartella: {e}",
                error_code="STORAGE_WRITE_ERROR",
                extra={"path": locator},
            )

        if path.exists():
            try:
                shutil.copy2(path, backup_path)
            except OSError as e:
                # Il backup di rotazione non blocca il salvataggio
                logger.warning("Backup %s non creato: %s", backup_path, e)

        try:
            with open(tmp_path, "w", encoding=self.encoding) as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            logger.error("Errore salvataggio documento %s: %s", locator, e)
            raise StorageError(
                f"Errore di salvataggio: {e}",
                error_code="STORAGE_WRITE_ERROR",
                extra={"path": locator},
            )

        logger.debug("Documento salvato: %s (%s caratteri)", locator, len(content))

    def write_report(self, folder: str, filename: str, content: str) -> ExportResult:
        """Scrive un report con BOM UTF-8 (compatibilità Excel)."""
        target = Path(folder) / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8-sig", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error("Errore esportazione %s: %s", target, e)
            return ExportResult(success=False, message=f"Errore di scrittura: {e}")

        logger.info("Report salvato in %s", target)
        return ExportResult(success=True, message=f"Report salvato in: {target}", path=str(target))

    def write_copy(self, folder: str, filename: str, content: str) -> str:
        """Scrive una copia del documento (backup manuale) e ne restituisce il percorso."""
        target = Path(folder) / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self.write_atomic(str(target), content)
        except OSError as e:
            raise StorageError(
                f"Errore nella creazione del backup: {e}",
                error_code="STORAGE_BACKUP_ERROR",
                extra={"path": str(target)},
            )
        return str(target)

    # ------------------------------------------------------------
    # Interfaccia asincrona
    # ------------------------------------------------------------

    async def load(self, locator: str) -> str:
        return await asyncio.to_thread(self.read, locator)

    async def save_atomic(self, locator: str, content: str) -> None:
        await asyncio.to_thread(self.write_atomic, locator, content)

    async def export_report(self, folder: str, filename: str, content: str) -> ExportResult:
        return await asyncio.to_thread(self.write_report, folder, filename, content)

    async def create_backup(self, folder: str, filename: str, content: str) -> str:
        return await asyncio.to_thread(self.write_copy, folder, filename, content)
