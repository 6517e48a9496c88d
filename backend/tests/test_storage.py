"""
Tests per LocalFileStorage.
"""

from unittest.mock import patch

import pytest

from oficina.core.exceptions import StorageError
from oficina.services.storage_service import LocalFileStorage


class TestLocalFileStorage:
    """Tests per lettura, scrittura atomica e report."""

    def test_missing_file_reads_empty(self, storage, tmp_path):
        assert storage.read(str(tmp_path / "nessuno.json")) == ""

    def test_write_creates_folder(self, storage, data_file):
        storage.write_atomic(data_file, '{"ledger": []}')
        assert storage.read(data_file) == '{"ledger": []}'

    def test_previous_version_kept_as_bak(self, storage, tmp_path):
        path = tmp_path / "database.json"
        storage.write_atomic(str(path), "v1")
        storage.write_atomic(str(path), "v2")

        assert path.read_text(encoding="utf-8") == "v2"
        assert (tmp_path / "database.bak").read_text(encoding="utf-8") == "v1"
        assert not (tmp_path / "database.tmp").exists()

    def test_unreadable_document(self, storage, tmp_path):
        path = tmp_path / "database.json"
        path.write_bytes(b"\xff\xfe\x00binary")
        with pytest.raises(StorageError) as exc_info:
            storage.read(str(path))
        assert exc_info.value.error_code == "STORAGE_READ_ERROR"

    def test_write_into_file_path_fails(self, storage, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(StorageError) as exc_info:
            storage.write_atomic(str(blocker / "database.json"), "{}")
        assert exc_info.value.error_code == "STORAGE_WRITE_ERROR"

    def test_failed_replace_removes_temp_file(self, storage, tmp_path):
        path = tmp_path / "database.json"
        storage.write_atomic(str(path), "v1")

        with patch("oficina.services.storage_service.os.replace", side_effect=OSError("occupato")):
            with pytest.raises(StorageError) as exc_info:
                storage.write_atomic(str(path), "v2")

        assert exc_info.value.error_code == "STORAGE_WRITE_ERROR"
        assert not (tmp_path / "database.tmp").exists()
        assert path.read_text(encoding="utf-8") == "v1"

    def test_report_has_bom(self, storage, tmp_path):
        result = storage.write_report(str(tmp_path / "exports"), "livro.csv", "Descricao;Valor\n")
        assert result.success is True
        raw = (tmp_path / "exports" / "livro.csv").read_bytes()
        assert raw.startswith(b"\xef\xbb\xbf")
        assert raw.decode("utf-8-sig") == "Descricao;Valor\n"

    def test_report_failure_is_reported(self, storage, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        result = storage.write_report(str(blocker), "livro.csv", "x")
        assert result.success is False
        assert result.path is None

    async def test_async_round_trip(self, tmp_path):
        storage = LocalFileStorage()
        locator = str(tmp_path / "database.json")
        await storage.save_atomic(locator, "conteúdo")
        assert await storage.load(locator) == "conteúdo"
