"""
Tests per SqlRemoteStore e SyncService su SQLite in memoria.
"""

import pytest

from oficina.core.exceptions import BusinessValidationError, SyncError
from oficina.schemas.document import WorkshopSettings
from oficina.schemas.sync import SyncDirection, SyncOutcome
from oficina.services.dispatcher import CommandName
from oficina.services.remote_store import SqlRemoteStore, record_key
from oficina.services.sync_service import SYNC_COLLECTIONS, SyncService


def _clients(count):
    return [{"id": f"c{i}", "name": f"Cliente {i}"} for i in range(count)]


# ============================================================
# Store remoto
# ============================================================


class TestRemoteStore:
    """Tests per scrittura e lettura paginata."""

    async def test_replace_overwrites_collection(self, remote_db):
        store = SqlRemoteStore(remote_db)
        await store.replace_collection("clients", _clients(3))
        await store.replace_collection("clients", _clients(1))
        assert await store.count("clients") == 1
        assert await store.count("ledger") == 0

    async def test_pages_follow_cursor(self, remote_db):
        store = SqlRemoteStore(remote_db, page_size=2)
        await store.replace_collection("clients", _clients(5))

        first = await store.fetch_page("clients")
        second = await store.fetch_page("clients", cursor=first.next_cursor)
        third = await store.fetch_page("clients", cursor=second.next_cursor)

        assert [r["id"] for r in first.records] == ["c0", "c1"]
        assert [r["id"] for r in second.records] == ["c2", "c3"]
        assert [r["id"] for r in third.records] == ["c4"]
        assert (first.has_more, second.has_more, third.has_more) == (True, True, False)

    async def test_order_by_record_id(self, remote_db):
        store = SqlRemoteStore(remote_db)
        records = [{"id": "b"}, {"id": "c"}, {"id": "a"}]
        await store.replace_collection("clients", records)
        page = await store.fetch_page("clients", order_by="record_id")
        assert [r["id"] for r in page.records] == ["a", "b", "c"]

    async def test_unknown_order_field(self, remote_db):
        with pytest.raises(BusinessValidationError):
            await SqlRemoteStore(remote_db).fetch_page("clients", order_by="payload")

    async def test_is_available(self, remote_db):
        assert await SqlRemoteStore(remote_db).is_available() is True

    def test_record_key_without_id(self):
        seen = set()
        assert record_key({"description": "Filtro"}, 0, seen) == "#0"
        assert record_key({"id": "x"}, 1, seen) == "x"
        assert record_key({"id": "x"}, 2, seen) == "x#2"


# ============================================================
# Sincronizzazione
# ============================================================


class TestSyncService:
    """Tests per sync_up, sync_down e operazioni complete."""

    async def test_up_then_down_restores_collection(self, remote_db, dispatcher, order_form):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        order = dispatcher.dispatch(CommandName.CREATE_WORK_ORDER, data=order_form())

        up = await service.sync_up("workOrders")
        assert up.success is True
        assert up.records == 1

        dispatcher.dispatch(CommandName.DELETE_WORK_ORDER, order_id=order.id)
        assert dispatcher.state.work_orders == []

        down = await service.sync_down("workOrders")

        assert down.direction == SyncDirection.DOWN
        assert dispatcher.state.work_orders == [order]

    async def test_fetch_all_reports_progress(self, remote_db, dispatcher):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db, page_size=2))
        await service.store.replace_collection("clients", _clients(5))
        progress = []

        records = await service.fetch_all("clients", on_progress=progress.append)

        assert len(records) == 5
        assert [(p.fetched, p.estimated_total) for p in progress] == [(2, 4), (4, 8), (5, 5)]

    async def test_invalid_remote_data_keeps_local(self, remote_db, dispatcher, order_form):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        dispatcher.dispatch(CommandName.CREATE_WORK_ORDER, data=order_form())
        revision = dispatcher.state.revision
        await service.store.replace_collection("workOrders", [{"id": "x", "osNumber": "abc"}])

        with pytest.raises(SyncError) as exc_info:
            await service.sync_down("workOrders")

        assert exc_info.value.error_code == "SYNC_INVALID_DATA"
        assert exc_info.value.collection == "workOrders"
        assert len(dispatcher.state.work_orders) == 1
        assert dispatcher.state.revision == revision

    async def test_settings_round_trip(self, remote_db, dispatcher):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        dispatcher.dispatch(
            CommandName.UPDATE_SETTINGS, settings=WorkshopSettings(name="Oficina Central"),
        )
        await service.sync_up("settings")
        dispatcher.dispatch(CommandName.UPDATE_SETTINGS, settings=WorkshopSettings())

        await service.sync_down("settings")

        assert dispatcher.state.settings.name == "Oficina Central"

    async def test_push_all_then_full_sync(self, remote_db, dispatcher, order_form):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        dispatcher.dispatch(CommandName.CREATE_WORK_ORDER, data=order_form())
        before = dispatcher.state.to_document()

        pushed = await service.push_all()
        pulled = await service.full_sync()

        assert pushed.outcome == SyncOutcome.SUCCESS
        assert [r.collection for r in pushed.results] == list(SYNC_COLLECTIONS)
        assert pulled.outcome == SyncOutcome.SUCCESS
        assert dispatcher.state.to_document() == before

    async def test_partial_failure_reported(self, remote_db, dispatcher):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        await service.store.replace_collection("ledger", [{"id": "bad", "amount": -1}])
        await service.store.replace_collection("clients", _clients(2))

        report = await service.full_sync()

        assert report.outcome == SyncOutcome.PARTIAL
        assert len(report.errors) == 1
        assert report.errors[0].startswith("ledger:")
        assert len(dispatcher.state.clients) == 2

    async def test_unknown_collection(self, remote_db, dispatcher):
        service = SyncService(dispatcher, SqlRemoteStore(remote_db))
        with pytest.raises(SyncError) as exc_info:
            await service.sync_up("technicians")
        assert exc_info.value.error_code == "SYNC_UNKNOWN_COLLECTION"

    async def test_not_configured(self, dispatcher):
        service = SyncService(dispatcher, None)
        with pytest.raises(SyncError) as exc_info:
            await service.sync_up("ledger")
        assert exc_info.value.error_code == "SYNC_NOT_CONFIGURED"

        availability = await service.availability()
        assert availability.configured is False
