"""
Tests di integrazione per l'API HTTP (FastAPI TestClient).

Ogni test crea un'applicazione con documento e cartelle nella
directory temporanea di pytest.
"""

import json
import os

import pytest
from fastapi.testclient import TestClient

from oficina.main import create_app
from oficina.services.workshop import Workshop

API = "/api/v1"


@pytest.fixture
def workshop(settings):
    return Workshop(settings)


@pytest.fixture
def client(settings, workshop):
    app = create_app(settings, workshop=workshop)
    with TestClient(app) as test_client:
        yield test_client


def _order_payload(**overrides):
    payload = {
        "clientName": "João Silva",
        "clientPhone": "11 99999-0000",
        "vehicleModel": "Gol",
        "vehiclePlate": "abc1234",
        "parts": [{"description": "Filtro de óleo", "price": "100,00"}],
        "services": [{"description": "Troca de óleo", "price": 5000}],
    }
    payload.update(overrides)
    return payload


def _create_order(client, **overrides):
    response = client.post(f"{API}/work-orders/", json=_order_payload(**overrides))
    assert response.status_code == 201
    return response.json()


# ============================================================
# Sistema
# ============================================================


class TestSystem:
    """Tests per health, stato di persistenza e impostazioni."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "testing"

    def test_persistence_status_after_start(self, client):
        body = client.get(f"{API}/system/status").json()
        assert body["phase"] == "IDLE"
        assert body["dirty"] is False

    def test_flush_writes_document(self, client, data_file):
        _create_order(client)
        body = client.post(f"{API}/system/flush").json()
        assert body["dirty"] is False
        with open(data_file, encoding="utf-8") as f:
            assert json.load(f)["workOrders"][0]["osNumber"] == 1

    def test_settings(self, client):
        response = client.put(f"{API}/system/settings", json={"name": "Auto Center Silva"})
        assert response.status_code == 200
        assert client.get(f"{API}/system/settings").json()["name"] == "Auto Center Silva"

    def test_backup(self, client, settings):
        body = client.post(f"{API}/system/backup").json()
        assert body["success"] is True
        assert os.path.dirname(body["path"]) == settings.backup_path

    def test_document_saved_on_shutdown(self, settings, data_file):
        app = create_app(settings, workshop=Workshop(settings))
        with TestClient(app) as test_client:
            _create_order(test_client)
        assert os.path.exists(data_file)


# ============================================================
# Ordini di servizio
# ============================================================


class TestWorkOrdersApi:
    """Tests per CRUD e stati degli ordini."""

    def test_create_and_get(self, client):
        order = _create_order(client)
        assert order["osNumber"] == 1
        assert order["total"] == 15000
        assert order["vehicle"] == "Gol - ABC1234"
        assert order["status"] == "ORCAMENTO"

        fetched = client.get(f"{API}/work-orders/{order['id']}").json()
        assert fetched == order

    def test_next_number(self, client):
        _create_order(client)
        assert client.get(f"{API}/work-orders/next-number").json() == {"osNumber": 2}

    def test_list_with_search(self, client):
        _create_order(client)
        _create_order(client, clientName="Maria Souza")
        body = client.get(f"{API}/work-orders/", params={"search": "maria"}).json()
        assert body["total"] == 1
        assert body["items"][0]["clientName"] == "Maria Souza"

    def test_float_price_rejected(self, client):
        payload = _order_payload(parts=[{"description": "Vela", "price": 12.5}])
        response = client.post(f"{API}/work-orders/", json=payload)
        assert response.status_code == 422

    def test_duplicate_number(self, client):
        _create_order(client, osNumber=10)
        response = client.post(f"{API}/work-orders/", json=_order_payload(osNumber=10))
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_OS_NUMBER"

        payload = _order_payload(osNumber=10, allowDuplicate=True)
        assert client.post(f"{API}/work-orders/", json=payload).status_code == 201

    def test_not_found(self, client):
        response = client.get(f"{API}/work-orders/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "WORK_ORDER_NOT_FOUND"

    def test_finalize_and_unfinalize(self, client):
        order = _create_order(client)
        url = f"{API}/work-orders/{order['id']}/status"

        finalized = client.patch(url, json={"status": "FINALIZADO", "confirm": True}).json()
        entry_id = finalized["postedEntryId"]
        assert finalized["order"]["financialId"] == entry_id
        entry = client.get(f"{API}/ledger/{entry_id}").json()
        assert entry["amount"] == 15000
        assert entry["type"] == "CREDIT"

        declined = client.patch(url, json={"status": "EM_SERVICO"})
        assert declined.status_code == 409
        assert declined.json()["error_code"] == "CONFIRMATION_DECLINED"
        assert client.get(f"{API}/work-orders/{order['id']}").json()["status"] == "FINALIZADO"

        reverted = client.patch(url, json={"status": "EM_SERVICO", "confirm": True}).json()
        assert reverted["removedEntryId"] == entry_id
        assert client.get(f"{API}/ledger/").json() == []

    def test_advance_and_archive(self, client):
        order = _create_order(client)
        advanced = client.post(f"{API}/work-orders/{order['id']}/advance").json()
        assert advanced["order"]["status"] == "APROVADO"

        archived = client.post(f"{API}/work-orders/{order['id']}/archive").json()
        assert archived["order"]["status"] == "ARQUIVADO"
        restored = client.post(f"{API}/work-orders/{order['id']}/restore").json()
        assert restored["order"]["status"] == "APROVADO"

    def test_delete_with_linked_entry(self, client):
        order = _create_order(client)
        client.patch(
            f"{API}/work-orders/{order['id']}/status",
            json={"status": "FINALIZADO", "confirm": True},
        )
        body = client.delete(f"{API}/work-orders/{order['id']}", params={"confirm": True}).json()
        assert body["removedEntryId"] is not None
        assert client.get(f"{API}/ledger/").json() == []


# ============================================================
# Registro, clienti, cataloghi e report
# ============================================================


class TestLedgerApi:
    """Tests per il registro finanziario."""

    def test_installments_and_summary(self, client):
        payload = {
            "description": "Elevador",
            "amount": "100,00",
            "type": "DEBIT",
            "effectiveDate": "2025-01-31T12:00:00Z",
            "recurrence": "INSTALLMENT",
            "count": 3,
        }
        response = client.post(f"{API}/ledger/", json=payload)
        assert response.status_code == 201
        assert [e["amount"] for e in response.json()] == [3333, 3333, 3334]

        summary = client.get(f"{API}/ledger/summary", params={"period": "2025-02"}).json()
        assert summary["expenses"] == 3333
        assert client.get(f"{API}/ledger/months").json() == ["2025-03", "2025-02", "2025-01"]

    def test_amend_amount(self, client):
        payload = {
            "description": "Aluguel",
            "amount": 150000,
            "type": "DEBIT",
            "effectiveDate": "2025-03-01T12:00:00Z",
        }
        [entry] = client.post(f"{API}/ledger/", json=payload).json()
        amended = client.patch(
            f"{API}/ledger/{entry['id']}/amount",
            json={"newAmount": 160000, "actor": "Ana", "reason": "Reajuste"},
        ).json()
        assert amended["amount"] == 160000
        assert len(amended["history"]) == 2

    def test_invalid_period(self, client):
        response = client.get(f"{API}/ledger/summary", params={"period": "marzo"})
        assert response.status_code == 422


class TestClientsAndCatalogApi:
    """Tests per clienti e cataloghi appresi dagli ordini."""

    def test_learned_client_and_catalog(self, client):
        _create_order(client)
        clients = client.get(f"{API}/clients/", params={"search": "abc1234"}).json()
        assert [c["name"] for c in clients] == ["João Silva"]
        parts = client.get(f"{API}/catalog/parts").json()
        assert [p["description"] for p in parts] == ["Filtro de óleo"]

    def test_catalog_crud(self, client):
        created = client.post(f"{API}/catalog/services", json={"description": "Alinhamento", "price": "80,00"})
        assert created.status_code == 201
        assert created.json()["price"] == 8000

        duplicate = client.post(f"{API}/catalog/services", json={"description": "alinhamento"})
        assert duplicate.status_code == 409

        assert client.delete(f"{API}/catalog/services/Alinhamento").status_code == 204
        assert client.get(f"{API}/catalog/services").json() == []


class TestReportsApi:

    def test_export_default_folder(self, client, settings):
        response = client.post(f"{API}/reports/ledger-csv", params={"month": "2025-03"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["path"] == os.path.join(settings.export_path, "livro_caixa_2025-03.csv")

    def test_invalid_month(self, client):
        response = client.post(f"{API}/reports/ledger-csv", params={"month": "03/2025"})
        assert response.status_code == 422


class TestSyncApi:

    def test_not_configured(self, client):
        assert client.get(f"{API}/sync/status").json()["configured"] is False
        response = client.post(f"{API}/sync/push")
        assert response.status_code == 502
        assert response.json()["error_code"] == "SYNC_NOT_CONFIGURED"
